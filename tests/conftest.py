"""Shared fixtures for the put step tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from pr_resource.errors import RemoteError


VERSION = {"pr": "42", "commit": "abc123", "committed": "2024-01-02T03:04:05Z"}
METADATA = [
    {"name": "author", "value": "octocat"},
    {"name": "head_name", "value": "feature/x"},
]


class RecordingRemote:
    """Fake remote service that records calls and can fail on demand."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.fail_on = fail_on

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name == self.fail_on:
            raise RemoteError("boom")

    def update_commit_status(
        self,
        commit: str,
        base_context: str,
        context: str,
        status: str,
        target_url: str,
        description: str,
    ) -> None:
        self._record("update_commit_status", commit, base_context, context, status, target_url, description)

    def delete_previous_comments(self, pr: str) -> None:
        self._record("delete_previous_comments", pr)

    def post_comment(self, pr: str, comment: str) -> None:
        self._record("post_comment", pr, comment)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, headers: dict[str, str] | None = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = "" if payload is None else str(payload)

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Returns queued responses and records every request."""

    def __init__(self, responses: list[Any]) -> None:
        self.headers: dict[str, str] = {}
        self.verify = True
        self.responses = list(responses)
        self.requests: list[tuple[str, str, dict[str, Any]]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.requests.append((method, url, kwargs))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def write_state(input_dir: Path, path: str = "pull-request", version: Any = None, metadata: Any = None) -> Path:
    """Write version.json and metadata.json the way the get step does."""

    resource_dir = input_dir / path / ".git" / "resource"
    resource_dir.mkdir(parents=True, exist_ok=True)
    (resource_dir / "version.json").write_text(json.dumps(VERSION if version is None else version), encoding="utf-8")
    (resource_dir / "metadata.json").write_text(json.dumps(METADATA if metadata is None else metadata), encoding="utf-8")
    return resource_dir


@pytest.fixture
def remote() -> RecordingRemote:
    return RecordingRemote()


@pytest.fixture
def input_dir(tmp_path: Path) -> Path:
    write_state(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def build_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide a predictable Concourse build environment."""

    monkeypatch.setenv("BUILD_ID", "42")
    monkeypatch.setenv("BUILD_NAME", "7")
    monkeypatch.setenv("BUILD_JOB_NAME", "test")
    monkeypatch.setenv("BUILD_PIPELINE_NAME", "pr")
    monkeypatch.setenv("BUILD_TEAM_NAME", "main")
    monkeypatch.setenv("ATC_EXTERNAL_URL", "https://ci.example.com")
