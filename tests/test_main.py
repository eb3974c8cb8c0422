"""Tests for the out script entry point."""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any

import pytest

from conftest import METADATA, VERSION, FakeResponse, FakeSession, RecordingRemote
from pr_resource import main as main_module
from pr_resource.github_client import GitHubClient, RemoteService


def _run(monkeypatch: pytest.MonkeyPatch, request: Any, input_dir: Path, remote: RemoteService) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(request)))
    monkeypatch.setattr(main_module.GitHubClient, "from_source", classmethod(lambda cls, source: remote))
    main_module.main([str(input_dir)])


def test_main_writes_response_to_stdout(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], input_dir: Path, remote: RecordingRemote
) -> None:
    request = {
        "source": {"repository": "octo/repo", "access_token": "t"},
        "params": {"path": "pull-request", "status": "success", "comment": "Build $BUILD_ID"},
    }

    _run(monkeypatch, request, input_dir, remote)

    assert json.loads(capsys.readouterr().out) == {"version": VERSION, "metadata": METADATA}
    assert remote.names() == ["update_commit_status", "post_comment"]
    assert remote.calls[1] == ("post_comment", "42", "Build 42")


def test_main_exits_nonzero_on_failure(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], input_dir: Path
) -> None:
    remote = RecordingRemote(fail_on="update_commit_status")
    request = {"source": {"repository": "octo/repo"}, "params": {"path": "pull-request", "status": "error"}}

    with pytest.raises(SystemExit) as excinfo:
        _run(monkeypatch, request, input_dir, remote)

    assert excinfo.value.code == 1
    assert capsys.readouterr().out == ""


def test_main_rejects_malformed_request(monkeypatch: pytest.MonkeyPatch, input_dir: Path, remote: RecordingRemote) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("{"))

    with pytest.raises(SystemExit) as excinfo:
        main_module.main([str(input_dir)])

    assert excinfo.value.code == 1
    assert remote.calls == []


def test_main_exits_nonzero_when_comment_listing_is_not_json(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], input_dir: Path
) -> None:
    session = FakeSession(
        [
            FakeResponse(200, {"login": "bot"}),
            FakeResponse(200, ValueError("Expecting value: line 1 column 1 (char 0)")),
        ]
    )
    client = GitHubClient("octo/repo", token="t", session=session)
    request = {
        "source": {"repository": "octo/repo", "access_token": "t"},
        "params": {"path": "pull-request", "delete_previous_comments": True},
    }

    with pytest.raises(SystemExit) as excinfo:
        _run(monkeypatch, request, input_dir, client)

    assert excinfo.value.code == 1
    assert capsys.readouterr().out == ""
