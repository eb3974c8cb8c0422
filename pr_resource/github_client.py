"""GitHub API client for publishing statuses and pull request comments."""

import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Generator, Optional, Protocol

import requests

from .environment import build_url
from .errors import RemoteError
from .models import DEFAULT_V3_ENDPOINT, Source


DEFAULT_BASE_CONTEXT = "concourse-ci"
DEFAULT_CONTEXT = "status"


class GitHubError(RemoteError):
    """A GitHub API call failed."""


class RemoteService(Protocol):
    """Side-effecting operations the put step needs from the host."""

    def update_commit_status(
        self,
        commit: str,
        base_context: str,
        context: str,
        status: str,
        target_url: str,
        description: str
    ) -> None:
        ...

    def delete_previous_comments(self, pr: str) -> None:
        ...

    def post_comment(self, pr: str, comment: str) -> None:
        ...


class GitHubClient:
    """Handles GitHub API interactions for one repository.

    Mutating requests are sent exactly once. Only GETs are retried, since
    a repeated POST would create a second comment.
    """

    def __init__(
        self,
        repository: str,
        token: Optional[str] = None,
        base_url: str = DEFAULT_V3_ENDPOINT,
        verify_ssl: bool = True,
        session: Optional[requests.Session] = None
    ):
        self.token = token or os.environ.get("GITHUB_TOKEN")
        if not self.token:
            raise ValueError("access_token or GITHUB_TOKEN environment variable required")
        if "/" not in repository:
            raise ValueError(f"repository must be 'owner/name', got {repository!r}")
        self.owner, self.repo = repository.split("/", 1)
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28"
        })
        self.session.verify = verify_ssl
        self.rate_limit_remaining = 5000
        self.rate_limit_reset: Optional[datetime] = None
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_source(cls, source: Source) -> "GitHubClient":
        return cls(
            repository=source.repository,
            token=source.access_token or None,
            base_url=source.v3_endpoint,
            verify_ssl=not source.skip_ssl_verification
        )

    def _handle_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit tracking from response headers."""
        self.rate_limit_remaining = int(
            response.headers.get("X-RateLimit-Remaining", 5000)
        )
        reset_timestamp = response.headers.get("X-RateLimit-Reset")
        if reset_timestamp:
            self.rate_limit_reset = datetime.fromtimestamp(
                int(reset_timestamp), tz=timezone.utc
            )

        if self.rate_limit_remaining < 10:
            if self.rate_limit_reset:
                sleep_time = (
                    self.rate_limit_reset - datetime.now(timezone.utc)
                ).total_seconds()
                if sleep_time > 0:
                    self.logger.warning(
                        f"Rate limit low ({self.rate_limit_remaining}). "
                        f"Sleeping {sleep_time:.0f}s"
                    )
                    time.sleep(min(sleep_time + 5, 3600))

    def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any
    ) -> requests.Response:
        """Make a request, raising GitHubError on any non-2xx response."""
        if not url.startswith("http"):
            url = f"{self.base_url}{url}"

        max_attempts = 3 if method == "GET" else 1
        last_error = ""
        for attempt in range(max_attempts):
            try:
                response = self.session.request(method, url, **kwargs)
            except requests.RequestException as e:
                self.logger.warning(f"Request exception: {e}")
                last_error = str(e)
                if attempt + 1 < max_attempts:
                    time.sleep(2 ** attempt)
                continue

            self._handle_rate_limit(response)

            if 200 <= response.status_code < 300:
                return response
            last_error = f"{method} {url}: {response.status_code} {response.text}"
            if response.status_code >= 500 and attempt + 1 < max_attempts:
                self.logger.debug(f"Server error ({response.status_code}), retrying: {url}")
                time.sleep(2 ** attempt)
                continue
            break

        raise GitHubError(last_error)

    def _paginate(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None
    ) -> Generator[Dict[str, Any], None, None]:
        """Generator that handles pagination automatically."""
        params = params or {}
        params.setdefault("per_page", 100)

        while url:
            response = self._request("GET", url, params=params)

            try:
                data = response.json()
            except ValueError as e:
                raise GitHubError(f"invalid JSON from {url}: {e}") from e
            if isinstance(data, list):
                yield from data
            else:
                yield data
                break

            url = None
            link_header = response.headers.get("Link", "")
            for link in link_header.split(","):
                if 'rel="next"' in link:
                    url = link.split(";")[0].strip("<> ")
                    params = {}
                    break

    def update_commit_status(
        self,
        commit: str,
        base_context: str,
        context: str,
        status: str,
        target_url: str,
        description: str
    ) -> None:
        """Create a commit status, filling in Concourse defaults."""
        base_context = base_context or DEFAULT_BASE_CONTEXT
        context = context or DEFAULT_CONTEXT
        target_url = target_url or build_url()
        description = description or f"Concourse CI build {status}"

        payload = {
            "state": status.lower(),
            "target_url": target_url,
            "description": description,
            "context": f"{base_context}/{context}"
        }
        self.logger.info(
            f"Setting status {payload['context']}={payload['state']} on {commit}"
        )
        self._request(
            "POST",
            f"/repos/{self.owner}/{self.repo}/statuses/{commit}",
            json=payload
        )

    def post_comment(self, pr: str, comment: str) -> None:
        """Post a general comment on a pull request."""
        self.logger.info(f"Posting comment on PR #{pr}")
        self._request(
            "POST",
            f"/repos/{self.owner}/{self.repo}/issues/{pr}/comments",
            json={"body": comment}
        )

    def get_viewer_login(self) -> str:
        """Login of the user the token belongs to."""
        response = self._request("GET", "/user")
        try:
            return response.json()["login"]
        except (ValueError, KeyError, TypeError) as e:
            raise GitHubError(f"unexpected response from /user: {e}") from e

    def get_pr_issue_comments(self, pr: str) -> Generator[Dict[str, Any], None, None]:
        """Get issue comments (general comments) for a PR."""
        url = f"/repos/{self.owner}/{self.repo}/issues/{pr}/comments"
        yield from self._paginate(url)

    def delete_previous_comments(self, pr: str) -> None:
        """Delete every comment on the PR authored by the token's user."""
        login = self.get_viewer_login()
        # Collect first so deletions do not shift the pages being read
        stale = []
        for comment in self.get_pr_issue_comments(pr):
            if not isinstance(comment, dict) or "id" not in comment:
                raise GitHubError(f"unexpected comment in PR #{pr}: {comment!r}")
            if (comment.get("user") or {}).get("login") == login:
                stale.append(comment["id"])
        self.logger.info(f"Deleting {len(stale)} previous comments by {login} on PR #{pr}")
        for comment_id in stale:
            self._request(
                "DELETE",
                f"/repos/{self.owner}/{self.repo}/issues/comments/{comment_id}"
            )
