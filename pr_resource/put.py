"""Core logic of the put step: set a status and manage PR comments."""

import logging
from pathlib import Path
from typing import Union

from .environment import safe_expand_env
from .errors import RemoteError, StateReadError, ValidationError
from .github_client import RemoteService
from .models import PutParameters, PutRequest, PutResponse
from .state_store import StateStore


ALLOWED_STATUSES = ("success", "pending", "failure", "error")

logger = logging.getLogger(__name__)


def validate_status(status: str) -> None:
    """Raise ValidationError unless status is a known commit state."""
    if status.lower() not in ALLOWED_STATUSES:
        raise ValidationError(f"unknown status: {status}")


def validate_params(params: PutParameters) -> None:
    """Check the literal status; a status file is checked once read."""
    if params.status == "":
        return
    validate_status(params.status)


def _read_override(store: StateStore, relative_path: str, kind: str) -> str:
    try:
        return store.read_file(relative_path)
    except OSError as e:
        raise StateReadError(f"failed to read {kind} file: {e}") from e


def put(
    request: Union[PutRequest, PutParameters],
    remote: RemoteService,
    input_dir: Union[str, Path]
) -> PutResponse:
    """Publish a build outcome to the pull request fetched by get.

    Steps run in a fixed order and the first failure aborts the rest.
    Remote calls that already succeeded are not undone.
    """
    params = request.params if isinstance(request, PutRequest) else request

    try:
        validate_params(params)
    except ValidationError as e:
        raise ValidationError(f"invalid parameters: {e}") from e

    store = StateStore(input_dir)
    version = store.load_version(params.path)
    metadata = store.load_metadata(params.path)
    logger.info(f"Publishing to PR #{version.pr} at {version.commit}")

    if params.status or params.status_file:
        status = params.status
        description = params.description

        if params.status_file:
            status = _read_override(store, params.status_file, "status").strip()
            validate_status(status)

        if params.description_file:
            description = _read_override(store, params.description_file, "description")

        try:
            remote.update_commit_status(
                version.commit,
                params.base_context,
                safe_expand_env(params.context),
                status,
                safe_expand_env(params.target_url),
                description
            )
        except RemoteError as e:
            raise RemoteError(f"failed to set status: {e}") from e
        logger.info(f"Set status {status}")

    if params.delete_previous_comments:
        try:
            remote.delete_previous_comments(version.pr)
        except RemoteError as e:
            raise RemoteError(f"failed to delete previous comments: {e}") from e

    if params.comment:
        _post_comment(remote, version.pr, params.comment)

    if params.comment_file:
        comment = _read_override(store, params.comment_file, "comment")
        if comment:
            _post_comment(remote, version.pr, comment)
        else:
            logger.debug(f"Comment file {params.comment_file} is empty, skipping")

    return PutResponse(version=version, metadata=metadata)


def _post_comment(remote: RemoteService, pr: str, text: str) -> None:
    try:
        remote.post_comment(pr, safe_expand_env(text))
    except RemoteError as e:
        raise RemoteError(f"failed to post comment: {e}") from e
