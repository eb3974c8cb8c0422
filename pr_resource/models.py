"""Data models for the pull request resource."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import DecodeError


DEFAULT_V3_ENDPOINT = "https://api.github.com"


def _string(data: Dict[str, Any], key: str, kind: str) -> str:
    """Read an optional string field, rejecting other JSON types."""
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(
            f"{kind}.{key}: expected string, got {type(value).__name__}"
        )
    return value


@dataclass
class Source:
    """Resource configuration shared by every step."""
    repository: str
    access_token: str = ""
    v3_endpoint: str = DEFAULT_V3_ENDPOINT
    skip_ssl_verification: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Source":
        repository = _string(data, "repository", "source")
        if "/" not in repository:
            raise DecodeError(
                f"source.repository must be 'owner/name', got {repository!r}"
            )
        skip_ssl = data.get("skip_ssl_verification", False)
        if not isinstance(skip_ssl, bool):
            raise DecodeError(
                "source.skip_ssl_verification: expected boolean, "
                f"got {type(skip_ssl).__name__}"
            )
        return cls(
            repository=repository,
            access_token=_string(data, "access_token", "source"),
            v3_endpoint=(
                _string(data, "v3_endpoint", "source") or DEFAULT_V3_ENDPOINT
            ).rstrip("/"),
            skip_ssl_verification=skip_ssl
        )


@dataclass
class PutParameters:
    """Parameters for a single put.

    A file variant (status_file, description_file) wins over its literal
    field. comment and comment_file are independent and may both post.
    """
    path: str = ""
    base_context: str = ""
    context: str = ""
    target_url: str = ""
    description_file: str = ""
    description: str = ""
    status_file: str = ""
    status: str = ""
    comment_file: str = ""
    comment: str = ""
    delete_previous_comments: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PutParameters":
        kwargs: Dict[str, Any] = {
            name: _string(data, name, "params")
            for name in (
                "path", "base_context", "context", "target_url",
                "description_file", "description", "status_file", "status",
                "comment_file", "comment"
            )
        }
        delete = data.get("delete_previous_comments", False)
        if not isinstance(delete, bool):
            raise DecodeError(
                "params.delete_previous_comments: expected boolean, "
                f"got {type(delete).__name__}"
            )
        kwargs["delete_previous_comments"] = delete
        return cls(**kwargs)


@dataclass
class PutRequest:
    """The JSON document Concourse writes to stdin for a put."""
    source: Source
    params: PutParameters

    @classmethod
    def from_dict(cls, data: Any) -> "PutRequest":
        if not isinstance(data, dict):
            raise DecodeError("request must be a JSON object")
        source = data.get("source") or {}
        params = data.get("params") or {}
        if not isinstance(source, dict) or not isinstance(params, dict):
            raise DecodeError("request source and params must be JSON objects")
        return cls(
            source=Source.from_dict(source),
            params=PutParameters.from_dict(params)
        )


@dataclass
class Version:
    """Commit and pull request pair fetched by the get step."""
    pr: str
    commit: str
    committed_date: Optional[str] = None
    approved_review_count: Optional[Any] = None
    # Keys we do not model, echoed back untouched
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Version":
        if not isinstance(data, dict):
            raise DecodeError("version must be a JSON object")
        known = {"pr", "commit", "committed", "approved_review_count"}
        committed = data.get("committed")
        approved = data.get("approved_review_count")
        return cls(
            pr=_string(data, "pr", "version"),
            commit=_string(data, "commit", "version"),
            committed_date=committed,
            approved_review_count=approved,
            extra={k: v for k, v in data.items() if k not in known}
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"pr": self.pr, "commit": self.commit}
        if self.committed_date is not None:
            data["committed"] = self.committed_date
        if self.approved_review_count is not None:
            data["approved_review_count"] = self.approved_review_count
        data.update(self.extra)
        return data


@dataclass
class MetadataField:
    """Single name/value pair shown in the Concourse UI."""
    name: str
    value: str


Metadata = List[MetadataField]


def metadata_from_list(data: Any) -> Metadata:
    """Parse a metadata.json document."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError("metadata must be a JSON array")
    fields: Metadata = []
    for entry in data:
        if not isinstance(entry, dict):
            raise DecodeError("metadata entries must be JSON objects")
        fields.append(MetadataField(
            name=_string(entry, "name", "metadata"),
            value=_string(entry, "value", "metadata")
        ))
    return fields


@dataclass
class PutResponse:
    """Echo of the state acted upon, written to stdout."""
    version: Version
    metadata: Metadata

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"version": self.version.to_dict()}
        if self.metadata:
            data["metadata"] = [
                {"name": m.name, "value": m.value} for m in self.metadata
            ]
        return data
