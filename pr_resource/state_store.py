"""Reads state left behind by the get step and override files."""

import json
import logging
from pathlib import Path
from typing import Any, Union

from .errors import DecodeError, StateReadError
from .models import Metadata, Version, metadata_from_list


class StateStore:
    """Read-only view of a put step's input directory.

    The get step writes version.json and metadata.json to
    <input_dir>/<path>/.git/resource/. Override files (status, description,
    comment) are addressed relative to input_dir.
    """

    def __init__(self, input_dir: Union[str, Path]):
        self.input_dir = Path(input_dir)
        self.logger = logging.getLogger(__name__)

    def resource_dir(self, path: str) -> Path:
        return self.input_dir / path / ".git" / "resource"

    def load_version(self, path: str) -> Version:
        """Load the version fetched by the get step."""
        data = self._load_json(self.resource_dir(path) / "version.json", "version")
        try:
            version = Version.from_dict(data)
        except DecodeError as e:
            raise DecodeError(f"failed to unmarshal version from file: {e}") from e
        self.logger.debug(f"Loaded version pr={version.pr} commit={version.commit}")
        return version

    def load_metadata(self, path: str) -> Metadata:
        """Load the metadata fetched by the get step."""
        data = self._load_json(self.resource_dir(path) / "metadata.json", "metadata")
        try:
            metadata = metadata_from_list(data)
        except DecodeError as e:
            raise DecodeError(f"failed to unmarshal metadata from file: {e}") from e
        self.logger.debug(f"Loaded {len(metadata)} metadata fields")
        return metadata

    def read_file(self, relative_path: str) -> str:
        """Return the content of a file under input_dir, untrimmed.

        Bytes that are not valid UTF-8 become U+FFFD rather than failing.
        """
        file_path = self.input_dir / relative_path
        with open(file_path, encoding="utf-8", errors="replace") as f:
            return f.read()

    def _load_json(self, file_path: Path, kind: str) -> Any:
        try:
            with open(file_path, encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StateReadError(f"failed to read {kind} from path: {e}") from e

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise DecodeError(f"failed to unmarshal {kind} from file: {e}") from e
