"""
Plugin metadata validation.

Runs a candidate with the metadata subcommand and turns the answer into a
PluginDescriptor. Anything that goes wrong along the way produces an
InvalidPlugin instead. The query's output is captured and never shown.
"""

import json
import logging
import subprocess
from typing import Dict, Mapping, Optional

from pydantic import ValidationError

from dockhand.exceptions import MetadataError
from dockhand.plugins.manifest import (
    METADATA_SUBCOMMAND,
    PLUGIN_NAME_PATTERN,
    PLUGIN_NAME_RE,
    CandidatePlugin,
    InvalidPlugin,
    PluginDescriptor,
    PluginMetadata,
    PluginResult,
)

logger = logging.getLogger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into 'field: message; ...'."""
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)


class MetadataValidator:
    """Validates plugin candidates by querying their metadata."""

    def __init__(
        self,
        timeout: float = 10.0,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Initialize the validator.

        Args:
            timeout: Seconds the metadata query may take
            env: Environment for the metadata query (defaults to the current one)
        """
        self.timeout = timeout
        self.env: Optional[Dict[str, str]] = dict(env) if env is not None else None

    def validate(self, candidate: CandidatePlugin) -> PluginResult:
        """
        Validate a candidate.

        Args:
            candidate: Plugin candidate found by the catalog

        Returns:
            PluginDescriptor if the metadata is usable, otherwise InvalidPlugin
        """
        if not PLUGIN_NAME_RE.match(candidate.name):
            return InvalidPlugin(
                name=candidate.name,
                path=candidate.path,
                detail=(
                    f'plugin candidate "{candidate.name}" did not match '
                    f'"{PLUGIN_NAME_PATTERN}"'
                ),
            )

        try:
            metadata = self.parse_metadata(self._query_metadata(candidate))
        except MetadataError as e:
            logger.debug(f"Plugin {candidate.name} at {candidate.path} is invalid: {e}")
            return InvalidPlugin(name=candidate.name, path=candidate.path, detail=str(e))

        logger.debug(
            f"Validated plugin {candidate.name} "
            f"({metadata.vendor}, {metadata.version or 'unversioned'})"
        )
        return PluginDescriptor(name=candidate.name, path=candidate.path, metadata=metadata)

    def _query_metadata(self, candidate: CandidatePlugin) -> str:
        """
        Run the metadata query and return its stdout.

        Raises:
            MetadataError: If the plugin cannot be run, fails, or prints non-UTF-8
        """
        try:
            completed = subprocess.run(
                [str(candidate.path), METADATA_SUBCOMMAND],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=self.timeout,
                env=self.env,
            )
        except subprocess.TimeoutExpired:
            raise MetadataError(f"metadata query timed out after {self.timeout:g}s")
        except OSError as e:
            raise MetadataError(
                f"failed to run metadata query: {e.strerror or e}"
            ) from e

        if completed.returncode != 0:
            message = f"metadata query exited with status {completed.returncode}"
            stderr_lines = completed.stderr.decode(errors="replace").strip().splitlines()
            if stderr_lines:
                message += f": {stderr_lines[0]}"
            raise MetadataError(message)

        try:
            return completed.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MetadataError(f"invalid metadata: {e}") from e

    @staticmethod
    def parse_metadata(raw: str) -> PluginMetadata:
        """
        Parse a metadata document.

        Args:
            raw: Text printed by the metadata query

        Returns:
            Validated PluginMetadata

        Raises:
            MetadataError: If the text is not a valid metadata object
        """
        if not raw.strip():
            raise MetadataError("invalid metadata: empty response")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MetadataError(f"invalid metadata: {e}") from e

        if not isinstance(data, dict):
            raise MetadataError(
                f"invalid metadata: expected a JSON object, got {type(data).__name__}"
            )

        try:
            return PluginMetadata.model_validate(data)
        except ValidationError as e:
            raise MetadataError(f"invalid metadata: {_format_validation_error(e)}") from e
