"""
Plugin metadata schema and plugin records.

Defines the structure of the metadata document that a plugin prints in
response to the metadata query, and the records produced while resolving
plugins: candidates found on disk, validated descriptors and invalid
plugins. Metadata is validated using Pydantic for type safety.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Argument a plugin must answer with its metadata document
METADATA_SUBCOMMAND = "dockhand-cli-plugin-metadata"

# Prefix of plugin executables on the search path (dockhand-<name>)
PLUGIN_PREFIX = "dockhand-"

SUPPORTED_SCHEMA_VERSION = "0.1.0"

PLUGIN_NAME_PATTERN = r"^[a-z][a-z0-9]*$"
PLUGIN_NAME_RE = re.compile(PLUGIN_NAME_PATTERN)


class PluginMetadata(BaseModel):
    """
    Metadata a plugin reports about itself.

    Printed as a single JSON object on stdout when the plugin is run with
    the metadata subcommand. Unknown keys are ignored.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    schema_version: str = Field(
        ...,
        description=f"Metadata schema version (must be '{SUPPORTED_SCHEMA_VERSION}')",
    )

    vendor: str = Field(
        ...,
        description="Organization or author shipping the plugin",
    )

    version: str = Field(
        "",
        description="Plugin version, free form",
    )

    short_description: str = Field(
        "",
        description="One-line summary shown in the top-level command listing",
    )

    long_description: str = Field(
        "",
        description="Longer description of the plugin",
    )

    url: Optional[str] = Field(
        None,
        description="URL to plugin documentation or repository",
    )

    subcommands: List[str] = Field(
        default_factory=list,
        description="Subcommands the plugin declares, in display order",
    )

    @field_validator("schema_version")
    @classmethod
    def validate_schema_version(cls, value: str) -> str:
        """Only one schema version is understood."""
        if value != SUPPORTED_SCHEMA_VERSION:
            raise ValueError(
                f"plugin schema version {value!r} is not valid, "
                f"must be {SUPPORTED_SCHEMA_VERSION}"
            )
        return value

    @field_validator("vendor")
    @classmethod
    def validate_vendor(cls, value: str) -> str:
        """Ensure the vendor is not blank."""
        value = value.strip()
        if not value:
            raise ValueError("plugin metadata does not define a vendor")
        return value

    @field_validator("subcommands")
    @classmethod
    def validate_subcommands(cls, names: List[str]) -> List[str]:
        """Strip names and reject blank ones."""
        validated = []
        for name in names:
            name = name.strip()
            if not name:
                raise ValueError("subcommand names must not be empty")
            validated.append(name)
        return validated


@dataclass(frozen=True)
class CandidatePlugin:
    """An executable on the search path that looks like a plugin."""

    name: str
    path: Path


class PluginDescriptor(BaseModel):
    """
    A plugin whose metadata has been validated.

    Only descriptors are ever dispatched to; building one is the proof that
    validation succeeded.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Top-level command name")
    path: Path = Field(..., description="Plugin executable")
    metadata: PluginMetadata = Field(..., description="Validated metadata document")

    @property
    def vendor(self) -> str:
        return self.metadata.vendor

    @property
    def version(self) -> str:
        return self.metadata.version

    @property
    def short_description(self) -> str:
        return self.metadata.short_description

    @property
    def long_description(self) -> str:
        return self.metadata.long_description

    @property
    def subcommands(self) -> List[str]:
        return list(self.metadata.subcommands)

    @property
    def summary(self) -> str:
        """Listing line, e.g. 'Say hello (Acme Inc., 1.0.0)'."""
        origin = ", ".join(part for part in (self.vendor, self.version) if part)
        if self.short_description:
            return f"{self.short_description} ({origin})"
        return f"({origin})"

    @property
    def help_text(self) -> str:
        """Description plus the declared subcommands."""
        text = self.long_description or self.short_description
        if self.subcommands:
            text = f"{text}\n\nCommands: {', '.join(self.subcommands)}".lstrip()
        return text


@dataclass(frozen=True)
class InvalidPlugin:
    """A plugin candidate that failed validation."""

    name: str
    detail: str
    path: Optional[Path] = None


PluginResult = Union[PluginDescriptor, InvalidPlugin]
