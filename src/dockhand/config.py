"""
Dockhand Configuration.

Centralized configuration management using Pydantic Settings.
Loads configuration from environment variables and from the optional
config.json file in the configuration directory.
"""

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

TOOL_NAME = "dockhand"

CONFIG_FILE_NAME = "config.json"

DEFAULT_SYSTEM_PLUGIN_DIRS = [
    "/usr/local/lib/dockhand/cli-plugins",
    "/usr/local/libexec/dockhand/cli-plugins",
    "/usr/lib/dockhand/cli-plugins",
    "/usr/libexec/dockhand/cli-plugins",
]


def get_xdg_state_dir() -> str:
    """
    Get XDG-compliant state directory for Dockhand logs.

    Follows XDG Base Directory Specification:
    - Uses $XDG_STATE_HOME/dockhand/logs if XDG_STATE_HOME is set
    - Falls back to $HOME/.local/state/dockhand/logs if not set
    - Returns relative path ./logs if HOME not available (dev/testing)

    Returns:
        str: Path to state/logs directory
    """
    xdg_state_home = os.getenv("XDG_STATE_HOME")
    if xdg_state_home:
        return str(Path(xdg_state_home) / "dockhand" / "logs")

    home = os.getenv("HOME")
    if home:
        return str(Path(home) / ".local" / "state" / "dockhand" / "logs")

    # Fallback for development/testing environments without HOME
    return "./logs"


def split_path_list(value: str) -> List[Path]:
    """Split an os.pathsep-separated string into paths, skipping empty entries."""
    return [Path(part).expanduser() for part in value.split(os.pathsep) if part.strip()]


class ConfigFile(BaseModel):
    """Contents of <config_dir>/config.json."""

    cli_plugins_extra_dirs: List[Path] = Field(
        default_factory=list,
        description="Additional directories searched for CLI plugins",
    )


def load_config_file(config_dir: Path) -> ConfigFile:
    """
    Load config.json from the configuration directory.

    A missing file yields defaults. A malformed file is logged and ignored
    so that a broken config never prevents built-in commands from running.
    """
    config_path = config_dir / CONFIG_FILE_NAME
    if not config_path.is_file():
        return ConfigFile()

    try:
        with open(config_path, encoding="utf-8") as f:
            data = json.load(f)
        return ConfigFile.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring invalid config file {config_path}: {e}")
        return ConfigFile()


class Settings(BaseSettings):
    """Application settings loaded from DOCKHAND_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="DOCKHAND_",
        case_sensitive=False,
        extra="ignore",
    )

    # Client configuration
    config_dir: Path = Path.home() / ".dockhand"
    api_version: str = "1.47"

    # Plugins
    cli_plugins_extra_dirs: str = ""  # os.pathsep-separated, searched first
    system_plugin_dirs: str = os.pathsep.join(DEFAULT_SYSTEM_PLUGIN_DIRS)
    metadata_timeout: float = 10.0  # Seconds allowed for the metadata query

    # Logging
    log_level: str = "WARNING"
    log_dir: str = ""  # XDG-compliant log directory (defaults to XDG state dir if empty)
    log_file_enabled: bool = True  # Write --debug output to a log file
    log_max_bytes: int = 10_485_760  # 10MB per log file
    log_backup_count: int = 5  # Keep 5 backup files

    @property
    def log_directory(self) -> Path:
        """Get the log directory path, using XDG default if not specified."""
        if self.log_dir:
            return Path(self.log_dir).expanduser()
        return Path(get_xdg_state_dir())

    def plugin_search_dirs(self, config_dir: Optional[Path] = None) -> List[Path]:
        """
        Directories searched for dockhand-<name> executables, in priority order.

        Args:
            config_dir: Effective configuration directory (e.g. from --config);
                        defaults to the configured one

        Returns:
            Environment extra dirs, config file extra dirs, the user plugin
            dir inside the config dir, then the system plugin dirs
        """
        config_dir = (config_dir or self.config_dir).expanduser()
        config_file = load_config_file(config_dir)

        dirs: List[Path] = []
        dirs.extend(split_path_list(self.cli_plugins_extra_dirs))
        dirs.extend(path.expanduser() for path in config_file.cli_plugins_extra_dirs)
        dirs.append(config_dir / "cli-plugins")
        dirs.extend(split_path_list(self.system_plugin_dirs))
        return dirs
