"""
Per-invocation CLI context.

Built once by the root command's pre-run hook and handed to built-in
commands and plugin dispatch alike, so plugins always start from a fully
initialized environment.
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dockhand.config import Settings
from dockhand.logging_config import setup_logging

logger = logging.getLogger(__name__)

# Environment handed to plugin processes
ENV_ORIGINAL_CLI_COMMAND = "DOCKHAND_CLI_PLUGIN_ORIGINAL_CLI_COMMAND"
ENV_API_VERSION = "DOCKHAND_API_VERSION"
ENV_CONFIG_DIR = "DOCKHAND_CONFIG_DIR"


@dataclass(frozen=True)
class CliContext:
    """Shared state established before any command runs."""

    settings: Settings
    config_dir: Path
    api_version: str
    debug: bool = False
    log_level: str = "WARNING"
    original_command: str = ""

    def plugin_environment(self) -> Dict[str, str]:
        """Environment for plugin processes: ours plus the client context."""
        env = dict(os.environ)
        env[ENV_ORIGINAL_CLI_COMMAND] = self.original_command
        env[ENV_API_VERSION] = self.api_version
        env[ENV_CONFIG_DIR] = str(self.config_dir)
        return env


def initialize_cli_context(
    settings: Settings,
    debug: bool = False,
    log_level: Optional[str] = None,
    config_dir: Optional[Path] = None,
) -> CliContext:
    """
    Run the pre-run initialization.

    Args:
        settings: Application settings
        debug: Value of the global --debug flag
        log_level: Value of the global --log-level flag
        config_dir: Value of the global --config flag

    Returns:
        Initialized CliContext
    """
    level = (log_level or settings.log_level).upper()
    setup_logging(context="cli", level=level, debug=debug, settings=settings)

    cli_context = CliContext(
        settings=settings,
        config_dir=(config_dir or settings.config_dir).expanduser(),
        api_version=settings.api_version,
        debug=debug,
        log_level=level,
        original_command=sys.argv[0] if sys.argv else "",
    )
    logger.debug(
        f"Initialized CLI context (config={cli_context.config_dir}, "
        f"api_version={cli_context.api_version})"
    )
    return cli_context
