"""
Logging configuration for the Dockhand CLI.

Console logging always goes to stderr so that stdout only ever carries
command output. Debug mode adds a rotating log file instead of raising
the console level, which keeps `-D` from changing what users see.
"""

import logging
import logging.handlers
import sys
from typing import List, Optional

from dockhand.config import Settings

CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
LOG_FILE_NAME = "dockhand.log"

# Handlers installed by the previous setup_logging() call
_installed_handlers: List[logging.Handler] = []


class StderrHandler(logging.StreamHandler):
    """StreamHandler bound to whatever sys.stderr is at emit time."""

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


def setup_logging(
    context: str = "cli",
    level: Optional[str] = None,
    debug: bool = False,
    settings: Optional[Settings] = None,
) -> None:
    """
    Configure root logging for one invocation of the tool.

    Safe to call repeatedly: handlers from an earlier call are replaced.

    Args:
        context: Name recorded in the log file header line
        level: Console log level (defaults to settings.log_level)
        debug: Also write DEBUG records to the rotating log file
        settings: Application settings (defaults to a fresh Settings())
    """
    settings = settings or Settings()
    root = logging.getLogger()

    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    console_level = getattr(logging, (level or settings.log_level).upper(), logging.WARNING)
    console_handler = StderrHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    _installed_handlers.append(console_handler)

    root_level = console_level
    file_error: Optional[OSError] = None
    if debug and settings.log_file_enabled:
        log_dir = settings.log_directory
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_dir / LOG_FILE_NAME,
                maxBytes=settings.log_max_bytes,
                backupCount=settings.log_backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            file_error = e
        else:
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                logging.Formatter(fmt=FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
            _installed_handlers.append(file_handler)
            root_level = logging.DEBUG

    for handler in _installed_handlers:
        root.addHandler(handler)
    root.setLevel(root_level)

    logger = logging.getLogger(__name__)
    if file_error is not None:
        logger.debug(f"Debug log file disabled: {file_error}")
    logger.debug(f"Logging configured for {context}")
