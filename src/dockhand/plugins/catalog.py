"""
Plugin candidate discovery.

Scans the plugin search directories for dockhand-<name> executables.
Directories are searched in priority order and the first match for a name
wins. Nothing is executed here; the catalog only reads the filesystem.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from dockhand.plugins.manifest import PLUGIN_PREFIX, CandidatePlugin

logger = logging.getLogger(__name__)


def _is_file(path: Path) -> bool:
    """Path.is_file() that treats unreadable locations as missing."""
    try:
        return path.is_file()
    except OSError as e:
        logger.debug(f"Cannot stat {path}: {e}")
        return False


class PluginCatalog:
    """
    Locates plugin candidates on the search path.

    Example:
        >>> catalog = PluginCatalog([Path("~/.dockhand/cli-plugins").expanduser()])
        >>> catalog.lookup("helloworld")
        CandidatePlugin(name='helloworld', path=PosixPath('.../dockhand-helloworld'))
    """

    def __init__(self, search_dirs: Sequence[Path]) -> None:
        """
        Initialize the catalog.

        Args:
            search_dirs: Directories to scan, highest priority first
        """
        self.search_dirs: List[Path] = list(search_dirs)

    @staticmethod
    def executable_name(name: str) -> str:
        """File name a plugin called `name` is installed under."""
        if sys.platform == "win32":
            return f"{PLUGIN_PREFIX}{name}.exe"
        return f"{PLUGIN_PREFIX}{name}"

    @staticmethod
    def plugin_name(file_name: str) -> Optional[str]:
        """Plugin name for an executable file name, or None if it isn't one."""
        if not file_name.startswith(PLUGIN_PREFIX):
            return None
        name = file_name[len(PLUGIN_PREFIX) :]
        if sys.platform == "win32":
            if not name.lower().endswith(".exe"):
                return None
            name = name[: -len(".exe")]
        return name or None

    def lookup(self, name: str) -> Optional[CandidatePlugin]:
        """
        Find the highest priority candidate for a command name.

        Args:
            name: Top-level command name

        Returns:
            The candidate, or None when no search directory provides one
        """
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            return None

        file_name = self.executable_name(name)
        for plugin_dir in self.search_dirs:
            path = plugin_dir / file_name
            if _is_file(path):
                logger.debug(f"Found plugin candidate {name} at {path}")
                return CandidatePlugin(name=name, path=path)

        logger.debug(f"No plugin candidate for {name}")
        return None

    def candidates(self) -> List[CandidatePlugin]:
        """
        Enumerate every candidate on the search path.

        Returns:
            Candidates sorted by name; shadowed duplicates are dropped
        """
        found: Dict[str, CandidatePlugin] = {}

        for plugin_dir in self.search_dirs:
            try:
                if not plugin_dir.exists():
                    logger.debug(f"Plugin directory does not exist: {plugin_dir}")
                    continue

                if not plugin_dir.is_dir():
                    logger.debug(f"Plugin path is not a directory: {plugin_dir}")
                    continue

                entries = sorted(plugin_dir.iterdir())
            except OSError as e:
                logger.debug(f"Cannot scan plugin directory {plugin_dir}: {e}")
                continue

            for entry in entries:
                name = self.plugin_name(entry.name)
                if name is None or not _is_file(entry):
                    continue

                if name in found:
                    logger.debug(
                        f"Skipping {entry} ({name} already found at {found[name].path})"
                    )
                    continue

                found[name] = CandidatePlugin(name=name, path=entry)

        return [found[name] for name in sorted(found)]
