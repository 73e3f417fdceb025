"""
Top-level command tree.

Merges the tool's built-in commands with validated plugin descriptors.
Built-ins always win a name collision; the colliding plugin is recorded
as invalid so listings can explain why it is ignored.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Union

from dockhand.plugins.manifest import InvalidPlugin, PluginDescriptor, PluginResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltinCommand:
    """A command implemented by the tool itself."""

    name: str
    short_description: str = ""


CommandEntry = Union[BuiltinCommand, PluginDescriptor]


@dataclass(frozen=True)
class CommandTree:
    """Read-only view of every resolvable top-level command."""

    entries: Mapping[str, CommandEntry]
    invalid: Mapping[str, InvalidPlugin]

    def get(self, name: str) -> Optional[CommandEntry]:
        return self.entries.get(name)

    def names(self) -> List[str]:
        """Built-ins in registration order, then plugins by name."""
        return [builtin.name for builtin in self.builtins] + [
            plugin.name for plugin in self.plugins
        ]

    @property
    def builtins(self) -> List[BuiltinCommand]:
        return [e for e in self.entries.values() if isinstance(e, BuiltinCommand)]

    @property
    def plugins(self) -> List[PluginDescriptor]:
        found = [e for e in self.entries.values() if isinstance(e, PluginDescriptor)]
        return sorted(found, key=lambda descriptor: descriptor.name)


def build_command_tree(
    builtins: Iterable[BuiltinCommand],
    results: Iterable[PluginResult],
) -> CommandTree:
    """
    Build the command tree for one invocation.

    Args:
        builtins: Commands implemented by the tool
        results: Plugin resolution results (descriptors and invalid plugins)

    Returns:
        CommandTree with plugins merged in; plugins named like a built-in
        are moved to the invalid mapping
    """
    entries: Dict[str, CommandEntry] = {}
    invalid: Dict[str, InvalidPlugin] = {}

    for builtin in builtins:
        entries[builtin.name] = builtin

    for result in results:
        if isinstance(result, InvalidPlugin):
            invalid[result.name] = result
            continue

        if result.name in entries:
            logger.debug(
                f"Ignoring plugin {result.name} at {result.path}: "
                f"duplicates builtin command"
            )
            invalid[result.name] = InvalidPlugin(
                name=result.name,
                path=result.path,
                detail=f'plugin "{result.name}" duplicates builtin command',
            )
            continue

        entries[result.name] = result

    return CommandTree(
        entries=MappingProxyType(entries),
        invalid=MappingProxyType(invalid),
    )
