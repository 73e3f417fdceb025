"""
Plugin system for external CLI commands.

This package provides infrastructure for discovering, validating and
describing dockhand-<name> plugin executables found on the plugin search
path.
"""

from dockhand.plugins.catalog import PluginCatalog
from dockhand.plugins.loader import PluginLoader
from dockhand.plugins.manifest import (
    CandidatePlugin,
    InvalidPlugin,
    PluginDescriptor,
    PluginMetadata,
    PluginResult,
)
from dockhand.plugins.validator import MetadataValidator

__all__ = [
    "CandidatePlugin",
    "InvalidPlugin",
    "MetadataValidator",
    "PluginCatalog",
    "PluginDescriptor",
    "PluginLoader",
    "PluginMetadata",
    "PluginResult",
]
