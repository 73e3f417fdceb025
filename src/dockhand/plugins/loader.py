"""
Plugin resolution.

Combines the catalog (where is the plugin?) with the validator (is it
usable?) and caches the outcome per plugin name, so each candidate is
queried at most once per invocation of the tool.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from dockhand.config import Settings
from dockhand.plugins.catalog import PluginCatalog
from dockhand.plugins.manifest import InvalidPlugin, PluginDescriptor, PluginResult
from dockhand.plugins.validator import MetadataValidator

logger = logging.getLogger(__name__)


class PluginLoader:
    """
    Discovers and validates CLI plugins.

    Lookups by name only query that one candidate; discover_plugins()
    queries everything on the search path (used for help listings).
    """

    def __init__(self, catalog: PluginCatalog, validator: MetadataValidator) -> None:
        """
        Initialize the plugin loader.

        Args:
            catalog: Candidate discovery on the search path
            validator: Metadata validation for candidates
        """
        self.catalog = catalog
        self.validator = validator

        # Cache of resolution results (name -> result, None for not found)
        self._results: Dict[str, Optional[PluginResult]] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        config_dir: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
    ) -> "PluginLoader":
        """
        Build a loader for the configured search path.

        Args:
            settings: Application settings
            config_dir: Effective config dir (e.g. from --config)
            env: Environment for metadata queries
        """
        catalog = PluginCatalog(settings.plugin_search_dirs(config_dir))
        validator = MetadataValidator(timeout=settings.metadata_timeout, env=env)
        return cls(catalog, validator)

    def resolve(self, name: str) -> Optional[PluginResult]:
        """
        Resolve a single plugin by name.

        Args:
            name: Top-level command name

        Returns:
            PluginDescriptor, InvalidPlugin, or None if no candidate exists
        """
        if name in self._results:
            return self._results[name]

        candidate = self.catalog.lookup(name)
        result = self.validator.validate(candidate) if candidate else None
        self._results[name] = result
        return result

    def discover_plugins(self) -> List[PluginResult]:
        """
        Resolve every candidate on the search path.

        Returns:
            Results sorted by plugin name
        """
        results: List[PluginResult] = []
        for candidate in self.catalog.candidates():
            if candidate.name not in self._results:
                self._results[candidate.name] = self.validator.validate(candidate)
            result = self._results[candidate.name]
            if result is not None:
                results.append(result)

        invalid = sum(1 for result in results if isinstance(result, InvalidPlugin))
        logger.debug(f"Discovered {len(results)} plugin(s), {invalid} invalid")
        return results

    def get_descriptor(self, name: str) -> Optional[PluginDescriptor]:
        """
        Get the validated descriptor for a plugin.

        Returns:
            Descriptor, or None if the plugin is missing or invalid
        """
        result = self.resolve(name)
        return result if isinstance(result, PluginDescriptor) else None
