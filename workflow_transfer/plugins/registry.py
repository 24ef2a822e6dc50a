"""Plugin registry: holds named, typed plugin instances."""

import importlib.util
import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from ..errors import PluginNotFoundError
from .base import BasePlugin, PluginType
from .deduplicators import FuzzyDeduplicator, StandardDeduplicator
from .reporters import CSVReporter, JSONReporter, MarkdownReporter
from .validators import IntegrityValidator, SchemaValidator

logger = logging.getLogger(__name__)

BUILTIN_PLUGINS: Dict[str, Callable[..., BasePlugin]] = {
    "standard": StandardDeduplicator,
    "fuzzy": FuzzyDeduplicator,
    "integrity": IntegrityValidator,
    "schema": SchemaValidator,
    "json": JSONReporter,
    "markdown": MarkdownReporter,
    "csv": CSVReporter,
}


@dataclass
class DiscoveryResult:
    """Summary of a directory scan."""
    total: int = 0
    loaded: int = 0
    failed: int = 0
    plugins: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "loaded": self.loaded,
            "failed": self.failed,
            "plugins": list(self.plugins),
            "errors": list(self.errors),
        }


class PluginRegistry:
    """
    Registry of plugins keyed by (type, name).

    Names are matched case-insensitively. Registering a name that already
    exists for the same type replaces the old plugin and logs a warning.
    """

    def __init__(self):
        self._plugins: Dict[Tuple[PluginType, str], BasePlugin] = {}

    @staticmethod
    def _normalize(name: str, plugin_type: Optional[PluginType] = None) -> str:
        key = name.strip().lower()
        types = [plugin_type] if plugin_type else list(PluginType)
        for t in types:
            suffix = f"-{t.value}"
            if key.endswith(suffix):
                return key[: -len(suffix)]
        return key

    def register(self, plugin: BasePlugin) -> BasePlugin:
        """Add a plugin instance, replacing any plugin of the same type and name."""
        if not isinstance(plugin, BasePlugin):
            raise TypeError(f"Not a plugin: {plugin!r}")
        if not plugin.name:
            raise ValueError(f"Plugin {type(plugin).__name__} has no name")

        key = (plugin.plugin_type, self._normalize(plugin.name, plugin.plugin_type))
        if key in self._plugins:
            logger.warning(
                f"Plugin '{plugin.name}' ({plugin.plugin_type.value}) already registered, replacing it"
            )
        self._plugins[key] = plugin
        logger.debug(f"Registered {plugin.plugin_type.value} plugin: {plugin.name} v{plugin.version}")
        return plugin

    def unregister(self, name: str, plugin_type: Optional[PluginType] = None) -> bool:
        """Remove matching plugins; returns True if any were removed."""
        targets = [
            key for key in self._plugins
            if key[1] == self._normalize(name, key[0]) and (plugin_type is None or key[0] == plugin_type)
        ]
        for key in targets:
            del self._plugins[key]
        return bool(targets)

    def get(self, name: str, plugin_type: Optional[PluginType] = None) -> Optional[BasePlugin]:
        """Look a plugin up by name, optionally restricted to one type."""
        types = [plugin_type] if plugin_type else list(PluginType)
        for t in types:
            plugin = self._plugins.get((t, self._normalize(name, t)))
            if plugin is not None:
                return plugin
        return None

    def resolve(self, name: str, plugin_type: PluginType) -> BasePlugin:
        """Like get(), but a missing plugin is an error."""
        plugin = self.get(name, plugin_type)
        if plugin is None:
            raise PluginNotFoundError(plugin_type.value, name)
        return plugin

    def get_all(self) -> List[BasePlugin]:
        return list(self._plugins.values())

    def list_by_type(self, plugin_type: PluginType) -> List[BasePlugin]:
        return [p for (t, _), p in self._plugins.items() if t == plugin_type]

    def clear(self) -> None:
        self._plugins.clear()

    def get_stats(self) -> Dict[str, Any]:
        by_type = {t.value: len(self.list_by_type(t)) for t in PluginType}
        return {
            "total": len(self._plugins),
            "by_type": by_type,
            "enabled": sum(1 for p in self._plugins.values() if p.enabled),
        }

    def discover(self, directory: Union[str, Path]) -> DiscoveryResult:
        """
        Import every module in a directory and register the plugins it defines.

        A module contributes every concrete BasePlugin subclass it defines,
        plus anything listed in a module-level ``PLUGINS`` sequence. A
        missing directory is skipped with a warning.
        """
        result = DiscoveryResult()
        path = Path(directory)

        if not path.is_dir():
            logger.warning(f"Plugin directory does not exist: {directory}")
            return result

        for file_path in sorted(path.glob("*.py")):
            if file_path.name.startswith("_"):
                continue
            result.total += 1
            try:
                plugins = self._load_module_plugins(file_path)
                for plugin in plugins:
                    self.register(plugin)
                    result.plugins.append(plugin.name)
                result.loaded += 1
                logger.info(f"Loaded {len(plugins)} plugin(s) from {file_path}")
            except Exception as e:
                result.failed += 1
                result.errors.append({"file": str(file_path), "error": str(e)})
                logger.error(f"Failed to load plugins from {file_path}: {e}")

        return result

    @staticmethod
    def _load_module_plugins(file_path: Path) -> List[BasePlugin]:
        module_name = f"workflow_transfer_plugin_{file_path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot import {file_path}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        candidates: List[Union[BasePlugin, Type[BasePlugin]]] = list(getattr(module, "PLUGINS", []))
        listed = {c if isinstance(c, type) else type(c) for c in candidates}
        for _, obj in inspect.getmembers(module, inspect.isclass):
            if (
                issubclass(obj, BasePlugin)
                and obj.__module__ == module.__name__
                and not inspect.isabstract(obj)
                and obj.name
                and obj not in listed
            ):
                candidates.append(obj)

        plugins = []
        for candidate in candidates:
            plugin = candidate() if isinstance(candidate, type) else candidate
            if not isinstance(plugin, BasePlugin):
                raise TypeError(f"{file_path.name} exports a non-plugin: {candidate!r}")
            plugins.append(plugin)
        return plugins


def create_default_registry(
    output_dir: Optional[str] = None,
    plugins_dir: Optional[str] = None
) -> PluginRegistry:
    """Registry with every builtin plugin, plus any found in ``plugins_dir``."""
    registry = PluginRegistry()
    for name, factory in BUILTIN_PLUGINS.items():
        plugin = factory()
        if plugin.plugin_type == PluginType.REPORTER and output_dir:
            plugin.set_options({"output_dir": output_dir})
        registry.register(plugin)

    if plugins_dir:
        registry.discover(plugins_dir)

    return registry
