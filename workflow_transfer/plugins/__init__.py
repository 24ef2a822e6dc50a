"""Pluggable deduplicators, validators and reporters."""

from .base import BasePlugin, Deduplicator, PluginType, Reporter, Validator
from .deduplicators import FuzzyDeduplicator, StandardDeduplicator
from .registry import BUILTIN_PLUGINS, DiscoveryResult, PluginRegistry, create_default_registry
from .reporters import CSVReporter, JSONReporter, MarkdownReporter
from .validators import IntegrityValidator, SchemaValidator

__all__ = [
    "BasePlugin",
    "Deduplicator",
    "PluginType",
    "Reporter",
    "Validator",
    "FuzzyDeduplicator",
    "StandardDeduplicator",
    "BUILTIN_PLUGINS",
    "DiscoveryResult",
    "PluginRegistry",
    "create_default_registry",
    "CSVReporter",
    "JSONReporter",
    "MarkdownReporter",
    "IntegrityValidator",
    "SchemaValidator",
]
