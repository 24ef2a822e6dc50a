"""Plugin interfaces for deduplicators, validators and reporters."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.record import Record, ValidationIssue
from ..models.transfer import ReportFile, TransferResult


class PluginType(str, Enum):
    """Kinds of plugin the registry knows about."""
    DEDUPLICATOR = "deduplicator"
    VALIDATOR = "validator"
    REPORTER = "reporter"


class BasePlugin(ABC):
    """
    Common descriptor shared by every plugin.

    Subclasses set ``name``, ``version``, ``plugin_type`` and
    ``description`` as class attributes. Options are merged over
    ``default_options``.
    """

    name: str = ""
    version: str = "1.0.0"
    plugin_type: PluginType
    description: str = ""
    default_options: Dict[str, Any] = {}

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        self.enabled = True
        self.options: Dict[str, Any] = dict(self.default_options)
        if options:
            self.options.update(options)

    def set_options(self, options: Dict[str, Any]) -> "BasePlugin":
        self.options.update(options)
        return self

    def get_option(self, key: str, default: Any = None) -> Any:
        value = self.options.get(key)
        return default if value is None else value

    def validate_options(self) -> None:
        """
        Check the current options before the plugin is used.

        Raises:
            ConfigError: an option is out of range
        """

    def enable(self) -> "BasePlugin":
        self.enabled = True
        return self

    def disable(self) -> "BasePlugin":
        self.enabled = False
        return self

    def get_info(self) -> Dict[str, Any]:
        """Plugin descriptor as a dictionary."""
        return {
            "name": self.name,
            "version": self.version,
            "type": self.plugin_type.value,
            "enabled": self.enabled,
            "description": self.description,
            "options": dict(self.options),
        }


class Deduplicator(BasePlugin):
    """Decides whether a candidate already exists at the target."""

    plugin_type = PluginType.DEDUPLICATOR

    def __init__(self, options: Optional[Dict[str, Any]] = None):
        super().__init__(options)
        self._last_reason: Optional[str] = None

    @abstractmethod
    def is_duplicate(self, candidate: Record, existing: List[Record]) -> bool:
        pass

    def reason(self) -> Optional[str]:
        """Explanation of the most recent decision, None before the first call."""
        return self._last_reason


class Validator(BasePlugin):
    """Checks structural integrity of a single record."""

    plugin_type = PluginType.VALIDATOR

    @abstractmethod
    def validate(self, record: Record) -> List[ValidationIssue]:
        pass


class Reporter(BasePlugin):
    """Renders a transfer result into an artifact."""

    plugin_type = PluginType.REPORTER
    file_format: str = ""

    @abstractmethod
    def generate(self, result: TransferResult) -> ReportFile:
        pass
