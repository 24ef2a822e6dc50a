"""Exception hierarchy and process exit codes."""

from enum import IntEnum
from typing import Any, List, Optional


class ExitCode(IntEnum):
    """Exit codes returned by the command-line entry point."""
    SUCCESS = 0
    VALIDATION_ERROR = 1
    CONNECTION_ERROR = 2
    CONFIG_ERROR = 3
    TRANSFER_FAILED = 4
    CANCELLED = 130


class TransferError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(TransferError):
    """Malformed options, patterns or configuration files."""


class EndpointError(TransferError):
    """A call against a source or target endpoint failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Network failures, 5xx and 429 are worth another attempt."""
        if self.status_code is None:
            return True
        return self.status_code >= 500 or self.status_code == 429


class AuthenticationError(EndpointError):
    """The endpoint rejected the API key."""

    def __init__(self, message: str, status_code: Optional[int] = 401):
        super().__init__(message, status_code)

    @property
    def retryable(self) -> bool:
        return False


class EndpointConnectionError(TransferError):
    """Source or target cannot be reached or refused our credentials."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(f"{endpoint}: {message}")
        self.endpoint = endpoint
        self.message = message


class PluginNotFoundError(TransferError):
    """No plugin with the requested name and type is registered."""

    def __init__(self, plugin_type: str, name: str):
        super().__init__(f"{plugin_type} plugin not found: {name}")
        self.plugin_type = plugin_type
        self.name = name


class ValidationError(TransferError):
    """Duplicate internal IDs were found."""

    def __init__(self, messages: List[str], duplicates: List[Any], truncated: bool = False):
        super().__init__("Validation failed: duplicate IDs detected")
        self.messages = messages
        self.duplicates = duplicates
        self.truncated = truncated


class PerItemError(TransferError):
    """A single record could not be transferred."""

    def __init__(self, record_id: str, name: str, reason: str):
        super().__init__(f"{name} ({record_id}): {reason}")
        self.record_id = record_id
        self.name = name
        self.reason = reason


class RetryExhaustedError(TransferError):
    """All retry attempts failed."""

    def __init__(self, last_error: Exception, attempts: int):
        super().__init__(f"Failed after {attempts} attempts: {last_error}")
        self.last_error = last_error
        self.attempts = attempts
