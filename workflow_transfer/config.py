"""Application configuration loaded from JSON files and the environment."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigError
from .models.transfer import TransferOptions
from .models.validation import ValidationConfig

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "SOURCE_N8N_URL": ("source", "url"),
    "SOURCE_N8N_API_KEY": ("source", "api_key"),
    "TARGET_N8N_URL": ("target", "url"),
    "TARGET_N8N_API_KEY": ("target", "api_key"),
}


class EndpointConfig(BaseModel):
    """Connection settings for one n8n instance."""
    model_config = ConfigDict(extra="forbid")

    url: str
    api_key: SecretStr
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"URL must start with http:// or https://: {value!r}")
        return value.rstrip("/")


class AppConfig(BaseModel):
    """Everything a transfer or validation run needs."""
    model_config = ConfigDict(extra="forbid")

    source: EndpointConfig
    target: EndpointConfig
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    transfer: TransferOptions = Field(default_factory=TransferOptions)
    reports_dir: str = "./reports"
    plugins_dir: Optional[str] = None
    max_failures: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        """Create from dictionary representation."""
        try:
            config = cls.model_validate(data)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        if config.source.url == config.target.url:
            logger.warning("Source and target URLs are identical")
        return config


def _apply_env(data: Dict[str, Any], environ: Mapping[str, str]) -> Dict[str, Any]:
    for variable, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            data.setdefault(section, {})[key] = value

    reports_dir = environ.get("WORKFLOW_TRANSFER_REPORTS_DIR")
    if reports_dir:
        data["reports_dir"] = reports_dir
    return data


def load_config(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> AppConfig:
    """
    Load configuration from a JSON file and apply environment overrides.

    Args:
        path: JSON config file; optional when the environment is complete
        environ: Environment mapping, defaults to os.environ

    Returns:
        Validated AppConfig
    """
    data: Dict[str, Any] = {}

    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(config_path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Config file {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")

    data = _apply_env(data, os.environ if environ is None else environ)

    for section in ("source", "target"):
        if section not in data:
            raise ConfigError(
                f"Missing {section} endpoint: set it in the config file or via "
                f"{section.upper()}_N8N_URL / {section.upper()}_N8N_API_KEY"
            )

    return AppConfig.from_dict(data)


def load_validation_config(path: Optional[str] = None) -> ValidationConfig:
    """Read only the ``validation`` section of a config file."""
    if not path:
        return ValidationConfig()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    return ValidationConfig.from_dict(data.get("validation") if isinstance(data, dict) else None)
