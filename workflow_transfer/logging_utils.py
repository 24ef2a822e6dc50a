"""Logging setup and secret masking."""

import logging
import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_KEY_VALUE_PATTERN = re.compile(
    r"(x-n8n-api-key|api[_-]?key|token|secret|password|pwd)([\"'\s:=]+)([^\"'\s&,}]+)",
    re.IGNORECASE,
)
_BEARER_PATTERN = re.compile(r"\b(Bearer\s+)([A-Za-z0-9_\-.]+)", re.IGNORECASE)
_PREFIXED_KEY_PATTERN = re.compile(r"\bn8n_api_[A-Za-z0-9_-]+", re.IGNORECASE)

_SECRET_QUERY_KEYS = {"apikey", "api_key", "token", "access_token", "secret"}


def mask_secret(value: Optional[str]) -> str:
    """Keep only the last three characters of a secret visible."""
    if not value:
        return ""
    if len(value) <= 3:
        return "***"
    return "***" + value[-3:]


def mask_secrets(text: str) -> str:
    """Mask anything in free text that looks like a credential."""
    if not text:
        return text
    text = _KEY_VALUE_PATTERN.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{mask_secret(m.group(3))}", text
    )
    text = _BEARER_PATTERN.sub(lambda m: f"{m.group(1)}{mask_secret(m.group(2))}", text)
    text = _PREFIXED_KEY_PATTERN.sub(lambda m: mask_secret(m.group(0)), text)
    return text


def mask_url(url: Optional[str]) -> str:
    """Strip user info and secret query parameters from a URL for display."""
    if not url:
        return ""
    parts = urlsplit(url)
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    query = urlencode([
        (key, mask_secret(value) if key.lower() in _SECRET_QUERY_KEYS else value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
    ])
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class SecretMaskingFilter(logging.Filter):
    """Rewrites log records so that credentials never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask_secrets(record.getMessage())
        record.args = ()
        return True


def configure_logging(verbose: bool = False) -> None:
    """Set up root logging for command-line and API entry points."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format=LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(log_level)
    for handler in root.handlers:
        if not any(isinstance(f, SecretMaskingFilter) for f in handler.filters):
            handler.addFilter(SecretMaskingFilter())
