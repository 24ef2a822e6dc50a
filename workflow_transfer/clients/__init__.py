"""Endpoint clients for source and target services."""

from .base import BaseEndpoint
from .n8n_client import N8NClient

__all__ = [
    "BaseEndpoint",
    "N8NClient",
]
