"""Storage module - client configuration lookup."""

from commentlens.storage.client_config import (
    ClientConfigSource,
    StaticClientConfigSource,
    get_value_by_path,
    resolve_client_config,
)
from commentlens.storage.models import ClientConfiguration

__all__ = [
    "ClientConfiguration",
    "ClientConfigSource",
    "StaticClientConfigSource",
    "get_value_by_path",
    "resolve_client_config",
]
