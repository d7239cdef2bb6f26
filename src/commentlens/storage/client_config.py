"""Client configuration lookup.

The configuration store itself lives outside this package; orchestrators only
depend on the :class:`ClientConfigSource` protocol.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from commentlens.core import ConfigurationError, get_logger, get_settings
from commentlens.storage.models import ClientConfiguration

logger = get_logger(__name__)

REQUIRED_FIELDS = ("enabled", "provider")


@runtime_checkable
class ClientConfigSource(Protocol):
    """Anything that can return a client's configuration for a domain."""

    async def get_client_config(self, client_id: str, domain: str) -> Any:
        """Return the configuration at ``domain`` for ``client_id``, or None."""
        ...


def get_value_by_path(obj: Any, path: str) -> Any:
    """Follow a dot-separated path through nested mappings.

    Returns None when any segment is missing.
    """
    if obj is None:
        return None
    if not path:
        return obj

    current = obj
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current


class StaticClientConfigSource:
    """In-memory configuration source keyed by client id."""

    def __init__(self, configs: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._configs: dict[str, Mapping[str, Any]] = dict(configs or {})

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._configs

    async def get_client_config(self, client_id: str, domain: str = "") -> Any:
        return get_value_by_path(self._configs.get(client_id), domain)

    @classmethod
    def from_json_file(cls, path: Path | str | None = None) -> "StaticClientConfigSource":
        """Load ``{client_id: config}`` from a JSON file.

        Args:
            path: JSON file path (defaults to settings.client_configs_path)

        Raises:
            ConfigurationError: If no path is configured or the file is unreadable
        """
        path = path or get_settings().client_configs_path
        if not path:
            raise ConfigurationError("No client configuration file configured")

        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Cannot load client configurations from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Client configuration file {path} must contain a JSON object")

        logger.info("Client configurations loaded", path=str(path), clients=len(data))
        return cls(data)


async def resolve_client_config(
    source: ClientConfigSource,
    client_id: str,
    domain: str,
) -> ClientConfiguration:
    """Fetch and validate a client's configuration.

    Args:
        source: Configuration source
        client_id: Client identifier
        domain: Configuration domain (e.g. ``"moderation"``)

    Returns:
        Validated client configuration

    Raises:
        ConfigurationError: If the lookup fails or the result is malformed
    """
    try:
        raw = await source.get_client_config(client_id, domain)
    except Exception as e:
        raise ConfigurationError(
            f"Client configuration lookup failed: {e}",
            client_id=client_id,
        ) from e

    if raw is None or not isinstance(raw, Mapping):
        raise ConfigurationError("Invalid or missing client configuration.", client_id=client_id)

    missing = [name for name in REQUIRED_FIELDS if name not in raw]
    if missing:
        raise ConfigurationError(
            f"Incomplete client configuration: missing required properties ({', '.join(missing)}).",
            client_id=client_id,
        )

    try:
        return ClientConfiguration.model_validate(dict(raw))
    except ValidationError as e:
        raise ConfigurationError(
            f"Malformed client configuration: {e.error_count()} invalid field(s)",
            client_id=client_id,
        ) from e
