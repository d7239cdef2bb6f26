"""Comment moderation through a client's configured LLM provider."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from commentlens.ai.models import ModerationVerdict
from commentlens.ai.prompts import build_moderation_prompt, is_rejection
from commentlens.ai.providers import create_provider, get_provider_spec
from commentlens.core import (
    ConfigurationError,
    LogContext,
    UnsupportedProviderError,
    get_logger,
    get_settings,
)
from commentlens.storage import ClientConfigSource, resolve_client_config

logger = get_logger(__name__)

CONFIG_ERROR_REASON = "Error getting client configuration."
DISABLED_REASON = "Moderation disabled."
PROVIDER_ERROR_REASON = "Error moderating with the provider."


def _default_domain() -> str:
    return get_settings().moderation_config_domain


@dataclass
class CommentModerator:
    """Accept/reject moderation of user comments.

    Each call resolves the client's configuration, builds a request-scoped
    provider adapter and classifies the provider's textual verdict. Failures
    are reported in the returned verdict, never raised.
    """

    config_source: ClientConfigSource
    domain: str = field(default_factory=_default_domain)

    async def moderate(
        self,
        client_id: str,
        text: str,
        config_override: Mapping[str, Any] | None = None,
    ) -> ModerationVerdict:
        """Moderate a single comment.

        Args:
            client_id: Client whose configuration selects the provider
            text: Comment text
            config_override: Tuning parameters replacing the stored
                ``configJson`` for this call only

        Returns:
            ModerationVerdict; ``is_rejected`` is None when moderation
            could not be performed
        """
        with LogContext(client_id=client_id):
            try:
                client_config = await resolve_client_config(
                    self.config_source, client_id, self.domain
                )
            except ConfigurationError as e:
                logger.error("Error getting client configuration", error=e.message)
                return ModerationVerdict(is_rejected=None, reason=CONFIG_ERROR_REASON)

            if not client_config.enabled:
                return ModerationVerdict(is_rejected=None, reason=DISABLED_REASON)

            if isinstance(config_override, Mapping):
                client_config = client_config.with_config_json(dict(config_override))

            try:
                get_provider_spec(client_config.provider)
            except UnsupportedProviderError as e:
                logger.warning("Unsupported provider", provider=client_config.provider)
                return ModerationVerdict(is_rejected=None, reason=e.message)

            try:
                provider = create_provider(
                    client_config.provider,
                    client_config.api_key,
                    client_config.config_json,
                )
                prompt = build_moderation_prompt(text, client_config.prompt)
                result = await provider.invoke(prompt)
            except Exception as e:
                logger.error(
                    "Error moderating with the provider",
                    provider=client_config.provider,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return ModerationVerdict(is_rejected=None, reason=PROVIDER_ERROR_REASON)

            verdict = ModerationVerdict(is_rejected=is_rejection(result), reason=result)

            logger.info(
                "Comment moderated",
                provider=client_config.provider,
                model=provider.model,
                is_rejected=verdict.is_rejected,
            )

            return verdict


async def moderate_comment(
    config_source: ClientConfigSource,
    client_id: str,
    text: str,
    config_override: Mapping[str, Any] | None = None,
) -> ModerationVerdict:
    """Convenience function to moderate a single comment.

    Args:
        config_source: Client configuration source
        client_id: Client ID
        text: Comment text
        config_override: Optional tuning-parameter override

    Returns:
        ModerationVerdict
    """
    moderator = CommentModerator(config_source=config_source)
    return await moderator.moderate(client_id, text, config_override)
