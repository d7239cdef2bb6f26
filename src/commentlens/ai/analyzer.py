"""Incremental analysis of comment threads through an LLM provider."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from commentlens.ai.models import AnalysisOutcome, AnalysisResult, Comment, parse_iso_timestamp
from commentlens.ai.prompts import build_analysis_prompt
from commentlens.ai.providers import create_provider, get_provider_spec
from commentlens.core import (
    ConfigurationError,
    LogContext,
    ResponseParseError,
    UnsupportedProviderError,
    get_logger,
    get_settings,
)
from commentlens.storage import ClientConfigSource, resolve_client_config

logger = get_logger(__name__)

CONFIG_ERROR_REASON = "Error getting client configuration."
DISABLED_REASON = "Comment analysis disabled."
PROVIDER_ERROR_REASON = "Error analyzing with the provider."

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_analysis_response(response: str, provider: str | None = None) -> AnalysisResult:
    """Parse a provider response into an analysis mapping.

    Markdown code fences around the JSON are tolerated.

    Raises:
        ResponseParseError: If the response is not a JSON object
    """
    cleaned = response.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    cleaned = cleaned.strip()

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(
            "Failed to parse JSON response",
            provider=provider,
            error=str(e),
            response=response[:500],
        )
        raise ResponseParseError(
            f"Failed to parse analysis response as JSON: {e}",
            provider=provider,
        ) from e

    if not isinstance(parsed, dict):
        raise ResponseParseError(
            f"Analysis response must be a JSON object, got {type(parsed).__name__}",
            provider=provider,
        )

    return parsed


def select_new_comments(
    comments: Iterable[Comment | Mapping[str, Any]],
    last_analyzed_timestamp: str | datetime | None = None,
    limit: int | None = None,
) -> list[Comment]:
    """Pick the comments a follow-up analysis should look at.

    Keeps comments created strictly after ``last_analyzed_timestamp``
    (all comments when it is absent), newest first, at most ``limit``.
    Comments whose timestamp cannot be parsed are kept and sorted last.

    Args:
        comments: Candidate comments
        last_analyzed_timestamp: Timestamp carried by the previous analysis
        limit: Maximum comments to return (defaults to settings)

    Returns:
        Selected comments
    """
    if limit is None:
        limit = get_settings().analysis_max_comments

    cutoff = parse_iso_timestamp(last_analyzed_timestamp)
    thread = [c if isinstance(c, Comment) else Comment.model_validate(c) for c in comments]

    selected = []
    for comment in thread:
        created = comment.created_at_datetime
        if cutoff is not None and created is not None and created <= cutoff:
            continue
        selected.append(comment)

    selected.sort(key=lambda c: c.created_at_datetime or _EPOCH, reverse=True)
    return selected[:limit]


@dataclass
class CommentAnalyzer:
    """Discussion summary, highlights and sentiment for comment threads.

    Merging new comments into a previous analysis is performed by the
    model following the prompt rules; the parsed JSON is returned as-is.
    """

    config_source: ClientConfigSource
    domain: str = field(default_factory=lambda: get_settings().analysis_config_domain)

    async def analyze(
        self,
        client_id: str,
        title: str,
        summary: str,
        comments: Iterable[Comment | Mapping[str, Any]],
        previous_analysis: Mapping[str, Any] | None = None,
    ) -> AnalysisOutcome:
        """Analyze new comments, building on a previous analysis if given.

        Args:
            client_id: Client whose configuration selects the provider
            title: Article title
            summary: Article summary
            comments: New comments since the previous analysis
            previous_analysis: Prior analysis result, if any

        Returns:
            AnalysisOutcome; ``analysis`` is None when analysis failed
        """
        with LogContext(client_id=client_id):
            try:
                client_config = await resolve_client_config(
                    self.config_source, client_id, self.domain
                )
            except ConfigurationError as e:
                logger.error("Error getting client configuration", error=e.message)
                return AnalysisOutcome(analysis=None, reason=CONFIG_ERROR_REASON)

            if not client_config.enabled:
                return AnalysisOutcome(analysis=None, reason=DISABLED_REASON)

            try:
                get_provider_spec(client_config.provider)
            except UnsupportedProviderError as e:
                logger.warning("Unsupported provider", provider=client_config.provider)
                return AnalysisOutcome(analysis=None, reason=e.message)

            try:
                provider = create_provider(
                    client_config.provider,
                    client_config.api_key,
                    client_config.config_json,
                )
                thread = [c if isinstance(c, Comment) else Comment.model_validate(c) for c in comments]
                prompt = build_analysis_prompt(title, summary, thread, previous_analysis)
                result = await provider.invoke(prompt)
                analysis = parse_analysis_response(result, provider=client_config.provider)
            except Exception as e:
                logger.error(
                    "Error analyzing with the provider",
                    provider=client_config.provider,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return AnalysisOutcome(analysis=None, reason=PROVIDER_ERROR_REASON)

            highlights = analysis.get("highlightedComments")
            logger.info(
                "Comment thread analyzed",
                provider=client_config.provider,
                model=provider.model,
                new_comments=len(thread),
                incremental=bool(previous_analysis),
                highlighted=len(highlights) if isinstance(highlights, list) else None,
            )

            return AnalysisOutcome(analysis=analysis, reason=None)


async def analyze_comments(
    config_source: ClientConfigSource,
    client_id: str,
    title: str,
    summary: str,
    comments: Iterable[Comment | Mapping[str, Any]],
    previous_analysis: Mapping[str, Any] | None = None,
) -> AnalysisOutcome:
    """Convenience function to analyze a comment thread.

    Returns:
        AnalysisOutcome
    """
    analyzer = CommentAnalyzer(config_source=config_source)
    return await analyzer.analyze(client_id, title, summary, comments, previous_analysis)
