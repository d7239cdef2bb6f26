"""AI module - LLM-backed comment moderation and thread analysis."""

from commentlens.ai.analyzer import (
    CommentAnalyzer,
    analyze_comments,
    parse_analysis_response,
    select_new_comments,
)
from commentlens.ai.models import (
    AnalysisOutcome,
    AnalysisResult,
    Comment,
    LLMProvider,
    ModerationVerdict,
)
from commentlens.ai.moderator import CommentModerator, moderate_comment
from commentlens.ai.prompts import (
    ANALYSIS_PROMPT_TEMPLATE,
    MODERATION_PROMPT_TEMPLATE,
    build_analysis_prompt,
    build_moderation_prompt,
)
from commentlens.ai.providers import (
    PROVIDER_SPECS,
    ProviderAdapter,
    ProviderSpec,
    create_provider,
    get_provider_spec,
    register_provider,
)

__all__ = [
    # Models
    "LLMProvider",
    "Comment",
    "AnalysisResult",
    "AnalysisOutcome",
    "ModerationVerdict",
    # Providers
    "ProviderSpec",
    "ProviderAdapter",
    "PROVIDER_SPECS",
    "register_provider",
    "get_provider_spec",
    "create_provider",
    # Prompts
    "MODERATION_PROMPT_TEMPLATE",
    "ANALYSIS_PROMPT_TEMPLATE",
    "build_moderation_prompt",
    "build_analysis_prompt",
    # Orchestrators
    "CommentModerator",
    "moderate_comment",
    "CommentAnalyzer",
    "analyze_comments",
    "parse_analysis_response",
    "select_new_comments",
]
