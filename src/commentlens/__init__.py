"""commentlens - LLM-backed comment moderation and discussion analysis."""

__version__ = "0.1.0"
