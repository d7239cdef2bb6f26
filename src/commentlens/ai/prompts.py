"""Prompt templates for comment moderation and thread analysis."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from string import Template
from typing import Any

from commentlens.ai.models import Comment, to_iso_timestamp

REJECTION_MARKER = "Comment Rejected"
REJECTION_REPLY = "Comment Rejected. Does not comply with site standards."
APPROVAL_REPLY = "Comentario Aprobado."

TEXT_PLACEHOLDER = "{text}"

MAX_HIGHLIGHTED_COMMENTS = 3
MAX_DEBATE_SUMMARY_CHARS = 350

MODERATION_PROMPT_TEMPLATE = Template("""Vas a trabajar como moderador de comentarios para una página web de deportes en Argentina. Tu tarea es analizar los comentarios enviados por los usuarios y decidir si deben ser aprobados o rechazados.

Criterios de moderación:
- **Contenido prohibido:**
  - Si el comentario menciona explícitamente a una persona que forme o haya formado parte del poder ejecutivo, legislativo o judicial, gobernaciones argentinas, o hace una crítica explícita al gobierno.
  - Responde con: "${rejection_reply}"

- **Contenido permitido:**
  - Si el comentario no infringe las consignas anteriores, responde con: "${approval_reply}"

Comentario: ${text}""")


def build_moderation_prompt(text: str, custom_template: str | None = None) -> str:
    """Build the moderation prompt for a comment.

    A custom template is used only when it contains the ``{text}``
    placeholder; every occurrence is replaced with the literal text.

    Args:
        text: Comment text to moderate
        custom_template: Optional client-specific template

    Returns:
        Formatted prompt string
    """
    if custom_template and TEXT_PLACEHOLDER in custom_template:
        return custom_template.replace(TEXT_PLACEHOLDER, text)

    return MODERATION_PROMPT_TEMPLATE.substitute(
        rejection_reply=REJECTION_REPLY,
        approval_reply=APPROVAL_REPLY,
        text=text,
    )


def is_rejection(response: str) -> bool:
    """Whether a moderation response rejects the comment."""
    return REJECTION_MARKER in response


ANALYSIS_PROMPT_TEMPLATE = Template("""You are an assistant that analyzes comment threads in news articles.

You will receive:
- The TITLE of the article
- The SUMMARY (short description/lead of the article)
- A THREAD of NEW COMMENTS (each with _id, content, repliesCount, likesCount, and created_at)
- Optionally, the PREVIOUS ANALYSIS of older comments in the same thread

Your task is to return an analysis in valid JSON with the following structure (keys fixed in English, values in English):

{
  "title": ${title_json},
  "debateSummary": "Summary of the main discussion points in the comments",
  "highlightedComments": [
    {
      "_id": "Comment ID",
      "comment": "Comment content",
      "reasonHighlighted": "Why this comment was selected (e.g., well-argued, provides evidence, or introduces new ideas)"
    }
  ],
  "sentiment": {
    "positive": "Percentage of positive comments",
    "neutral": "Percentage of neutral comments",
    "negative": "Percentage of negative comments"
  },
  "lastAnalyzedCommentTimestamp": "ISO timestamp of the most recent comment analyzed"
}

Rules:
- Always respond in **English** for all values.
- Replace descriptions with real content, preserving JSON keys exactly as given.
- highlightedComments must contain at most ${max_highlighted} entries. Choose the ${max_highlighted} most relevant comments across the previous highlighted comments and the new comments combined (well-argued, evidence-based, or novel ideas). Use repliesCount and likesCount to gauge impact.
- If there are no new comments, reuse the previous highlightedComments exactly as given; do not invent or fabricate new ones.
- If there are no new comments and no previous highlighted comments, return an empty highlightedComments list.
- debateSummary must summarize the whole discussion (previous analysis plus new comments) in at most ${max_summary} characters.
- Sentiment values must be percentages as strings (e.g., "50%") that sum to 100%, recomputed over the whole discussion.
- Consider repliesCount, likesCount, and created_at for context, but do not include them in the output JSON except for lastAnalyzedCommentTimestamp.
- Set lastAnalyzedCommentTimestamp to the created_at of the most recent new comment. If there are no new comments, keep the previous lastAnalyzedCommentTimestamp.
- Output must be strictly valid JSON, with no additional text or markdown formatting.

TITLE: ${title}

SUMMARY: ${summary}
${previous_section}
THREAD OF NEW COMMENTS:
${comments}
""")

PREVIOUS_ANALYSIS_TEMPLATE = Template("""
PREVIOUS ANALYSIS (JSON):
${previous_json}

LAST ANALYZED COMMENT TIMESTAMP: ${last_timestamp}
""")

NO_NEW_COMMENTS = "No new comments since the last analysis."


def _json_default(value: Any) -> Any:
    try:
        return to_iso_timestamp(value)
    except TypeError:
        return str(value)


def format_comment_line(comment: Comment) -> str:
    """Render one comment as a thread line."""
    return (
        f"- {comment.id}: {comment.text} "
        f"(Replies: {comment.replies_count}, Likes: {comment.likes_count}, "
        f"Posted: {comment.created_at})"
    )


def build_analysis_prompt(
    title: str,
    summary: str,
    comments: Iterable[Comment | Mapping[str, Any]],
    previous_analysis: Mapping[str, Any] | None = None,
) -> str:
    """Build the thread analysis prompt.

    Args:
        title: Article title
        summary: Article summary or lead
        comments: New comments since the previous analysis
        previous_analysis: Prior analysis result, if any

    Returns:
        Formatted prompt string
    """
    thread = [
        c if isinstance(c, Comment) else Comment.model_validate(c)
        for c in comments
    ]
    comments_text = "\n".join(format_comment_line(c) for c in thread) if thread else NO_NEW_COMMENTS

    previous_section = ""
    if previous_analysis:
        last_timestamp = previous_analysis.get("lastAnalyzedCommentTimestamp")
        previous_section = PREVIOUS_ANALYSIS_TEMPLATE.substitute(
            previous_json=json.dumps(
                dict(previous_analysis),
                ensure_ascii=False,
                indent=2,
                default=_json_default,
            ),
            last_timestamp=_json_default(last_timestamp) if last_timestamp else "none",
        )

    return ANALYSIS_PROMPT_TEMPLATE.substitute(
        title=title,
        title_json=json.dumps(title, ensure_ascii=False),
        summary=summary,
        previous_section=previous_section,
        comments=comments_text,
        max_highlighted=MAX_HIGHLIGHTED_COMMENTS,
        max_summary=MAX_DEBATE_SUMMARY_CHARS,
    )
