"""Tests for prompt builders."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from commentlens.ai.models import Comment, to_iso_timestamp
from commentlens.ai.prompts import (
    APPROVAL_REPLY,
    NO_NEW_COMMENTS,
    REJECTION_REPLY,
    build_analysis_prompt,
    build_moderation_prompt,
    is_rejection,
)


class TestModerationPrompt:
    def test_custom_template_replaces_every_placeholder(self):
        assert build_moderation_prompt("hola", "Review: {text} {text}") == "Review: hola hola"

    def test_custom_template_without_placeholder_falls_back_to_default(self):
        prompt = build_moderation_prompt("hola", "Static instructions")
        assert prompt.endswith("Comentario: hola")

    def test_default_template_embeds_text_verbatim(self):
        text = "El $gobierno {text} ${dinero}"
        prompt = build_moderation_prompt(text)

        assert prompt.endswith(f"Comentario: {text}")
        assert REJECTION_REPLY in prompt
        assert APPROVAL_REPLY in prompt

    def test_verdict_classification(self):
        assert is_rejection("Comment Rejected. Does not comply with site standards.")
        assert not is_rejection("Comentario Aprobado.")


class TestAnalysisPrompt:
    def test_renders_comment_lines(self, comments):
        prompt = build_analysis_prompt("Derby", "Match report", comments)

        assert "TITLE: Derby" in prompt
        assert "SUMMARY: Match report" in prompt
        assert (
            "- a1: Great match, the defense was solid. "
            "(Replies: 2, Likes: 10, Posted: 2024-05-01T12:00:00.000Z)"
        ) in prompt
        assert "PREVIOUS ANALYSIS (JSON):" not in prompt
        assert "LAST ANALYZED COMMENT TIMESTAMP" not in prompt

    def test_datetime_and_iso_string_render_identically(self):
        base = {"_id": "x", "text": "hi", "repliesCount": 0, "likesCount": 0}
        as_date = build_analysis_prompt(
            "t", "s", [{**base, "created_at": datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)}]
        )
        as_string = build_analysis_prompt(
            "t", "s", [{**base, "created_at": "2024-05-01T12:00:00.000Z"}]
        )

        assert as_date == as_string

    def test_non_utc_datetime_is_normalized(self):
        local = datetime(2024, 5, 1, 9, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert to_iso_timestamp(local) == "2024-05-01T12:00:00.000Z"

    def test_comment_accepts_comment_key(self):
        comment = Comment.model_validate(
            {"_id": 7, "comment": "from highlight", "created_at": "2024-01-01T00:00:00Z"}
        )
        assert comment.id == "7"
        assert comment.text == "from highlight"
        assert comment.likes_count == 0

    def test_epoch_milliseconds_are_normalized(self):
        comment = Comment.model_validate({"_id": "x", "created_at": 1714564800000})
        assert comment.created_at == "2024-05-01T12:00:00.000Z"

    @pytest.mark.parametrize("created_at", [[1714564800000], {"$date": 1}, True])
    def test_unsupported_timestamp_is_a_validation_error(self, created_at):
        with pytest.raises(ValidationError):
            Comment.model_validate({"_id": "x", "created_at": created_at})

    def test_includes_previous_analysis(self, comments, previous_analysis):
        prompt = build_analysis_prompt("Derby", "Match report", comments, previous_analysis)

        assert "PREVIOUS ANALYSIS (JSON):" in prompt
        assert json.dumps(previous_analysis, ensure_ascii=False, indent=2) in prompt
        assert "LAST ANALYZED COMMENT TIMESTAMP: 2024-04-30T20:00:00.000Z" in prompt

    def test_no_new_comments_instructs_reuse_of_previous_highlights(self, previous_analysis):
        prompt = build_analysis_prompt("Derby", "Match report", [], previous_analysis)

        assert NO_NEW_COMMENTS in prompt
        assert "reuse the previous highlightedComments exactly as given" in prompt
        assert "do not invent or fabricate new ones" in prompt
        for highlight in previous_analysis["highlightedComments"]:
            assert highlight["_id"] in prompt

    def test_rules_cover_merge_semantics(self, comments):
        prompt = build_analysis_prompt("Derby", "Match report", comments)

        assert "at most 3 entries" in prompt
        assert "at most 350 characters" in prompt
        assert "sum to 100%" in prompt
        assert "return an empty highlightedComments list" in prompt
        assert "keep the previous lastAnalyzedCommentTimestamp" in prompt

    def test_empty_previous_analysis_is_ignored(self, comments):
        prompt = build_analysis_prompt("Derby", "Match report", comments, {})
        assert "PREVIOUS ANALYSIS (JSON):" not in prompt
        assert "LAST ANALYZED COMMENT TIMESTAMP" not in prompt

    def test_previous_analysis_with_datetimes_serializes(self, previous_analysis):
        previous_analysis["lastAnalyzedCommentTimestamp"] = datetime(2024, 4, 30, 20, 0)
        prompt = build_analysis_prompt("Derby", "Match report", [], previous_analysis)

        assert '"lastAnalyzedCommentTimestamp": "2024-04-30T20:00:00.000Z"' in prompt
        assert "LAST ANALYZED COMMENT TIMESTAMP: 2024-04-30T20:00:00.000Z" in prompt

    def test_title_is_json_escaped_in_schema(self):
        prompt = build_analysis_prompt('The "big" derby', "s", [])
        assert '"title": "The \\"big\\" derby"' in prompt
