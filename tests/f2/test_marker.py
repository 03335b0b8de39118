"""Tests for essay marking."""

import json
from unittest.mock import MagicMock, patch

import pytest

from ielts_writing.core.errors import MalformedOracleOutputError, OracleUnavailableError
from ielts_writing.core.marker import (
    TASK_SETTINGS,
    build_examiner_message,
    count_words,
    mark_essay,
    save_submission_quietly,
)
from ielts_writing.core.feedback import validate_feedback
from ielts_writing.db.database import init_db
from ielts_writing.db.submissions_repository import list_submissions
from ielts_writing.llm.client import LLMError


@pytest.fixture
def oracle(feedback_data):
    """Mock oracle client replying with a fenced verdict."""
    client = MagicMock()
    client.simple_chat.return_value = f"```json\n{json.dumps(feedback_data)}\n```"
    return client


class TestCountWords:
    """Tests for the word counter."""

    def test_counts_whitespace_separated(self):
        assert count_words("one two\nthree\tfour") == 4

    def test_empty(self):
        assert count_words("   ") == 0
        assert count_words("") == 0


class TestTaskSettings:
    """Tests for practice settings."""

    def test_task1(self):
        assert TASK_SETTINGS["task1"].time_limit_seconds == 1200
        assert TASK_SETTINGS["task1"].min_words == 150

    def test_task2(self):
        assert TASK_SETTINGS["task2"].time_limit_seconds == 2400
        assert TASK_SETTINGS["task2"].min_words == 250


class TestBuildExaminerMessage:
    """Tests for the examiner request body."""

    def test_contains_all_parts(self):
        message = build_examiner_message("My essay.", "Discuss both views.", "task2", 2)

        assert "Writing Task 2" in message
        assert "Discuss both views." in message
        assert "(2 words)" in message
        assert "My essay." in message

    def test_task1_label(self):
        assert "Writing Task 1" in build_examiner_message("e", "q", "task1", 1)


class TestMarkEssay:
    """Tests for a full marking call."""

    def test_returns_validated_feedback(self, oracle, essay_text):
        feedback = mark_essay(oracle, essay_text, "Should transport be free?", "task2", 90)

        assert feedback.overall_band == 6.5
        assert feedback.criteria_scores.TR.band == 6.5

    def test_exactly_one_oracle_call(self, oracle, essay_text):
        mark_essay(oracle, essay_text, "Should transport be free?", "task2", 90)

        oracle.simple_chat.assert_called_once()
        kwargs = oracle.simple_chat.call_args.kwargs
        assert "ANTI-INFLATION" in kwargs["system_prompt"].upper()
        assert essay_text.strip() in kwargs["user_message"]
        assert kwargs["max_tokens"] == 3000

    def test_oracle_band_trusted(self, oracle, feedback_data, essay_text):
        """A mismatching overall band is returned as the oracle gave it."""
        feedback_data["overallBand"] = 8.0
        oracle.simple_chat.return_value = json.dumps(feedback_data)

        feedback = mark_essay(oracle, essay_text, "q", "task2", 90)
        assert feedback.overall_band == 8.0

    def test_irregular_descriptive_fields_accepted(self, oracle, feedback_data, essay_text):
        feedback_data["errorAnnotations"][0]["type"] = "Word Choice"
        feedback_data["priorityImprovements"] = "Develop ideas."
        feedback_data["examinerNote"] = "Borderline 7 on LR."
        oracle.simple_chat.return_value = json.dumps(feedback_data)

        feedback = mark_essay(oracle, essay_text, "q", "task2", 90)

        assert feedback.overall_band == 6.5
        assert feedback.to_json_dict() == feedback_data

    def test_oracle_unavailable(self, oracle, essay_text):
        oracle.simple_chat.side_effect = LLMError("LLM call failed: 529 overloaded")

        with pytest.raises(OracleUnavailableError):
            mark_essay(oracle, essay_text, "q", "task2", 90)

    def test_malformed_reply(self, oracle, essay_text):
        oracle.simple_chat.return_value = "I'd give this a 6."

        with pytest.raises(MalformedOracleOutputError):
            mark_essay(oracle, essay_text, "q", "task2", 90)

    def test_reply_missing_fields(self, oracle, essay_text):
        oracle.simple_chat.return_value = json.dumps({"overallBand": 6.0})

        with pytest.raises(MalformedOracleOutputError):
            mark_essay(oracle, essay_text, "q", "task2", 90)


class TestSaveSubmissionQuietly:
    """Tests for best-effort persistence."""

    def test_saves(self, tmp_path, feedback_data, essay_text):
        init_db(tmp_path / "test.db")
        feedback = validate_feedback(feedback_data)

        save_submission_quietly("stu01", "task2", essay_text, 90, feedback, prompt_id="p1")

        [saved] = list_submissions("stu01")
        assert saved.overall_band == 6.5
        assert saved.criteria_scores == {"TR": 6.5, "CC": 6.0, "LR": 6.5, "GRA": 6.0}
        assert saved.feedback_json == feedback_data
        assert saved.prompt_id == "p1"

    def test_failure_is_swallowed(self, feedback_data, essay_text):
        feedback = validate_feedback(feedback_data)

        with patch(
            "ielts_writing.core.marker.insert_submission",
            side_effect=RuntimeError("disk full"),
        ) as insert:
            save_submission_quietly("stu01", "task2", essay_text, 90, feedback)

        insert.assert_called_once()
