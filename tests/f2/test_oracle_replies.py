"""Tests for oracle reply decoding and feedback validation."""

import json
from unittest.mock import MagicMock

import pytest

from ielts_writing.core.errors import MalformedOracleOutputError, OracleUnavailableError
from ielts_writing.core.feedback import ExaminerFeedback, validate_feedback
from ielts_writing.core.oracle import call_oracle, load_oracle_json, strip_json_fence
from ielts_writing.llm.client import LLMConnectionError


class TestStripJsonFence:
    """Tests for code fence removal."""

    def test_json_fence(self):
        assert strip_json_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_json_fence('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_json_fence('  {"a": 1}  ') == '{"a": 1}'

    def test_inner_backticks_kept(self):
        text = '{"quote": "use ```code```"}'
        assert strip_json_fence(text) == text


class TestLoadOracleJson:
    """Tests for parsing oracle replies."""

    def test_fenced_and_unfenced_parse_the_same(self, feedback_data):
        raw = json.dumps(feedback_data)
        fenced = f"```json\n{raw}\n```"
        assert load_oracle_json(raw, "test") == load_oracle_json(fenced, "test")

    def test_invalid_json(self):
        with pytest.raises(MalformedOracleOutputError) as exc_info:
            load_oracle_json("Here is your feedback: band 6", "test")
        assert exc_info.value.raw_excerpt.startswith("Here is")


class TestCallOracle:
    """Tests for the single-shot oracle call."""

    def test_returns_text(self):
        client = MagicMock()
        client.simple_chat.return_value = "{}"

        assert call_oracle(client, "sys", "user", 1000, "test") == "{}"
        client.simple_chat.assert_called_once_with(
            system_prompt="sys", user_message="user", max_tokens=1000
        )

    def test_llm_errors_become_unavailable(self):
        client = MagicMock()
        client.simple_chat.side_effect = LLMConnectionError("Could not connect")

        with pytest.raises(OracleUnavailableError, match="Could not connect"):
            call_oracle(client, "sys", "user", 1000, "test")
        assert client.simple_chat.call_count == 1


class TestValidateFeedback:
    """Tests for examiner feedback validation."""

    def test_valid_feedback(self, feedback_data):
        feedback = validate_feedback(feedback_data)

        assert isinstance(feedback, ExaminerFeedback)
        assert feedback.overall_band == 6.5
        assert feedback.criteria_scores.bands() == {"TR": 6.5, "CC": 6.0, "LR": 6.5, "GRA": 6.0}
        assert feedback.error_annotations[0]["type"] == "Grammar"

    def test_round_trip_keeps_camel_case(self, feedback_data):
        data = validate_feedback(feedback_data).to_json_dict()
        assert data["overallBand"] == 6.5
        assert data["criteriaScores"]["TR"]["bandRationale"].startswith("Not band 7")
        assert data["priorityImprovements"] == feedback_data["priorityImprovements"]

    def test_optional_fields_default(self, feedback_data):
        minimal = {
            "criteriaScores": feedback_data["criteriaScores"],
            "overallBand": 6.5,
        }
        feedback = validate_feedback(minimal)
        assert feedback.error_annotations is None
        assert feedback.improvements() == []
        assert feedback.to_json_dict() == minimal

    def test_unknown_keys_kept(self, feedback_data):
        feedback_data["examinerNote"] = "extra"
        assert validate_feedback(feedback_data).to_json_dict()["examinerNote"] == "extra"

    def test_missing_overall_band(self, feedback_data):
        del feedback_data["overallBand"]
        with pytest.raises(MalformedOracleOutputError):
            validate_feedback(feedback_data)

    def test_missing_criterion(self, feedback_data):
        del feedback_data["criteriaScores"]["GRA"]
        with pytest.raises(MalformedOracleOutputError):
            validate_feedback(feedback_data)

    def test_reply_kept_verbatim(self, feedback_data):
        """Fields the oracle left out are not filled in."""
        for key in ("taskSpecificFeedback", "wordCountNote", "modelParagraph"):
            feedback_data.pop(key, None)
        expected = json.loads(json.dumps(feedback_data))

        data = validate_feedback(feedback_data).to_json_dict()

        assert data == expected
        assert "bandRationale" not in data["criteriaScores"]["CC"]
        assert "modelParagraph" not in data

    def test_descriptive_fields_any_shape(self, feedback_data):
        feedback_data["errorAnnotations"][0]["type"] = "Word Choice"
        del feedback_data["errorAnnotations"][0]["quote"]
        feedback_data["priorityImprovements"] = "Develop ideas."
        feedback_data["vocabularyHighlights"] = ["mitigate"]
        feedback_data["criteriaScores"]["LR"]["feedback"] = {"note": "varied"}

        feedback = validate_feedback(feedback_data)

        assert feedback.overall_band == 6.5
        assert feedback.improvements() == ["Develop ideas."]
        assert feedback.to_json_dict()["errorAnnotations"][0]["type"] == "Word Choice"

    def test_non_numeric_band(self, feedback_data):
        feedback_data["criteriaScores"]["TR"]["band"] = "high"
        with pytest.raises(MalformedOracleOutputError, match="criteriaScores.TR.band"):
            validate_feedback(feedback_data)

    def test_not_an_object(self):
        with pytest.raises(MalformedOracleOutputError):
            validate_feedback([1, 2, 3])
