"""Tests for the ielts CLI."""

import json
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from ielts_writing.cli.commands import app
from ielts_writing.db.database import init_db
from ielts_writing.db.profiles_repository import create_account, get_profile_by_email
from ielts_writing.db.submissions_repository import insert_submission
from ielts_writing.llm.client import LLMError

runner = CliRunner()


def make_account(email="ana@example.com"):
    return create_account(
        email=email,
        password_hash="hash",
        full_name="Ana Lopez",
        current_band=5.0,
        target_band=6.5,
    )


class TestInitDb:
    """Tests for ielts init-db."""

    def test_creates_database(self, tmp_path):
        result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0
        assert (tmp_path / "data" / "db" / "ielts.db").exists()


class TestSetRole:
    """Tests for ielts set-role."""

    def test_promote(self):
        init_db()
        make_account()

        result = runner.invoke(app, ["set-role", "ana@example.com", "teacher"])

        assert result.exit_code == 0
        assert get_profile_by_email("ana@example.com").role == "teacher"

    def test_unknown_role(self):
        result = runner.invoke(app, ["set-role", "ana@example.com", "superuser"])
        assert result.exit_code == 1

    def test_unknown_account(self):
        result = runner.invoke(app, ["set-role", "ghost@example.com", "admin"])
        assert result.exit_code == 1
        assert "No account" in result.output


class TestMark:
    """Tests for ielts mark."""

    def test_prints_bands(self, tmp_path, feedback_data, essay_text):
        essay_file = tmp_path / "essay.txt"
        essay_file.write_text(essay_text)
        oracle = MagicMock()
        oracle.simple_chat.return_value = json.dumps(feedback_data)

        with patch("ielts_writing.cli.commands.LLMClient", return_value=oracle):
            result = runner.invoke(app, ["mark", str(essay_file), "--prompt", "Is transport free?"])

        assert result.exit_code == 0
        assert "Overall band: 6.5" in result.output
        assert "Task Response" in result.output

    def test_too_short(self, tmp_path):
        essay_file = tmp_path / "essay.txt"
        essay_file.write_text("Only a few words here.")

        result = runner.invoke(app, ["mark", str(essay_file), "--prompt", "q"])

        assert result.exit_code == 1
        assert "at least 20 words" in result.output

    def test_oracle_failure(self, tmp_path, essay_text):
        essay_file = tmp_path / "essay.txt"
        essay_file.write_text(essay_text)
        oracle = MagicMock()
        oracle.simple_chat.side_effect = LLMError("LLM call failed: timeout")

        with patch("ielts_writing.cli.commands.LLMClient", return_value=oracle):
            result = runner.invoke(app, ["mark", str(essay_file), "--prompt", "q"])

        assert result.exit_code == 1
        assert "AI marking failed" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["mark", str(tmp_path / "nope.txt"), "--prompt", "q"])
        assert result.exit_code == 1


class TestProgress:
    """Tests for ielts progress."""

    def test_new_student(self):
        init_db()
        make_account()

        result = runner.invoke(app, ["progress", "ana@example.com"])

        assert result.exit_code == 0
        assert "foundation" in result.output
        assert "1.5 bands to your target" in result.output

    def test_with_history(self):
        init_db()
        profile = make_account()
        for band in [7.0, 7.0]:
            insert_submission(
                student_id=profile.user_id,
                task_type="task1",
                essay_text="essay",
                word_count=170,
                overall_band=band,
                criteria_scores={"TR": 7.0, "CC": 7.0, "LR": 7.0, "GRA": 7.0},
                feedback_json={},
            )

        result = runner.invoke(app, ["progress", "ana@example.com"])

        assert result.exit_code == 0
        assert "7.0" in result.output
        assert "target band" in result.output

    def test_unknown_student(self):
        result = runner.invoke(app, ["progress", "ghost@example.com"])
        assert result.exit_code == 1
