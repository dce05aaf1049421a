"""Tests for the levelup CLI (F5)."""

import json

from typer.testing import CliRunner

from levelup.cli import commands
from levelup.cli.commands import app
from levelup.config.app_config import config_from_dict, resolve_db_path
from levelup.core.engine import ProgressionEngine

runner = CliRunner()


class TestInitDb:
    """Tests for levelup init-db."""

    def test_creates_database(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LEVELUP_DATA_DIR", str(tmp_path))
        result = runner.invoke(app, ["init-db"])

        assert result.exit_code == 0
        assert (tmp_path / "db" / "levelup.db").exists()


class TestSubmitCommand:
    """Tests for levelup submit."""

    def test_submit_in_order_answers(self, data_dir, answers_file):
        result = runner.invoke(
            app, ["submit", "math-101", "easy", "--student", "s1", "--answers", str(answers_file)]
        )

        assert result.exit_code == 0
        assert "Scaled score: 425 (75%) - Passed" in result.stdout
        assert "Medium level unlocked" in result.stdout

    def test_submit_with_question_ids(self, data_dir, tmp_path):
        path = tmp_path / "by_id.json"
        path.write_text(
            json.dumps(
                {
                    "answers": [
                        {"question_id": "easy-1", "response": "B"},
                        {"question_id": "easy-2", "response": "A"},
                    ]
                }
            )
        )
        result = runner.invoke(
            app, ["submit", "math-101", "easy", "-s", "s1", "-a", str(path)]
        )

        assert result.exit_code == 0
        assert "(50%)" in result.stdout

    def test_wrong_answer_count_fails(self, data_dir, tmp_path):
        path = tmp_path / "short.json"
        path.write_text(json.dumps({"answers": ["A"]}))
        result = runner.invoke(
            app, ["submit", "math-101", "easy", "-s", "s1", "-a", str(path)]
        )

        assert result.exit_code == 1
        assert "Invalid submission" in result.stdout

    def test_bare_list_answers_file(self, data_dir, tmp_path):
        path = tmp_path / "list.json"
        path.write_text(json.dumps(["A", "A", "A", "C"]))
        result = runner.invoke(
            app, ["submit", "math-101", "easy", "-s", "s1", "-a", str(path)]
        )

        assert result.exit_code == 0
        assert "(75%)" in result.stdout

    def test_unsupported_answers_shape_fails(self, data_dir, tmp_path):
        shapes = {"text.json": "just text", "number.json": 42, "flat.json": {"answers": "A"}}
        for name, content in shapes.items():
            path = tmp_path / name
            path.write_text(json.dumps(content))
            result = runner.invoke(
                app, ["submit", "math-101", "easy", "-s", "s1", "-a", str(path)]
            )

            assert result.exit_code == 1
            assert "Could not read answers file" in result.stdout

    def test_missing_answers_file(self, data_dir, tmp_path):
        result = runner.invoke(
            app,
            ["submit", "math-101", "easy", "-s", "s1", "-a", str(tmp_path / "nope.json")],
        )
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_unknown_level(self, data_dir, answers_file):
        result = runner.invoke(
            app, ["submit", "math-101", "expert", "-s", "s1", "-a", str(answers_file)]
        )
        assert result.exit_code == 1
        assert "Unknown level" in result.stdout


class TestProgressCommands:
    """Tests for progress, unlocked, summary and history."""

    def test_unlocked_exit_codes(self, data_dir, answers_file):
        locked = runner.invoke(app, ["unlocked", "math-101", "medium", "-s", "s1"])
        assert locked.exit_code == 1

        runner.invoke(app, ["submit", "math-101", "easy", "-s", "s1", "-a", str(answers_file)])
        unlocked = runner.invoke(app, ["unlocked", "math-101", "medium", "-s", "s1"])
        assert unlocked.exit_code == 0
        assert "Medium is unlocked" in unlocked.stdout

    def test_progress_table(self, data_dir, answers_file):
        runner.invoke(app, ["submit", "math-101", "easy", "-s", "s1", "-a", str(answers_file)])
        result = runner.invoke(app, ["progress", "math-101", "-s", "s1"])

        assert result.exit_code == 0
        assert "passed" in result.stdout
        assert "425" in result.stdout

    def test_summary_defaults(self, data_dir):
        result = runner.invoke(app, ["summary", "-s", "nobody"])

        assert result.exit_code == 0
        assert "800" in result.stdout
        assert "700 points to target" in result.stdout

    def test_history_empty_and_filled(self, data_dir, answers_file):
        empty = runner.invoke(app, ["history", "math-101", "-s", "s1"])
        assert "No submissions yet" in empty.stdout

        runner.invoke(app, ["submit", "math-101", "easy", "-s", "s1", "-a", str(answers_file)])
        filled = runner.invoke(app, ["history", "math-101", "-s", "s1"])
        assert "3/4" in filled.stdout

    def test_scales(self, data_dir):
        result = runner.invoke(app, ["scales"])
        assert result.exit_code == 0
        assert "MATH" in result.stdout
        assert "550" in result.stdout

    def test_scales_follow_engine_config(self, data_dir, monkeypatch):
        config = config_from_dict(
            {"scoring": {"ranges": {"MATH": {"EASY": {"min": 250, "max": 450}}}}}
        )
        engine = ProgressionEngine.from_db(resolve_db_path(), config)
        monkeypatch.setattr(commands, "_engine", lambda: engine)

        result = runner.invoke(app, ["scales"])
        assert result.exit_code == 0
        assert "250" in result.stdout
        assert "450" in result.stdout
