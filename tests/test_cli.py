"""Tests for the command-line interface."""

import json
from datetime import date
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from fractal.cli.main import main
from fractal.core.errors import MissingCredentialError
from fractal.schemas.goal import Goal

YEAR = date.today().year


class StubClient:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error

    async def complete(self, request):
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "goals.json"


def write_goals(path, goals):
    path.write_text(json.dumps([g.model_dump(mode="json") for g in goals]), encoding="utf-8")


def read_goals(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestAdd:
    """Test 'fractal add'."""

    def test_add_success(self, runner, data_file):
        with patch("fractal.cli.main.build_client", return_value=StubClient(reply="1. Buy flour\n2. Mix")):
            result = runner.invoke(
                main,
                ["--data-file", str(data_file), "add", "Learn to bake bread",
                 "--start", f"10/{YEAR}", "--end", f"03/{YEAR + 1}"],
            )

        assert result.exit_code == 0, result.output
        assert "Buy flour" in result.output
        stored = read_goals(data_file)
        assert stored[0]["title"] == "Learn to bake bread"
        assert stored[0]["steps"] == ["Buy flour", "Mix"]
        assert stored[0]["is_loading"] is False
        assert stored[0]["start_month"] == 10

    def test_add_several_share_date_range(self, runner, data_file):
        with patch("fractal.cli.main.build_client", return_value=StubClient(reply="1. Go")):
            result = runner.invoke(
                main,
                ["--data-file", str(data_file), "add", "Learn Spanish", "Run a marathon",
                 "--start", f"01/{YEAR + 1}", "--end", f"06/{YEAR + 1}"],
            )

        assert result.exit_code == 0, result.output
        stored = read_goals(data_file)
        assert sorted(g["title"] for g in stored) == ["Learn Spanish", "Run a marathon"]
        assert all(g["start_year"] == YEAR + 1 and g["end_month"] == 6 for g in stored)

    def test_add_failure(self, runner, data_file):
        with patch("fractal.cli.main.build_client", return_value=StubClient(error=MissingCredentialError())):
            result = runner.invoke(main, ["--data-file", str(data_file), "add", "Doomed"])

        assert result.exit_code == 1
        assert MissingCredentialError.user_message in result.output
        assert read_goals(data_file) == []

    def test_blank_title_rejected(self, runner, data_file):
        result = runner.invoke(main, ["--data-file", str(data_file), "add", "   "])
        assert result.exit_code == 2
        assert not data_file.exists()

    def test_start_without_end(self, runner, data_file):
        result = runner.invoke(main, ["--data-file", str(data_file), "add", "x", "--start", f"10/{YEAR}"])
        assert result.exit_code == 2

    def test_bad_month_year(self, runner, data_file):
        result = runner.invoke(
            main, ["--data-file", str(data_file), "add", "x", "--start", "october", "--end", f"11/{YEAR}"]
        )
        assert result.exit_code == 2


class TestListShowDelete:
    """Test list, show and delete."""

    def test_list_empty(self, runner, data_file):
        result = runner.invoke(main, ["--data-file", str(data_file), "list"])
        assert result.exit_code == 0
        assert "No Goals Yet" in result.output

    def test_list(self, runner, data_file, sample_goals):
        write_goals(data_file, sample_goals)
        result = runner.invoke(main, ["--data-file", str(data_file), "list"])
        assert result.exit_code == 0
        assert "Run a marathon" in result.output
        assert "3 steps" in result.output

    def test_show(self, runner, data_file, sample_goals):
        write_goals(data_file, sample_goals)
        result = runner.invoke(main, ["--data-file", str(data_file), "show", "1"])
        assert result.exit_code == 0
        assert "1. Watch a video" in result.output
        assert "Oct 2026 - Mar 2027" in result.output

    def test_show_legacy_without_steps(self, runner, data_file):
        write_goals(data_file, [Goal(title="Old goal")])
        result = runner.invoke(main, ["--data-file", str(data_file), "show", "0"])
        assert "No steps generated yet." in result.output

    def test_show_out_of_range(self, runner, data_file, sample_goals):
        write_goals(data_file, sample_goals)
        result = runner.invoke(main, ["--data-file", str(data_file), "show", "7"])
        assert result.exit_code == 2

    def test_delete_by_position(self, runner, data_file, sample_goals):
        write_goals(data_file, sample_goals)
        result = runner.invoke(main, ["--data-file", str(data_file), "delete", "1", "--yes"])
        assert result.exit_code == 0
        assert [g["title"] for g in read_goals(data_file)] == ["Launch a podcast", "Run a marathon"]

    def test_delete_by_id(self, runner, data_file, sample_goals):
        write_goals(data_file, sample_goals)
        target = str(sample_goals[2].id)
        result = runner.invoke(main, ["--data-file", str(data_file), "delete", "--id", target, "-y"])
        assert result.exit_code == 0
        assert target not in [g["id"] for g in read_goals(data_file)]

    def test_delete_needs_confirmation(self, runner, data_file, sample_goals):
        write_goals(data_file, sample_goals)
        result = runner.invoke(main, ["--data-file", str(data_file), "delete", "0"], input="n\n")
        assert result.exit_code == 1
        assert len(read_goals(data_file)) == 3

    def test_delete_positions_and_id_rejected(self, runner, data_file, sample_goals):
        write_goals(data_file, sample_goals)
        target = str(sample_goals[2].id)
        result = runner.invoke(
            main, ["--data-file", str(data_file), "delete", "0", "--id", target, "-y"]
        )
        assert result.exit_code == 2
        assert len(read_goals(data_file)) == 3


class TestConfigCommand:
    """Test 'fractal config'."""

    def test_masks_api_key(self, runner, monkeypatch):
        monkeypatch.setenv("FRACTAL_API_KEY", "gsk_supersecretvalue")
        result = runner.invoke(main, ["config"])
        assert result.exit_code == 0
        assert "gsk_supersecretvalue" not in result.output
        assert "gsk_" in result.output

    def test_unknown_log_level_in_file(self, runner, tmp_path, data_file):
        config_path = tmp_path / "fractal.yaml"
        config_path.write_text("log_level: verbose\n", encoding="utf-8")
        result = runner.invoke(
            main, ["--config", str(config_path), "--data-file", str(data_file), "list"]
        )
        assert result.exit_code == 0, result.output
        assert "No Goals Yet" in result.output
