"""Tests for the command-line interface."""

import json
from unittest.mock import patch

from click.testing import CliRunner

from practicebase.cli import cli
from practicebase.core.config import Settings
from practicebase.infrastructure.persistence.seed_loader import DEFAULTS_DIR


def test_serve_runs_single_worker_factory():
    """The server is started from the app factory in one process."""
    runner = CliRunner()
    settings = Settings(_env_file=None, log_level="WARNING")

    with patch("practicebase.cli.get_settings", return_value=settings), \
         patch("practicebase.cli.configure_logging"), \
         patch("uvicorn.run") as mock_run:
        result = runner.invoke(cli, ["serve", "--port", "4040"])

    assert result.exit_code == 0
    mock_run.assert_called_once()
    args, kwargs = mock_run.call_args
    assert args[0] == "practicebase.infrastructure.api.app:create_app"
    assert kwargs["factory"] is True
    assert kwargs["workers"] == 1
    assert kwargs["port"] == 4040
    assert kwargs["host"] == "0.0.0.0"


def test_check_rules_bundled_file():
    runner = CliRunner()

    result = runner.invoke(cli, ["check-rules", str(DEFAULTS_DIR / "rules.json")])

    assert result.exit_code == 0
    assert "Rules OK: 2 collection(s)" in result.output
    assert "members: actions [delete, update], 2 property rule(s)" in result.output


def test_check_rules_syntax_error(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"posts": {".read": "user.id =="}}), encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(cli, ["check-rules", str(path)])

    assert result.exit_code == 1
    assert "Invalid rules in" in result.output


def test_check_rules_missing_file():
    runner = CliRunner()

    result = runner.invoke(cli, ["check-rules", "does-not-exist.json"])

    assert result.exit_code == 2


def test_info_shows_configuration():
    runner = CliRunner()
    settings = Settings(_env_file=None)

    with patch("practicebase.cli.get_settings", return_value=settings):
        result = runner.invoke(cli, ["info"])

    assert result.exit_code == 0
    assert "Port:         3030" in result.output
    assert "Rules:        (bundled)" in result.output
