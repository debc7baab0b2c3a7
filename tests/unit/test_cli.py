"""Tests for the CLI commands."""

from unittest.mock import patch

from typer.testing import CliRunner

from autoapply.cli.commands import app
from autoapply.config import Settings

runner = CliRunner()


class TestClassify:
    def test_known_platform(self):
        result = runner.invoke(app, ["classify", "https://boards.greenhouse.io/acme/jobs/1"])

        assert result.exit_code == 0
        assert "greenhouse" in result.output
        assert "0.95" in result.output


class TestMapFields:
    def test_greenhouse_table(self):
        result = runner.invoke(
            app,
            ["map-fields", "-p", "greenhouse", "-n", "Jane Doe", "-e", "jane@example.com", "--phone", "555"],
        )

        assert result.exit_code == 0
        assert "first_name" in result.output
        assert "Jane" in result.output


class TestMode:
    def test_simulation_selected(self):
        settings = Settings(_env_file=None, simulation_enabled=True)

        with patch("autoapply.cli.commands.get_settings", return_value=settings):
            result = runner.invoke(app, ["mode"])

        assert result.exit_code == 0
        assert "simulation" in result.output

    def test_nothing_configured(self):
        settings = Settings(_env_file=None, simulation_enabled=False)

        with patch("autoapply.cli.commands.get_settings", return_value=settings):
            result = runner.invoke(app, ["mode"])

        assert result.exit_code == 1
        assert "No automation backend configured" in result.output
