#!/usr/bin/env python3
"""
Integration tests for CLI Main Entry Point

Tests end-to-end CLI command execution with real command invocation.
"""

import pytest
from click.testing import CliRunner

from expenses.cli.main import main


@pytest.mark.integration
@pytest.mark.cli
class TestCLIMainIntegration:
    """Test main CLI entry point with real command execution."""

    def setup_method(self):
        """Set up test environment."""
        self.runner = CliRunner()

    def test_help_command_lists_all_subcommands(self):
        """Test expenses --help shows all registered subcommands."""
        result = self.runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "Household Expenses" in result.output

        for command in ["receipt", "debts", "config", "version"]:
            assert command in result.output

    def test_version_command_shows_version_info(self):
        result = self.runner.invoke(main, ["version"])

        assert result.exit_code == 0
        assert "Household Expenses v" in result.output
        assert "Author:" in result.output

    def test_config_command_shows_configuration(self):
        result = self.runner.invoke(main, ["config"])

        assert result.exit_code == 0
        assert "Current Configuration:" in result.output
        assert "Environment: test" in result.output
        assert "Receipts Directory:" in result.output
        assert "Debt Tracking: enabled" in result.output
        assert "Log Level:" in result.output

    def test_config_shows_disabled_modules(self, monkeypatch):
        monkeypatch.setenv("EXPENSES_DEBT_ENABLED", "false")

        result = self.runner.invoke(main, ["config"])

        assert result.exit_code == 0
        assert "Debt Tracking: disabled" in result.output

    def test_invalid_configuration_is_reported(self, monkeypatch):
        monkeypatch.setenv("EXPENSES_DECIMAL_SEPARATOR", ";")

        result = self.runner.invoke(main, ["config"])

        assert result.exit_code != 0
        assert "Configuration validation failed" in result.output

    def test_invalid_command_shows_error(self):
        result = self.runner.invoke(main, ["invalid-command"])

        assert result.exit_code != 0
        assert "Error" in result.output or "No such" in result.output

    def test_verbose_flag_enables_verbose_output(self):
        result = self.runner.invoke(main, ["--verbose", "config"])

        assert result.exit_code == 0
        assert "Data directory:" in result.output
        assert "Current Configuration:" in result.output

    def test_debug_flag(self):
        result = self.runner.invoke(main, ["--debug", "config"])

        assert result.exit_code == 0
        assert "Debug logging enabled" in result.output
        assert "Log Level: DEBUG" in result.output
