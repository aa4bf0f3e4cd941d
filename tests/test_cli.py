"""Smoke tests for the CLI entrypoint."""

from click.testing import CliRunner

from batchorg.cli import cli


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "batchorg sorts batches of files" in result.output
    for command in ("org", "classify", "stats", "undo", "ping", "config"):
        assert command in result.output
