"""Tests for the CLI (email_linter/cli.py).

Uses Click's CliRunner; the pipeline and the JMAP client are mocked so no
server is contacted.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from email_linter.cli import cli
from email_linter.errors import MailboxResolutionError, TransportError
from email_linter.schemas.linter import LinterOutcome, LinterResult

# ``_scan_async`` imports these inside the function body, so patches target
# the source modules.
_RUN_PATH = "email_linter.orchestrator.pipeline.run_linter"
_CLIENT_PATH = "email_linter.integrations.jmap.JmapClient"

COMPLETED = LinterResult(
    outcome=LinterOutcome.COMPLETED,
    disposable_addresses=["x@duck.com"],
    senders={"x@duck.com": ["spammer@evil.com"]},
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def token(monkeypatch):
    monkeypatch.setenv("JMAP_TOKEN", "env-token")
    return "env-token"


def _patch_client():
    """Replace JmapClient with an async-context-manager mock."""
    mock_client = MagicMock()
    mock_cls = MagicMock()
    mock_cls.return_value.__aenter__ = AsyncMock(return_value=mock_client)
    mock_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return patch(_CLIENT_PATH, mock_cls), mock_cls


class TestScan:
    def test_text_report(self, runner, token):
        client_patch, mock_cls = _patch_client()
        with client_patch, patch(_RUN_PATH, AsyncMock(return_value=COMPLETED)):
            result = runner.invoke(cli, ["scan"])

        assert result.exit_code == 0, result.output
        assert "Your inbox's 1 disposable address" in result.output
        assert "\tspammer@evil.com" in result.output
        assert mock_cls.call_args.args == ("https://api.fastmail.com/jmap/session", "env-token")

    def test_json_report(self, runner, token):
        client_patch, _ = _patch_client()
        with client_patch, patch(_RUN_PATH, AsyncMock(return_value=COMPLETED)):
            result = runner.invoke(cli, ["scan", "--json"])

        assert result.exit_code == 0, result.output
        assert '{"x@duck.com": ["spammer@evil.com"]}' in result.output

    def test_options_reach_settings(self, runner, token):
        client_patch, mock_cls = _patch_client()
        mock_run = AsyncMock(return_value=COMPLETED)
        with client_patch, patch(_RUN_PATH, mock_run):
            result = runner.invoke(
                cli,
                [
                    "scan",
                    "-d",
                    "Example.org alias.net",
                    "--url",
                    "https://jmap.example.org/session",
                    "--limit",
                    "7",
                    "--max-senders",
                    "0",
                ],
            )

        assert result.exit_code == 0, result.output
        settings = mock_run.call_args.kwargs["settings"]
        assert settings.domains == {"example.org", "alias.net"}
        assert settings.limit == 7
        assert settings.max_senders == 0
        assert mock_cls.call_args.args[0] == "https://jmap.example.org/session"
        assert "Received emails from 1 unique addresses" in result.output

    def test_no_disposable_found(self, runner, token):
        client_patch, _ = _patch_client()
        empty = LinterResult(outcome=LinterOutcome.NO_DISPOSABLE_FOUND)
        with client_patch, patch(_RUN_PATH, AsyncMock(return_value=empty)):
            result = runner.invoke(cli, ["scan"])

        assert result.exit_code == 0
        assert "No disposable addresses found in your inbox." in result.output
        assert "Your inbox's" not in result.output

    def test_progress_messages_are_shown(self, runner, token):
        client_patch, _ = _patch_client()

        async def fake_run(*, client, settings, on_progress):
            on_progress("Only the newest 1 of 9 inbox threads were checked; results are partial.")
            return COMPLETED

        with client_patch, patch(_RUN_PATH, fake_run):
            result = runner.invoke(cli, ["scan", "--json"])

        assert result.exit_code == 0
        assert "1 of 9 inbox threads" in result.output

    @pytest.mark.parametrize(
        "error",
        [MailboxResolutionError("no spam mailbox"), TransportError("no spam mailbox")],
    )
    def test_linter_errors_exit_1(self, runner, token, error):
        client_patch, _ = _patch_client()
        with client_patch, patch(_RUN_PATH, AsyncMock(side_effect=error)):
            result = runner.invoke(cli, ["scan"])

        assert result.exit_code == 1
        assert "Error: no spam mailbox" in result.output

    def test_empty_domains_rejected(self, runner, token):
        result = runner.invoke(cli, ["scan", "--domains", "   "])
        assert result.exit_code == 1
        assert "No protection domains configured" in result.output

    def test_invalid_configured_limit_exits_1(self, runner, token, monkeypatch):
        monkeypatch.setenv("EMAIL_LINTER_LIMIT", "abc")
        client_patch, mock_cls = _patch_client()
        with client_patch:
            result = runner.invoke(cli, ["scan"])

        assert result.exit_code == 1
        assert "Error: Invalid configuration" in result.output
        assert "limit" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)
        mock_cls.assert_not_called()

    def test_prompts_for_token_and_saves(self, runner, config_dir):
        client_patch, mock_cls = _patch_client()
        with client_patch, patch(_RUN_PATH, AsyncMock(return_value=COMPLETED)):
            result = runner.invoke(cli, ["scan", "--save-token"], input="typed-token\n")

        assert result.exit_code == 0, result.output
        assert mock_cls.call_args.args[1] == "typed-token"
        assert (config_dir / "jmap_token").read_text() == "typed-token"

    def test_prompted_token_not_saved_by_default(self, runner, config_dir):
        client_patch, _ = _patch_client()
        with client_patch, patch(_RUN_PATH, AsyncMock(return_value=COMPLETED)):
            result = runner.invoke(cli, ["scan"], input="typed-token\n")

        assert result.exit_code == 0, result.output
        assert not (config_dir / "jmap_token").exists()

    def test_verbose_flag(self, runner, token):
        client_patch, _ = _patch_client()
        with client_patch, patch(_RUN_PATH, AsyncMock(return_value=COMPLETED)):
            result = runner.invoke(cli, ["--verbose", "scan"])
        assert result.exit_code == 0


class TestLogout:
    def test_removes_token(self, runner, config_dir):
        config_dir.mkdir(parents=True)
        (config_dir / "jmap_token").write_text("t")
        result = runner.invoke(cli, ["logout"])
        assert result.exit_code == 0
        assert "API token removed." in result.output
        assert not (config_dir / "jmap_token").exists()

    def test_nothing_to_remove(self, runner):
        result = runner.invoke(cli, ["logout"])
        assert result.exit_code == 0
        assert "No stored API token found." in result.output
