"""Shared fixtures for email-linter tests."""

import pytest


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    """Keep tests away from the real ~/.config/email-linter and JMAP_TOKEN."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr("email_linter.config.CONFIG_DIR", config_dir)
    monkeypatch.setattr("email_linter.credentials.CONFIG_DIR", config_dir)
    monkeypatch.setenv("EMAIL_LINTER_CONFIG", str(config_dir / "config.env"))
    for var in (
        "JMAP_TOKEN",
        "JMAP_SESSION_URL",
        "EMAIL_LINTER_DOMAINS",
        "EMAIL_LINTER_LIMIT",
        "EMAIL_LINTER_MAX_SENDERS",
    ):
        monkeypatch.delenv(var, raising=False)
    return config_dir


@pytest.fixture()
def config_dir(_isolated_config):
    """The temporary config directory used in place of ~/.config/email-linter."""
    return _isolated_config
