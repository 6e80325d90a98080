"""Single source of truth for configuration.

Lookup order for every value: process environment, then the optional
dotenv file, then the defaults below. Nothing here is cached at import
time; ``load_settings`` builds a fresh ``LinterSettings`` per call.
"""

import os
from pathlib import Path

from dotenv import dotenv_values
from pydantic import ValidationError

from email_linter.errors import ConfigError
from email_linter.schemas.linter import LinterSettings, parse_domains

CONFIG_DIR = Path("~/.config/email-linter").expanduser()

DEFAULT_SESSION_URL = "https://api.fastmail.com/jmap/session"
DEFAULT_DOMAINS = "duck.com mozmail.com icloud.com"
DEFAULT_LIMIT = 100
DEFAULT_MAX_SENDERS = 10


def config_path() -> Path:
    """Path of the dotenv file (``EMAIL_LINTER_CONFIG`` overrides it)."""
    override = os.environ.get("EMAIL_LINTER_CONFIG")
    if override:
        return Path(override).expanduser()
    return CONFIG_DIR / "config.env"


def load_values() -> dict[str, str | None]:
    """Merge the dotenv file (if any) with the environment. Environment wins."""
    path = config_path()
    values: dict[str, str | None] = dict(dotenv_values(path)) if path.exists() else {}
    values.update(os.environ)
    return values


def load_settings(
    *,
    session_url: str | None = None,
    domains: str | None = None,
    limit: int | None = None,
    max_senders: int | None = None,
) -> LinterSettings:
    """Build settings from config sources, with explicit arguments taking priority.

    Raises:
        ConfigError: If a configured value is not valid (e.g. a non-numeric limit).
    """
    values = load_values()
    try:
        return LinterSettings(
            session_url=session_url or values.get("JMAP_SESSION_URL") or DEFAULT_SESSION_URL,
            domains=parse_domains(
                domains if domains is not None else values.get("EMAIL_LINTER_DOMAINS") or DEFAULT_DOMAINS
            ),
            limit=limit if limit is not None else values.get("EMAIL_LINTER_LIMIT") or DEFAULT_LIMIT,
            max_senders=(
                max_senders
                if max_senders is not None
                else values.get("EMAIL_LINTER_MAX_SENDERS") or DEFAULT_MAX_SENDERS
            ),
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from exc
