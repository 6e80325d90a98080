"""API token storage: a token file under the config directory, or ``JMAP_TOKEN``."""

import logging
import os
import tempfile
from pathlib import Path

from email_linter.config import CONFIG_DIR, load_values

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "JMAP_TOKEN"


def token_path() -> Path:
    return CONFIG_DIR / "jmap_token"


def load_token(path: str | Path | None = None) -> str | None:
    """Return the stored API token, or None if there isn't one.

    Checks the token file first, then ``JMAP_TOKEN`` in the environment or
    the dotenv config file. Unreadable token files are logged and skipped.
    """
    path = Path(path) if path else token_path()
    if path.is_file():
        try:
            token = path.read_text().strip()
        except OSError as exc:
            logger.warning("Could not read token file %s: %s", path, exc)
        else:
            if token:
                return token

    token = (load_values().get(TOKEN_ENV_VAR) or "").strip()
    return token or None


def save_token(token: str, path: str | Path | None = None) -> Path:
    """Atomic write: temp file + rename, readable only by the owner."""
    path = Path(path) if path else token_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as fh:
            fh.write(token.strip())
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, str(path))
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    logger.info("Saved API token to %s", path)
    return path


def delete_token(path: str | Path | None = None) -> bool:
    """Remove the token file. Returns True if a file was removed."""
    path = Path(path) if path else token_path()
    if not path.exists():
        return False
    path.unlink()
    logger.info("Removed API token file %s", path)
    return True
