"""API key loading for the explain server.

Keys are loaded with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.xc/keys.env
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Directory for user-level XC configuration and history
XC_HOME = Path.home() / ".xc"
KEYS_FILE = XC_HOME / "keys.env"


def load_keys_env() -> None:
    """Load API keys from ~/.xc/keys.env and .env into os.environ.

    Existing environment variables are never overwritten, and earlier
    files win over later ones.
    """
    files = [KEYS_FILE, Path.cwd() / ".env"]
    for env_file in files:
        if env_file.is_file():
            _load_env_file(env_file)


def _load_env_file(path: Path) -> None:
    """Parse a simple KEY=VALUE .env file and set vars that aren't already set."""
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            if key and not os.environ.get(key):
                os.environ[key] = value
                logger.debug("Loaded %s from %s", key, path)
    except OSError:
        logger.debug("Could not read %s", path)


def get_api_key(env_var: str) -> str:
    """Return the API key stored in ``env_var`` after loading key files."""
    load_keys_env()
    return os.environ.get(env_var, "")
