"""Centralized credential configuration.

Credentials live in the drive-helper repo root by default:
    .env                              - environment overrides (see below)
    google/service_account_key.json   - Google service account key

This module auto-loads the .env file on import, so settings placed there
are visible to the library and the CLI without further setup.

Environment variables:
    GOOGLE_SERVICE_ACCOUNT_KEY  - path to the service account key file
    DRIVE_HELPER_LOG_LEVEL      - log level used by the CLI (default WARNING)
"""

import logging
import os
from pathlib import Path

# __file__ is src/drive_helper/config.py, so 3 levels up
REPO_ROOT = Path(__file__).parent.parent.parent
GOOGLE_DIR = REPO_ROOT / "google"

ENV_FILE = REPO_ROOT / ".env"
GOOGLE_SERVICE_ACCOUNT = GOOGLE_DIR / "service_account_key.json"

KEY_PATH_ENV = "GOOGLE_SERVICE_ACCOUNT_KEY"
LOG_LEVEL_ENV = "DRIVE_HELPER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def _load_env_file(env_path: Path) -> dict[str, str]:
    """Load environment variables from a file.

    Args:
        env_path: Path to .env file.

    Returns:
        Dictionary of loaded variables.
    """
    loaded = {}
    if not env_path.exists():
        return loaded

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]

            # Env vars take precedence
            if key and key not in os.environ:
                os.environ[key] = value
                loaded[key] = value

    return loaded


def get_service_account_key_path() -> Path:
    """Return the service account key location.

    ``GOOGLE_SERVICE_ACCOUNT_KEY`` wins over the in-repo default.
    """
    override = os.environ.get(KEY_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return GOOGLE_SERVICE_ACCOUNT


def get_log_level() -> str:
    """Return the configured log level name.

    Raises:
        ValueError: If DRIVE_HELPER_LOG_LEVEL is not a logging level name.
    """
    level = os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level in {LOG_LEVEL_ENV}: {level}")
    return level


def ensure_google_dir() -> Path:
    """Create google credentials directory if it doesn't exist.

    Returns:
        Path to google directory.
    """
    GOOGLE_DIR.mkdir(parents=True, exist_ok=True)
    return GOOGLE_DIR


def get_credential_status() -> dict:
    """Get status of the configured credentials.

    Returns:
        Dictionary with credential status.
    """
    key_path = get_service_account_key_path()
    return {
        "repo_root": str(REPO_ROOT),
        "env_file": ENV_FILE.exists(),
        "service_account": {
            "key_path": str(key_path),
            "exists": key_path.exists(),
            "from_env": bool(os.environ.get(KEY_PATH_ENV)),
        },
        "log_level": get_log_level(),
    }


# Auto-load .env from repo root on import
_loaded = _load_env_file(ENV_FILE)
