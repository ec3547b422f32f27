# =============================================================================
# core/config.py  —  Environment configuration
# =============================================================================
#
# All runtime settings come from environment variables, optionally seeded
# from a .env file in the working directory:
#
#   FASTMAIL_API_TOKEN   (required)  API token with mail/contacts/calendar scope
#   FASTMAIL_BASE_URL    (optional)  default https://api.fastmail.com
#   FASTMAIL_TIMEOUT     (optional)  seconds per HTTP exchange, default 30
#   LOG_LEVEL            (optional)  default INFO
# =============================================================================

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from core.errors import AuthenticationError

DEFAULT_BASE_URL = "https://api.fastmail.com"


@dataclass(frozen=True)
class Settings:
    """Connection settings for one Fastmail account."""

    api_token: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    log_level: str = "INFO"


def load_settings(env_file: bool = True) -> Settings:
    """Read Settings from the environment (and .env unless env_file=False)."""
    if env_file:
        # Existing environment variables win over .env entries.
        load_dotenv(override=False)

    token = os.environ.get("FASTMAIL_API_TOKEN", "").strip()
    if not token:
        raise AuthenticationError("FASTMAIL_API_TOKEN environment variable is required")

    base_url = os.environ.get("FASTMAIL_BASE_URL", "").strip() or DEFAULT_BASE_URL
    timeout_raw = os.environ.get("FASTMAIL_TIMEOUT", "").strip()
    try:
        timeout = float(timeout_raw) if timeout_raw else 30.0
    except ValueError:
        raise ValueError(f"FASTMAIL_TIMEOUT must be a number, got {timeout_raw!r}") from None

    return Settings(
        api_token=token,
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
