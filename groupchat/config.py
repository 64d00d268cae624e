"""Environment-driven settings for the group chat engine."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger


# Load env from the project root first, then CWD, so API keys are visible at import time
_here = Path(__file__).resolve().parents[1]
for _env_path in (_here / ".env", Path.cwd() / ".env"):
    if _env_path.is_file():
        load_dotenv(dotenv_path=str(_env_path), override=False)
        break


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"config | {name}={raw!r} is not a number; using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"config | {name}={raw!r} is not an integer; using {default}")
        return default


# Default models per real provider
DEFAULT_MODELS = {
    "openai": os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
    "anthropic": os.getenv("ANTHROPIC_MODEL", "claude-3-haiku-20240307"),
}

API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}

TEMPERATURE = _env_float("GROUPCHAT_TEMPERATURE", 0.7)
MAX_TOKENS = _env_int("GROUPCHAT_MAX_TOKENS", 800)

# Bounded provider call; after timeout or failure the reply falls back to a template
PROVIDER_TIMEOUT = _env_float("GROUPCHAT_PROVIDER_TIMEOUT", 15.0)
PROVIDER_RETRIES = max(0, _env_int("GROUPCHAT_PROVIDER_RETRIES", 0))


def _env_time_scale(name: str = "GROUPCHAT_TIME_SCALE", default: float = 1.0) -> float:
    value = _env_float(name, default)
    if value <= 0:
        logger.warning(f"config | {name}={value} must be positive; using {default}")
        return default
    return value


# Multiplies every coordination delay (1.0 = real time)
TIME_SCALE = _env_time_scale()

# Random pre-send pacing window, ms
REPLY_DELAY_MIN_MS = 1000
REPLY_DELAY_MAX_MS = 3000

LOG_LEVEL = os.getenv("GROUPCHAT_LOG_LEVEL", "INFO")


def api_key_for(provider: str, env: Optional[dict] = None) -> Optional[str]:
    """Return the configured API key for `provider`, or None."""
    source = os.environ if env is None else env
    var = API_KEY_ENV.get(provider)
    if not var:
        return None
    return source.get(var) or None
