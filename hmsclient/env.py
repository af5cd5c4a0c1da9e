from __future__ import annotations

import logging
import os

from pydantic import AnyHttpUrl, ValidationError

from .constants import DEFAULT_API_URL, ENV_FILE, LOG_FORMAT, LOGGER


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a numeric value.")
    if value <= 0:
        raise RuntimeError(f"{key} must be greater than zero.")
    return value


def get_api_url() -> str:
    raw = os.getenv("HMS_API_URL", "").strip() or DEFAULT_API_URL
    try:
        url = AnyHttpUrl(raw)
    except ValidationError as error:
        raise RuntimeError(
            "HMS_API_URL must be a valid HTTP(S) URL (for example: "
            "https://hms.example.com)."
        ) from error
    return str(url).rstrip("/")


def load_env() -> None:
    if not ENV_FILE.exists():
        return
    try:
        from dotenv import load_dotenv
    except ImportError:
        return
    load_dotenv(ENV_FILE, override=True)


def validate_env() -> None:
    get_api_url()
    _get_env_float("HMS_API_TIMEOUT", 1.0)
    _get_env_float("HMS_REFRESH_TIMEOUT", 1.0)

    has_email = bool(os.getenv("HMS_EMAIL", "").strip())
    has_password = bool(os.getenv("HMS_PASSWORD", "").strip())
    if has_email != has_password:
        raise RuntimeError("HMS_EMAIL and HMS_PASSWORD must be set together.")


def setup_logging() -> bool:
    """Configure root logging; returns whether request tracing is on."""
    debug_enabled = is_truthy(os.getenv("HMS_API_DEBUG", "1"))
    level = logging.INFO if debug_enabled else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    LOGGER.setLevel(level)
    return debug_enabled
