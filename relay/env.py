from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from clientauth.models import ClientConfig
from .constants import DEFAULT_SERVICE_PATH_PREFIX, GITHUB_BASE_URL, LOGGER, OAUTH_APP


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv_env(key: str) -> list[str]:
    raw = os.getenv(key, "")
    if not raw.strip():
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a numeric value.")


def load_env(path: str | Path | None = None) -> None:
    env_path = Path(path) if path else Path.cwd() / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=False)


def validate_env() -> None:
    missing = [key for key in ("OAUTH_CLIENT_ID",) if not os.getenv(key, "").strip()]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")


def validate_service_env() -> None:
    """The relay origin comes from OAUTH_SERVICE_ORIGIN or the redirect URL's origin."""
    if not any(os.getenv(key, "").strip() for key in ("OAUTH_SERVICE_ORIGIN", "OAUTH_REDIRECT_URL")):
        raise RuntimeError(
            "Missing required environment variables: OAUTH_SERVICE_ORIGIN or OAUTH_REDIRECT_URL"
        )


def config_from_env() -> ClientConfig:
    validate_env()
    return ClientConfig(
        client_id=os.getenv("OAUTH_CLIENT_ID", "").strip(),
        client_type=os.getenv("OAUTH_CLIENT_TYPE", OAUTH_APP).strip(),
        expiration_enabled=is_truthy(os.getenv("OAUTH_EXPIRATION_ENABLED")),
        default_scopes=tuple(parse_csv_env("OAUTH_DEFAULT_SCOPES")),
        service_origin=os.getenv("OAUTH_SERVICE_ORIGIN", "").strip() or None,
        service_path_prefix=os.getenv("OAUTH_SERVICE_PATH_PREFIX", DEFAULT_SERVICE_PATH_PREFIX),
        base_url=os.getenv("OAUTH_BASE_URL", GITHUB_BASE_URL),
    )


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("OAUTH_DEBUG"))
    if debug_enabled:
        logging.basicConfig(level=logging.DEBUG)
        LOGGER.setLevel(logging.DEBUG)
    return debug_enabled
