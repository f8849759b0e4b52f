from __future__ import annotations

import os

import httpx

from clientauth.engine import AuthenticationEngine
from clientauth.hook import RequestInterceptor
from clientauth.location import BrowserLocation, Location
from clientauth.store import FileStore, store_key
from .constants import DEFAULT_STORE_PATH, GITHUB_API_URL
from .env import (
    config_from_env,
    get_env_float,
    load_env,
    setup_logging,
    validate_service_env,
)
from .http import BackendClient, log_request, log_response


def create_engine(location: Location | None = None) -> AuthenticationEngine:
    load_env()
    setup_logging()
    config = config_from_env()

    if location is None:
        validate_service_env()
        location = BrowserLocation(os.getenv("OAUTH_REDIRECT_URL", "").strip())
    store_path = os.getenv("OAUTH_STORE_PATH", DEFAULT_STORE_PATH)
    backend = BackendClient(
        config.service_url(location.href),
        timeout=get_env_float("OAUTH_TIMEOUT", 30.0),
    )

    return AuthenticationEngine(
        config,
        auth_store=FileStore(store_path, store_key("AUTH", config.client_id)),
        state_store=FileStore(store_path, store_key("STATE", config.client_id)),
        location=location,
        backend=backend,
    )


def create_api_client(
    engine: AuthenticationEngine,
    *,
    base_url: str = GITHUB_API_URL,
    timeout: float = 30.0,
    debug: bool = False,
) -> httpx.AsyncClient:
    """Build an API client whose requests carry the engine's user token."""
    request_hooks: list = [RequestInterceptor(engine)]
    response_hooks: list = []
    if debug:
        request_hooks.append(log_request)
        response_hooks.append(log_response)

    return httpx.AsyncClient(
        base_url=base_url,
        headers={"accept": "application/vnd.github.v3+json"},
        timeout=timeout,
        event_hooks={"request": request_hooks, "response": response_hooks},
    )
