from __future__ import annotations

import re
from typing import TYPE_CHECKING

import httpx

from clientauth.commands import GetToken
from clientauth.errors import BasicAuthUnsupportedError

if TYPE_CHECKING:
    from clientauth.engine import AuthenticationEngine

# The provider rejects web flow requests that carry an unexpected token.
WEB_FLOW_PATH = re.compile(r"^/login/(oauth/(authorize|access_token)|device/code)$")
# OAuth app management endpoints authenticate with client id and secret.
BASIC_AUTH_PATH = re.compile(r"^/applications/[^/]+/(token|grant)s?(/|$)")


def is_web_flow_request(request: httpx.Request) -> bool:
    return bool(WEB_FLOW_PATH.match(request.url.path))


def requires_basic_auth(request: httpx.Request) -> bool:
    return bool(BASIC_AUTH_PATH.match(request.url.path))


class RequestInterceptor:
    """httpx request hook that signs outgoing API calls with the user token."""

    def __init__(self, engine: AuthenticationEngine) -> None:
        self._engine = engine

    async def __call__(self, request: httpx.Request) -> None:
        if is_web_flow_request(request):
            return
        if requires_basic_auth(request):
            raise BasicAuthUnsupportedError()

        credential = await self._engine.execute(GetToken())
        if credential is not None:
            request.headers["authorization"] = f"token {credential.token}"
