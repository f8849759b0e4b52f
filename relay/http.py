from __future__ import annotations

import json
import logging

import httpx

from clientauth.errors import BackendError, CredentialError
from .constants import APP_VERSION, ENDPOINTS, LOGGER, NAME

USER_AGENT = f"{NAME}/{APP_VERSION} python-httpx/{httpx.__version__}"


class BackendClient:
    """Calls the OAuth relay that holds the client secret on our behalf."""

    def __init__(
        self,
        service_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.service_url = service_url.rstrip("/")
        self._client = client
        self._timeout = timeout
        self._logger = logger or LOGGER

    async def request(
        self,
        command: str,
        *,
        token: str | None = None,
        body: dict | None = None,
    ) -> dict | None:
        method, path = ENDPOINTS[command]
        headers = {"user-agent": USER_AGENT}
        if token:
            headers["authorization"] = f"token {token}"
        content = None
        if body is not None:
            headers["content-type"] = "application/json; charset=utf-8"
            content = json.dumps(body).encode("utf-8")
        headers["accept"] = "application/json"

        url = self.service_url + path
        own_client = self._client is None
        http_client = self._client or httpx.AsyncClient(timeout=self._timeout)

        try:
            self._logger.info("OAuth relay request %s %s", method, url)
            response = await http_client.request(method, url, headers=headers, content=content)
        finally:
            if own_client:
                await http_client.aclose()

        if not response.is_success:
            self._logger.warning(
                "OAuth relay error status=%s endpoint=%s body=%s",
                response.status_code,
                url,
                response.text,
            )
            raise BackendError(response.text, response.status_code)
        if response.status_code == 204:
            return None

        try:
            payload = response.json()
        except ValueError as error:
            raise CredentialError(f"OAuth relay returned invalid JSON: {error}") from error
        if not isinstance(payload, dict):
            raise CredentialError("OAuth relay response must be a JSON object.")
        return payload

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


async def log_request(request: httpx.Request) -> None:
    LOGGER.info("API request %s %s", request.method, request.url)


async def log_response(response: httpx.Response) -> None:
    LOGGER.info(
        "API response %s %s -> %s",
        response.request.method,
        response.request.url,
        response.status_code,
    )
    if response.status_code >= 400:
        body = await response.aread()
        text = body.decode("utf-8", errors="replace")
        if len(text) > 1000:
            text = text[:1000] + "...<truncated>"
        LOGGER.warning("API error body: %s", text)
