from __future__ import annotations

import hmac
import secrets
from datetime import datetime, timezone
from typing import Literal

from clientauth.commands import (
    CheckToken,
    Command,
    CreateScopedToken,
    CreateToken,
    DeleteAuthorization,
    DeleteToken,
    GetToken,
    RenewToken,
    ResetToken,
    SignIn,
)
from clientauth.errors import (
    MissingCallbackParametersError,
    StateMismatchError,
    UnauthorizedError,
)
from clientauth.location import Location, MemoryLocation
from clientauth.models import (
    ClientConfig,
    Credential,
    ExpiringCredential,
    merge_credential,
    parse_credential,
)
from clientauth.store import MemoryStore, Store
from clientauth.urls import (
    build_authorization_url,
    read_callback_params,
    strip_query_params,
)
from relay.constants import LOGGER, OAUTH_APP
from relay.http import BackendClient


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthenticationEngine:
    """Drives the sign-in, callback, refresh and sign-out lifecycle of one user token.

    The engine is the source of truth for the credential and the pending
    ``state`` value; the stores only mirror them so they survive a redirect or
    a restart. Commands are not serialized: callers issue one at a time.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        auth_store: Store | Literal[False] | None = None,
        state_store: Store | Literal[False] | None = None,
        location: Location | None = None,
        backend: BackendClient | None = None,
        credential: Credential | dict | None = None,
        clock=_utcnow,
    ) -> None:
        self.config = config
        self.location = location or MemoryLocation()
        self.auth_store = MemoryStore() if auth_store is None else auth_store
        self.state_store = MemoryStore() if state_store is None else state_store

        if backend is None:
            backend = BackendClient(config.service_url(self.location.href))
        self.backend = backend
        self._clock = clock

        if isinstance(credential, dict):
            credential = parse_credential(
                credential, expiration_enabled=config.expiration_enabled
            )
        self._credential: Credential | None = credential
        self._pending_state: str | None = None
        self._seed_unsaved = credential is not None

    @property
    def credential(self) -> Credential | None:
        return self._credential

    async def execute(self, command: Command | None = None) -> Credential | None:
        command = command or GetToken()
        if self._seed_unsaved:
            self._seed_unsaved = False
            await self._save(self._credential)

        if isinstance(command, SignIn):
            return await self._sign_in(command)
        if isinstance(command, GetToken):
            return await self._get_token()
        if isinstance(command, CreateToken):
            return await self._create_token()
        if isinstance(command, RenewToken):
            return await self._renew_token()
        if isinstance(command, DeleteToken):
            return await self._delete("delete_token", offline=command.offline)
        if isinstance(command, DeleteAuthorization):
            return await self._delete("delete_authorization")
        if isinstance(command, CheckToken):
            return await self._update("check_token")
        if isinstance(command, CreateScopedToken):
            return await self._update("create_scoped_token", body=command.to_body())
        if isinstance(command, ResetToken):
            return await self._update("reset_token", body={})

        raise TypeError(f"Unsupported command: {command!r}")

    # -- commands --------------------------------------------------------------

    async def _sign_in(self, command: SignIn) -> None:
        await self._save(None)

        state = secrets.token_urlsafe(24)
        self._pending_state = state
        if self.state_store is not False:
            await self.state_store.set(state)

        scopes = None
        if self.config.client_type == OAUTH_APP:
            scopes = command.scopes if command.scopes is not None else list(self.config.default_scopes)

        authorization = build_authorization_url(
            client_type=self.config.client_type,
            client_id=self.config.client_id,
            redirect_url=self.location.href,
            state=state,
            login=command.login,
            allow_signup=command.allow_signup,
            scopes=scopes,
            base_url=self.config.base_url,
        )
        LOGGER.info("Redirecting to web flow authorization for client %s", self.config.client_id)
        self.location.navigate(authorization.url)
        return None

    async def _get_token(self) -> Credential | None:
        if read_callback_params(self.location.href) is not None:
            return await self._create_token()

        credential = await self._load()
        if credential is None:
            return None
        if not credential.is_expired(self._clock()):
            return credential

        LOGGER.info("Token expired; renewing")
        return await self._renew_token()

    async def _create_token(self) -> Credential | None:
        callback = read_callback_params(self.location.href)
        if callback is None:
            raise MissingCallbackParametersError()
        code, received_state = callback

        await self._consume_pending_state(received_state)

        redirect_url = strip_query_params(self.location.href)
        self.location.replace(redirect_url)

        response = await self.backend.request(
            "create_token",
            body={"code": code, "redirectUrl": redirect_url, "state": received_state},
        )
        return await self._apply_response(None, response)

    async def _renew_token(self) -> Credential | None:
        credential = await self._load()
        if not isinstance(credential, ExpiringCredential):
            raise UnauthorizedError()

        if credential.is_refresh_token_expired(self._clock()):
            LOGGER.info("Refresh token expired; signing out")
            await self._save(None)
            return None

        response = await self.backend.request(
            "renew_token",
            token=credential.token,
            body={"refreshToken": credential.refresh_token},
        )
        return await self._apply_response(credential, response)

    async def _update(self, endpoint: str, *, body: dict | None = None) -> Credential | None:
        credential = await self._require_credential()
        response = await self.backend.request(endpoint, token=credential.token, body=body)
        return await self._apply_response(credential, response)

    async def _delete(self, endpoint: str, *, offline: bool = False) -> None:
        if offline:
            # Local sign-out never renews, even when the access token expired.
            if await self._load() is None:
                raise UnauthorizedError()
            await self._save(None)
            return None

        credential = await self._require_credential()

        try:
            await self.backend.request(endpoint, token=credential.token)
        finally:
            await self._save(None)
        return None

    # -- helpers ---------------------------------------------------------------

    async def _consume_pending_state(self, received_state: str) -> None:
        expected = self._pending_state
        self._pending_state = None
        if self.state_store is not False:
            stored = await self.state_store.get()
            await self.state_store.set(None)
            if expected is None:
                expected = stored
        elif expected is None:
            return

        if not isinstance(expected, str) or not hmac.compare_digest(
            expected.encode("utf-8"), received_state.encode("utf-8")
        ):
            LOGGER.warning("OAuth state mismatch for client %s", self.config.client_id)
            raise StateMismatchError()

    async def _require_credential(self) -> Credential:
        credential = await self._get_token()
        if credential is None:
            raise UnauthorizedError()
        return credential

    async def _apply_response(
        self, previous: Credential | None, response: dict | None
    ) -> Credential | None:
        credential = None
        if response is not None:
            credential = merge_credential(
                previous,
                response.get("authentication", response),
                expiration_enabled=self.config.expiration_enabled,
            )
        await self._save(credential)
        return credential

    async def _load(self) -> Credential | None:
        if self._credential is None and self.auth_store is not False:
            payload = await self.auth_store.get()
            if payload is not None:
                self._credential = parse_credential(
                    payload, expiration_enabled=self.config.expiration_enabled
                )
        return self._credential

    async def _save(self, credential: Credential | None) -> None:
        self._credential = credential
        if self.auth_store is not False:
            await self.auth_store.set(credential.to_payload() if credential else None)
