from __future__ import annotations

import re
import urllib.parse
from dataclasses import dataclass, field
from datetime import datetime, timezone

from clientauth.errors import ConfigurationError, CredentialError
from relay.constants import (
    CLIENT_TYPES,
    DEFAULT_SERVICE_PATH_PREFIX,
    GITHUB_APP,
    GITHUB_BASE_URL,
    OAUTH_APP,
)

EXPIRATION_FIELDS = ("expiresAt", "refreshToken", "refreshTokenExpiresAt")
FRACTION = re.compile(r"\.(\d+)")


def parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    # Python 3.10 only accepts 3 or 6 fractional digits.
    value = FRACTION.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), value, count=1)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


@dataclass(frozen=True)
class ClientConfig:
    client_id: str
    client_type: str = OAUTH_APP
    expiration_enabled: bool = False
    default_scopes: tuple[str, ...] = ()
    service_origin: str | None = None
    service_path_prefix: str = DEFAULT_SERVICE_PATH_PREFIX
    base_url: str = GITHUB_BASE_URL

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ConfigurationError("client_id is required.")
        if self.client_type not in CLIENT_TYPES:
            raise ConfigurationError(f"Unknown client type: {self.client_type}.")
        if self.client_type == OAUTH_APP and self.expiration_enabled:
            raise ConfigurationError("OAuth App does not support token expiration.")
        if self.client_type == GITHUB_APP and self.default_scopes:
            raise ConfigurationError("GitHub App does not support scopes.")
        object.__setattr__(self, "default_scopes", tuple(self.default_scopes))

    def service_url(self, href: str) -> str:
        """Relay base URL; falls back to the origin of the current location."""
        origin = self.service_origin or href
        parsed = urllib.parse.urlparse(origin)
        if not parsed.scheme or not parsed.netloc:
            raise ConfigurationError(
                f"Cannot derive the token service origin from {origin!r}; "
                "an absolute http(s) URL is required."
            )
        if self.service_origin:
            return origin.rstrip("/") + self.service_path_prefix
        return f"{parsed.scheme}://{parsed.netloc}{self.service_path_prefix}"


@dataclass(kw_only=True)
class Credential:
    token: str
    client_id: str
    client_type: str
    token_type: str = "oauth"
    type: str = "token"
    scopes: list[str] | None = None

    def is_expired(self, now: datetime) -> bool:
        return False

    def to_payload(self) -> dict:
        payload = {
            "token": self.token,
            "tokenType": self.token_type,
            "type": self.type,
            "clientId": self.client_id,
            "clientType": self.client_type,
        }
        if self.scopes is not None:
            payload["scopes"] = list(self.scopes)
        return payload


@dataclass(kw_only=True)
class ExpiringCredential(Credential):
    expires_at: datetime
    refresh_token: str
    refresh_token_expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_refresh_token_expired(self, now: datetime) -> bool:
        return self.refresh_token_expires_at <= now

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["expiresAt"] = format_timestamp(self.expires_at)
        payload["refreshToken"] = self.refresh_token
        payload["refreshTokenExpiresAt"] = format_timestamp(self.refresh_token_expires_at)
        return payload


def parse_credential(payload: dict, *, expiration_enabled: bool) -> Credential:
    if not isinstance(payload, dict):
        raise CredentialError("Credential payload must be a JSON object.")

    token = payload.get("token")
    if not isinstance(token, str) or not token:
        raise CredentialError("Credential payload missing token.")

    scopes = payload.get("scopes")
    if scopes is not None and not isinstance(scopes, list):
        raise CredentialError("Credential scopes must be a list.")

    common = {
        "token": token,
        "token_type": payload.get("tokenType", "oauth"),
        "type": payload.get("type", "token"),
        "client_id": payload.get("clientId", ""),
        "client_type": payload.get("clientType", ""),
        "scopes": scopes,
    }
    if not expiration_enabled:
        return Credential(**common)

    present = [key for key in EXPIRATION_FIELDS if payload.get(key) is not None]
    if not present:
        return Credential(**common)
    if len(present) != len(EXPIRATION_FIELDS):
        missing = sorted(set(EXPIRATION_FIELDS) - set(present))
        raise CredentialError(f"Credential payload missing {', '.join(missing)}.")

    try:
        expires_at = parse_timestamp(payload["expiresAt"])
        refresh_token_expires_at = parse_timestamp(payload["refreshTokenExpiresAt"])
    except (AttributeError, TypeError, ValueError) as error:
        raise CredentialError(f"Credential payload has an invalid timestamp: {error}") from error

    return ExpiringCredential(
        **common,
        expires_at=expires_at,
        refresh_token=payload["refreshToken"],
        refresh_token_expires_at=refresh_token_expires_at,
    )


def merge_credential(
    previous: Credential | None,
    payload: dict,
    *,
    expiration_enabled: bool,
) -> Credential:
    """Overlay a (possibly partial) relay response on the previous credential.

    Endpoints such as reset-token do not return refresh fields; the previous
    values are kept so the credential can still be renewed later.
    """
    merged = previous.to_payload() if previous is not None else {}
    merged.update(payload)
    return parse_credential(merged, expiration_enabled=expiration_enabled)


@dataclass
class AuthorizationUrl:
    url: str
    client_type: str
    client_id: str
    redirect_url: str
    state: str
    allow_signup: bool = True
    login: str | None = None
    scopes: list[str] = field(default_factory=list)
