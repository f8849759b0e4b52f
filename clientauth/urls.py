from __future__ import annotations

import urllib.parse

from clientauth.errors import ConfigurationError
from clientauth.models import AuthorizationUrl
from relay.constants import GITHUB_APP, GITHUB_BASE_URL

CALLBACK_PARAMS = ("code", "state")


def build_authorization_url(
    *,
    client_type: str,
    client_id: str,
    redirect_url: str,
    state: str,
    login: str | None = None,
    allow_signup: bool = True,
    scopes: list[str] | None = None,
    base_url: str = GITHUB_BASE_URL,
) -> AuthorizationUrl:
    if client_type == GITHUB_APP and scopes:
        raise ConfigurationError("GitHub App does not support scopes.")

    scopes = list(scopes or [])
    query = {
        "allow_signup": "true" if allow_signup else "false",
        "client_id": client_id,
        "login": login,
        "redirect_uri": redirect_url,
        "scope": ",".join(scopes) or None,
        "state": state,
    }
    query = {key: value for key, value in query.items() if value is not None}
    url = f"{base_url.rstrip('/')}/login/oauth/authorize?{urllib.parse.urlencode(query)}"

    return AuthorizationUrl(
        url=url,
        client_type=client_type,
        client_id=client_id,
        redirect_url=redirect_url,
        state=state,
        allow_signup=allow_signup,
        login=login,
        scopes=scopes,
    )


def read_callback_params(url: str) -> tuple[str, str] | None:
    query = dict(urllib.parse.parse_qsl(urllib.parse.urlparse(url).query))
    code = query.get("code")
    state = query.get("state")
    if not code or not state:
        return None
    return code, state


def strip_query_params(url: str, names=CALLBACK_PARAMS) -> str:
    # Other pairs are kept byte for byte, encoding included.
    parsed = urllib.parse.urlparse(url)
    kept = [
        pair
        for pair in parsed.query.split("&")
        if pair and urllib.parse.unquote_plus(pair.partition("=")[0]) not in names
    ]
    return urllib.parse.urlunparse(parsed._replace(query="&".join(kept)))

