from __future__ import annotations

import logging

NAME = "oauth-user-client"
APP_VERSION = "0.1.0"
LOGGER = logging.getLogger("oauth_user_client")

OAUTH_APP = "oauth-app"
GITHUB_APP = "github-app"
CLIENT_TYPES = {OAUTH_APP, GITHUB_APP}

GITHUB_BASE_URL = "https://github.com"
GITHUB_API_URL = "https://api.github.com"
DEFAULT_SERVICE_PATH_PREFIX = "/api/github/oauth"
DEFAULT_STORE_PATH = ".oauth_tokens.json"

ENDPOINTS = {
    "create_token": ("POST", "/token"),
    "check_token": ("GET", "/token"),
    "create_scoped_token": ("POST", "/token/scoped"),
    "reset_token": ("PATCH", "/token"),
    "renew_token": ("PATCH", "/refresh-token"),
    "delete_token": ("DELETE", "/token"),
    "delete_authorization": ("DELETE", "/grant"),
}
