from __future__ import annotations

from relay.constants import NAME


class ClientAuthError(RuntimeError):
    status_code: int | None = None

    def __init__(self, message: str) -> None:
        super().__init__(f"[{NAME}] {message}")


class ConfigurationError(ClientAuthError):
    pass


class CredentialError(ClientAuthError):
    pass


class MissingCallbackParametersError(ClientAuthError):
    def __init__(self, message: str = 'Both "code" & "state" parameters are required.') -> None:
        super().__init__(message)
        self.status_code = 400


class StateMismatchError(ClientAuthError):
    def __init__(self, message: str = "State mismatch.") -> None:
        super().__init__(message)
        self.status_code = 400


class UnauthorizedError(ClientAuthError):
    def __init__(self, message: str = "Unauthorized.") -> None:
        super().__init__(message)
        self.status_code = 401


class BasicAuthUnsupportedError(ClientAuthError):
    def __init__(self, message: str = "Basic authentication is unsupported.") -> None:
        super().__init__(message)


class BackendError(ClientAuthError):
    """A non-2xx response from the OAuth relay; the message is the raw body."""

    def __init__(self, body: str, status_code: int) -> None:
        RuntimeError.__init__(self, body)
        self.body = body
        self.status_code = status_code
