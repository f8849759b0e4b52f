from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SignIn:
    login: str | None = None
    allow_signup: bool = True
    scopes: list[str] | None = None


@dataclass(frozen=True)
class GetToken:
    pass


@dataclass(frozen=True)
class CreateToken:
    pass


@dataclass(frozen=True)
class CheckToken:
    pass


@dataclass(frozen=True)
class CreateScopedToken:
    target: str | None = None
    target_id: int | None = None
    repositories: list[str] | None = None
    repository_ids: list[int] | None = None
    permissions: dict[str, str] | None = None

    def to_body(self) -> dict:
        body = {
            "target": self.target,
            "targetId": self.target_id,
            "repositories": self.repositories,
            "repositoryIds": self.repository_ids,
            "permissions": self.permissions,
        }
        return {key: value for key, value in body.items() if value is not None}


@dataclass(frozen=True)
class ResetToken:
    pass


@dataclass(frozen=True)
class RenewToken:
    pass


@dataclass(frozen=True)
class DeleteToken:
    offline: bool = False


@dataclass(frozen=True)
class DeleteAuthorization:
    pass


Command = (
    SignIn
    | GetToken
    | CreateToken
    | CheckToken
    | CreateScopedToken
    | ResetToken
    | RenewToken
    | DeleteToken
    | DeleteAuthorization
)
