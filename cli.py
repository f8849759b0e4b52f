from __future__ import annotations

import argparse
import asyncio
import json

from clientauth.commands import (
    CheckToken,
    CreateScopedToken,
    DeleteAuthorization,
    DeleteToken,
    GetToken,
    RenewToken,
    ResetToken,
    SignIn,
)
from clientauth.engine import AuthenticationEngine
from clientauth.errors import ClientAuthError
from clientauth.location import BrowserLocation
from relay.app import create_engine


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oauth-user-client",
        description="Manage a GitHub user access token through an OAuth relay.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    sign_in = commands.add_parser("sign-in", help="open the web flow authorization page")
    sign_in.add_argument("--login")
    sign_in.add_argument("--no-signup", dest="allow_signup", action="store_false")
    sign_in.add_argument("--scope", dest="scopes", action="append")

    callback = commands.add_parser("callback", help="exchange the code in a callback URL")
    callback.add_argument("url")

    commands.add_parser("token", help="print the current token, renewing it if expired")
    commands.add_parser("check", help="check the token with the relay")

    scoped = commands.add_parser("scoped", help="create a scoped token")
    scoped.add_argument("--target")
    scoped.add_argument("--repository", dest="repositories", action="append")

    commands.add_parser("reset", help="reset the token")
    commands.add_parser("renew", help="renew the token with the refresh token")

    sign_out = commands.add_parser("sign-out", help="delete the token")
    sign_out.add_argument("--offline", action="store_true")

    commands.add_parser("revoke", help="delete the app authorization")
    return parser


def to_command(args: argparse.Namespace):
    if args.command == "sign-in":
        return SignIn(login=args.login, allow_signup=args.allow_signup, scopes=args.scopes)
    if args.command in ("callback", "token"):
        return GetToken()
    if args.command == "check":
        return CheckToken()
    if args.command == "scoped":
        return CreateScopedToken(target=args.target, repositories=args.repositories)
    if args.command == "reset":
        return ResetToken()
    if args.command == "renew":
        return RenewToken()
    if args.command == "sign-out":
        return DeleteToken(offline=args.offline)
    if args.command == "revoke":
        return DeleteAuthorization()
    raise ValueError(f"Unknown command: {args.command}")


async def run(args: argparse.Namespace, engine: AuthenticationEngine) -> str:
    credential = await engine.execute(to_command(args))
    payload = credential.to_payload() if credential is not None else None
    return json.dumps(payload, indent=2)


def main(argv: list[str] | None = None, *, engine_factory=create_engine) -> int:
    args = build_parser().parse_args(argv)
    location = BrowserLocation(args.url) if args.command == "callback" else None
    try:
        engine = engine_factory(location=location)
        print(asyncio.run(run(args, engine)))
    except ClientAuthError as error:
        print(str(error))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
