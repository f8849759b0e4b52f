import pytest

from clientauth.commands import (
    CheckToken,
    CreateScopedToken,
    DeleteAuthorization,
    DeleteToken,
    RenewToken,
    ResetToken,
)
from clientauth.errors import BackendError, UnauthorizedError
from tests.auth_helpers import (
    CHECKED_AUTH,
    EXPIRED_RENEWABLE_AUTH,
    EXPIRED_UNRENEWABLE_AUTH,
    GRANT_URL,
    REFRESH_URL,
    RENEWED_AUTH,
    RESETTED_AUTH,
    SCOPED_TOKEN_URL,
    TOKEN_URL,
    VALID_AUTH,
    authentication_response,
    request_json,
)

AUTHENTICATED_COMMANDS = [
    CheckToken(),
    CreateScopedToken(target="octocat"),
    ResetToken(),
    RenewToken(),
    DeleteToken(),
    DeleteAuthorization(),
]


@pytest.mark.parametrize("command", AUTHENTICATED_COMMANDS)
@pytest.mark.asyncio
async def test_unauthorized_when_signed_out(command, make_engine, auth_store, httpx_mock) -> None:
    engine = make_engine()

    with pytest.raises(UnauthorizedError, match="Unauthorized.") as error:
        await engine.execute(command)

    assert error.value.status_code == 401
    assert await auth_store.get() is None
    assert httpx_mock.get_requests() == []


@pytest.mark.parametrize(
    "command",
    [CheckToken(), ResetToken(), DeleteToken(), DeleteAuthorization()],
)
@pytest.mark.asyncio
async def test_unauthorized_when_unrenewable(command, make_engine, auth_store, httpx_mock) -> None:
    engine = make_engine(credential=EXPIRED_UNRENEWABLE_AUTH)

    with pytest.raises(UnauthorizedError):
        await engine.execute(command)

    assert await auth_store.get() is None
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_check_token(make_engine, auth_store, httpx_mock) -> None:
    httpx_mock.add_response(method="GET", url=TOKEN_URL, json=authentication_response(CHECKED_AUTH))
    engine = make_engine(credential=VALID_AUTH)

    credential = await engine.execute(CheckToken())

    assert credential.to_payload() == {**VALID_AUTH, **CHECKED_AUTH}
    assert await auth_store.get() == {**VALID_AUTH, **CHECKED_AUTH}
    request = httpx_mock.get_requests()[0]
    assert request.headers["authorization"] == "token token_123"
    assert request.headers["accept"] == "application/json"
    assert "content-type" not in request.headers
    assert request.content == b""


@pytest.mark.asyncio
async def test_check_token_renews_expired_token_first(make_engine, httpx_mock) -> None:
    httpx_mock.add_response(method="PATCH", url=REFRESH_URL, json=authentication_response(RENEWED_AUTH))
    httpx_mock.add_response(method="GET", url=TOKEN_URL, json=authentication_response(CHECKED_AUTH))
    engine = make_engine(credential=EXPIRED_RENEWABLE_AUTH)

    credential = await engine.execute(CheckToken())

    assert credential.to_payload() == {**RENEWED_AUTH, **CHECKED_AUTH}
    renew_request, check_request = httpx_mock.get_requests()
    assert renew_request.headers["authorization"] == "token token_123"
    assert check_request.headers["authorization"] == "token token_789"


@pytest.mark.asyncio
async def test_create_scoped_token(make_engine, httpx_mock) -> None:
    scoped = {**CHECKED_AUTH, "token": "token_scoped"}
    httpx_mock.add_response(method="POST", url=SCOPED_TOKEN_URL, json=authentication_response(scoped))
    engine = make_engine(credential=VALID_AUTH)

    command = CreateScopedToken(target="octocat", repositories=["hello-world"], permissions={"issues": "write"})
    credential = await engine.execute(command)

    assert credential.token == "token_scoped"
    assert credential.refresh_token == "refresh_token_1"
    request = httpx_mock.get_requests()[0]
    assert request_json(request) == {
        "target": "octocat",
        "repositories": ["hello-world"],
        "permissions": {"issues": "write"},
    }


@pytest.mark.asyncio
async def test_reset_token_keeps_refresh_token(make_engine, auth_store, httpx_mock) -> None:
    httpx_mock.add_response(method="PATCH", url=TOKEN_URL, json=authentication_response(RESETTED_AUTH))
    engine = make_engine(credential=VALID_AUTH)

    credential = await engine.execute(ResetToken())

    assert credential.token == "token_456"
    assert credential.refresh_token == "refresh_token_1"
    assert credential.to_payload() == {**VALID_AUTH, **RESETTED_AUTH}
    assert await auth_store.get() == {**VALID_AUTH, **RESETTED_AUTH}
    request = httpx_mock.get_requests()[0]
    assert request.headers["authorization"] == "token token_123"
    assert request.content == b"{}"


@pytest.mark.asyncio
async def test_renew_token_when_still_valid(make_engine, auth_store, httpx_mock) -> None:
    httpx_mock.add_response(method="PATCH", url=REFRESH_URL, json=authentication_response(RENEWED_AUTH))
    engine = make_engine(credential=VALID_AUTH)

    credential = await engine.execute(RenewToken())

    assert credential.to_payload() == RENEWED_AUTH
    assert await auth_store.get() == RENEWED_AUTH
    assert request_json(httpx_mock.get_requests()[0]) == {"refreshToken": "refresh_token_1"}


@pytest.mark.asyncio
async def test_renew_token_when_unrenewable(make_engine, auth_store, httpx_mock) -> None:
    engine = make_engine(credential=EXPIRED_UNRENEWABLE_AUTH)

    assert await engine.execute(RenewToken()) is None

    assert await auth_store.get() is None
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_renew_token_requires_refresh_capability(make_engine, httpx_mock) -> None:
    engine = make_engine(expiration_enabled=False, credential=CHECKED_AUTH)

    with pytest.raises(UnauthorizedError):
        await engine.execute(RenewToken())

    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_delete_token(make_engine, auth_store, httpx_mock) -> None:
    httpx_mock.add_response(method="DELETE", url=TOKEN_URL, status_code=204)
    engine = make_engine(credential=VALID_AUTH)

    assert await engine.execute(DeleteToken()) is None

    assert engine.credential is None
    assert await auth_store.get() is None
    requests = httpx_mock.get_requests()
    assert len(requests) == 1
    assert requests[0].method == "DELETE"
    assert requests[0].headers["authorization"] == "token token_123"


@pytest.mark.asyncio
async def test_delete_token_after_renewal(make_engine, auth_store, httpx_mock) -> None:
    httpx_mock.add_response(method="PATCH", url=REFRESH_URL, json=authentication_response(RENEWED_AUTH))
    httpx_mock.add_response(method="DELETE", url=TOKEN_URL, status_code=204)
    engine = make_engine(credential=EXPIRED_RENEWABLE_AUTH)

    assert await engine.execute(DeleteToken()) is None

    renew_request, delete_request = httpx_mock.get_requests()
    assert delete_request.headers["authorization"] == "token token_789"
    assert await auth_store.get() is None


@pytest.mark.asyncio
async def test_delete_token_offline(make_engine, auth_store, httpx_mock) -> None:
    engine = make_engine(credential=VALID_AUTH)

    assert await engine.execute(DeleteToken(offline=True)) is None

    assert await auth_store.get() is None
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_delete_token_clears_credential_on_relay_error(make_engine, auth_store, httpx_mock) -> None:
    httpx_mock.add_response(method="DELETE", url=TOKEN_URL, status_code=500, text="service error")
    engine = make_engine(credential=VALID_AUTH)

    with pytest.raises(BackendError, match="service error"):
        await engine.execute(DeleteToken())

    assert engine.credential is None
    assert await auth_store.get() is None


@pytest.mark.asyncio
async def test_delete_authorization(make_engine, auth_store, httpx_mock) -> None:
    httpx_mock.add_response(method="DELETE", url=GRANT_URL, status_code=204)
    engine = make_engine(credential=VALID_AUTH)

    assert await engine.execute(DeleteAuthorization()) is None

    assert await auth_store.get() is None
    request = httpx_mock.get_requests()[0]
    assert request.url == GRANT_URL
    assert request.headers["authorization"] == "token token_123"


@pytest.mark.asyncio
async def test_command_with_empty_response_clears_credential(make_engine, auth_store, httpx_mock) -> None:
    httpx_mock.add_response(method="GET", url=TOKEN_URL, status_code=204)
    engine = make_engine(credential=VALID_AUTH)

    assert await engine.execute(CheckToken()) is None
    assert await auth_store.get() is None


@pytest.mark.parametrize("credential", [EXPIRED_RENEWABLE_AUTH, EXPIRED_UNRENEWABLE_AUTH])
@pytest.mark.asyncio
async def test_delete_token_offline_with_expired_token(credential, make_engine, auth_store, httpx_mock) -> None:
    engine = make_engine(credential=credential)

    assert await engine.execute(DeleteToken(offline=True)) is None

    assert engine.credential is None
    assert await auth_store.get() is None
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_delete_token_offline_when_signed_out(make_engine, httpx_mock) -> None:
    engine = make_engine()

    with pytest.raises(UnauthorizedError):
        await engine.execute(DeleteToken(offline=True))

    assert httpx_mock.get_requests() == []
