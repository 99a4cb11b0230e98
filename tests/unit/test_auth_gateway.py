from __future__ import annotations

import json
from typing import Any, Dict, List

import httpx
import pytest

from common.auth_gateway import AuthError, AuthGateway, Created, LoginOk
from state.models import Credentials, User


BASE = "http://api.test"

FAKE_USER: Dict[str, Any] = {
    "id": 1,
    "nombre": "Juan",
    "apellido": "Pérez",
    "email": "juan@test.com",
}


def _gateway(handler, **kwargs) -> AuthGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), timeout=10.0)
    kwargs.setdefault("backoff", 0.0)
    return AuthGateway(BASE, client=client, **kwargs)


@pytest.mark.asyncio
async def test_login_success_returns_user_and_token():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"access_token": "t1", "user": FAKE_USER})

    async with _gateway(handler) as gw:
        res = await gw.login("juan@test.com", "123456")

    assert isinstance(res, LoginOk)
    assert res.token == "t1"
    assert res.user == User(**FAKE_USER)

    req = seen[0]
    assert req.method == "POST"
    assert str(req.url) == f"{BASE}/auth/login"
    assert json.loads(req.content) == {"email": "juan@test.com", "password": "123456"}
    assert "authorization" not in req.headers


@pytest.mark.asyncio
async def test_login_without_token_is_missing_token():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"user": FAKE_USER})

    res = await _gateway(handler).login("a@b.com", "x")
    assert isinstance(res, AuthError)
    assert res.kind == "missing-token"


@pytest.mark.asyncio
async def test_login_with_bad_user_is_malformed():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "t1", "user": {"id": 1}})

    res = await _gateway(handler).login("a@b.com", "x")
    assert isinstance(res, AuthError)
    assert res.kind == "malformed"


@pytest.mark.asyncio
async def test_login_http_errors_are_tagged():
    statuses = {401: "unauthorized", 403: "forbidden", 500: "http"}
    for status, kind in statuses.items():
        def handler(_: httpx.Request, status=status) -> httpx.Response:
            return httpx.Response(status, json={"message": "nope"})

        res = await _gateway(handler).login("a@b.com", "x")
        assert isinstance(res, AuthError)
        assert res.kind == kind
        assert res.status == status


@pytest.mark.asyncio
async def test_login_connection_error_is_not_retried():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        raise httpx.ConnectError("refused", request=request)

    res = await _gateway(handler, max_retries=3).login("a@b.com", "x")
    assert isinstance(res, AuthError)
    assert res.kind == "connection"
    assert res.status is None
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_create_user_maps_field_names():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"message": "Usuario creado"})

    res = await _gateway(handler).create_user("Maria", "García", "maria@test.com", "123456")
    assert isinstance(res, Created)
    assert str(seen[0].url) == f"{BASE}/users"
    assert json.loads(seen[0].content) == {
        "name": "Maria",
        "surname": "García",
        "email": "maria@test.com",
        "password": "123456",
    }


@pytest.mark.asyncio
async def test_create_user_accepts_empty_body():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    assert isinstance(await _gateway(handler).create_user("Ma", "Ga", "m@t.com", "123456"), Created)


@pytest.mark.asyncio
async def test_create_user_conflict_is_error():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(409, json={"message": "email taken"})

    res = await _gateway(handler).create_user("Ma", "Ga", "m@t.com", "123456")
    assert isinstance(res, AuthError)
    assert res.kind == "http"
    assert res.status == 409


@pytest.mark.asyncio
async def test_get_user_sends_bearer_token():
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=FAKE_USER)

    res = await _gateway(handler).get_user(1, Credentials(token="t1"))
    assert res == User(**FAKE_USER)
    assert seen[0].method == "GET"
    assert str(seen[0].url) == f"{BASE}/users/1"
    assert seen[0].headers["authorization"] == "Bearer t1"


@pytest.mark.asyncio
async def test_get_user_retries_transient_then_succeeds():
    calls = {"count": 0}

    def handler(request: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        if calls["count"] == 1:
            raise httpx.ReadTimeout("slow", request=request)
        if calls["count"] == 2:
            return httpx.Response(503)
        return httpx.Response(200, json=FAKE_USER)

    res = await _gateway(handler, max_retries=2).get_user(1, Credentials(token="t1"))
    assert isinstance(res, User)
    assert calls["count"] == 3


@pytest.mark.asyncio
async def test_get_user_exhausted_retries_is_connection_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    res = await _gateway(handler, max_retries=1).get_user(1, Credentials(token="t1"))
    assert isinstance(res, AuthError)
    assert res.kind == "connection"


@pytest.mark.asyncio
async def test_get_user_unauthorized_not_retried():
    calls = {"count": 0}

    def handler(_: httpx.Request) -> httpx.Response:
        calls["count"] += 1
        return httpx.Response(401)

    res = await _gateway(handler, max_retries=3).get_user(1, Credentials(token="old"))
    assert isinstance(res, AuthError)
    assert res.kind == "unauthorized"
    assert calls["count"] == 1


@pytest.mark.asyncio
async def test_get_user_non_json_body_is_malformed():
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    res = await _gateway(handler).get_user(1, Credentials(token="t1"))
    assert isinstance(res, AuthError)
    assert res.kind == "malformed"
