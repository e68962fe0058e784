"""Tests for the login, bootstrap and logout flows."""

from __future__ import annotations

import json

import httpx
import pytest

from punchclock.auth import Session
from punchclock.exceptions import ApplicationError, AuthError, InvalidUsageError


def _login_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/auth/login":
        return httpx.Response(
            200, json={"ok": True, "data": {"token": "fresh", "user": {"id": 1, "name": "Ana"}}}
        )
    return httpx.Response(200, json={"ok": True, "data": {"id": 1, "name": "Ana"}})


class TestLogin:
    @pytest.mark.asyncio
    async def test_stores_token_and_returns_user(self, make_executor) -> None:
        executor, rec = make_executor(_login_handler)
        user = await Session(executor).login(" 123456 ")

        assert user == {"id": 1, "name": "Ana"}
        assert executor.get_token() == "fresh"

        request = rec.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/auth/login"
        assert json.loads(request.content) == {"passCode": "123456"}
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_login_empties_cache(self, make_executor) -> None:
        executor, _ = make_executor(_login_handler)
        await executor.get("/api/projects")
        assert len(executor.context.cache) == 1

        await Session(executor).login("123456")
        assert len(executor.context.cache) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("passcode", ["", "12345", "1234567", "12a456", None])
    async def test_rejects_malformed_passcode(self, make_executor, passcode) -> None:
        executor, rec = make_executor(_login_handler)
        with pytest.raises(InvalidUsageError):
            await Session(executor).login(passcode)
        assert rec.count == 0

    @pytest.mark.asyncio
    async def test_response_without_token(self, make_executor) -> None:
        executor, _ = make_executor(
            lambda r: httpx.Response(200, json={"ok": True, "data": {"user": {}}})
        )
        with pytest.raises(AuthError):
            await Session(executor).login("123456")
        assert executor.get_token() == "tok-1"

    @pytest.mark.asyncio
    async def test_wrong_passcode(self, make_executor) -> None:
        executor, _ = make_executor(
            lambda r: httpx.Response(
                400, json={"ok": False, "error": {"code": "INVALID_PASSCODE", "message": "Wrong"}}
            )
        )
        with pytest.raises(ApplicationError) as exc_info:
            await Session(executor).login("000000")
        assert exc_info.value.code == "INVALID_PASSCODE"


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_no_token_sends_nothing(self, make_executor) -> None:
        executor, rec = make_executor(_login_handler)
        executor.clear_token()

        session = Session(executor)
        assert session.is_authenticated is False
        assert await session.bootstrap() is None
        assert rec.count == 0

    @pytest.mark.asyncio
    async def test_valid_token_returns_user(self, make_executor) -> None:
        executor, rec = make_executor(_login_handler)
        user = await Session(executor).bootstrap()

        assert user == {"id": 1, "name": "Ana"}
        assert rec.paths() == ["GET /api/auth/me"]

    @pytest.mark.asyncio
    async def test_rejected_token_is_forgotten(self, make_executor) -> None:
        executor, _ = make_executor(
            lambda r: httpx.Response(403, json={"ok": False, "error": {"code": "FORBIDDEN"}})
        )
        with pytest.raises(ApplicationError):
            await Session(executor).bootstrap()
        assert executor.get_token() == ""


@pytest.mark.asyncio
async def test_logout_clears_token_and_cache(make_executor) -> None:
    executor, _ = make_executor(_login_handler)
    await executor.get("/api/projects")

    session = Session(executor)
    session.logout()

    assert session.is_authenticated is False
    assert len(executor.context.cache) == 0
