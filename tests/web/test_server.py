"""Tests for the session HTTP server (aiohttp)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from sessionkeeper.config import AppConfig
from sessionkeeper.errors import StorageFaultError
from sessionkeeper.session.manager import SessionManager
from sessionkeeper.web.server import SessionServer, parse_count

_COOKIE = "session_id"


@pytest.fixture
async def client(manager: SessionManager) -> AsyncIterator[TestClient[Any, Any]]:
    """Test client around a real SessionServer, once per storage backend."""
    server = SessionServer(AppConfig(), manager)
    test_client = TestClient(TestServer(server.build_app()))
    await test_client.start_server()
    yield test_client
    await test_client.close()


def _cookie_header(session_id: str) -> dict[str, str]:
    return {"Cookie": f"{_COOKIE}={session_id}"}


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    async def test_health_reports_backend(
        self, client: TestClient[Any, Any], manager: SessionManager
    ) -> None:
        resp = await client.get("/health")
        assert resp.status == 200
        data = await resp.json()
        assert data == {"status": "ok", "backend": manager.storage.name}


# ---------------------------------------------------------------------------
# Visit counter
# ---------------------------------------------------------------------------


class TestCount:
    async def test_first_visit_creates_session_and_sets_cookie(
        self, client: TestClient[Any, Any], manager: SessionManager
    ) -> None:
        resp = await client.get("/count")
        assert resp.status == 200
        assert await resp.json() == {"count": 1, "new": True}

        morsel = resp.cookies[_COOKIE]
        assert morsel.value
        assert morsel["httponly"]
        assert morsel["path"] == "/"
        assert int(morsel["max-age"]) == 3600
        assert await manager.storage.list_session_ids() == [morsel.value]

    async def test_count_increments_across_requests(self, client: TestClient[Any, Any]) -> None:
        first = await client.get("/count")
        sid = first.cookies[_COOKIE].value

        for expected in (2, 3, 4):
            resp = await client.get("/count", headers=_cookie_header(sid))
            assert await resp.json() == {"count": expected, "new": False}
            assert _COOKIE not in resp.cookies

    async def test_cookie_jar_round_trip(self, client: TestClient[Any, Any]) -> None:
        await client.get("/count")
        resp = await client.get("/count")
        assert (await resp.json())["count"] == 2

    async def test_unknown_cookie_starts_fresh(self, client: TestClient[Any, Any]) -> None:
        resp = await client.get("/count", headers=_cookie_header("forged"))
        assert await resp.json() == {"count": 1, "new": True}
        assert resp.cookies[_COOKIE].value != "forged"

    async def test_malicious_cookie_starts_fresh(self, client: TestClient[Any, Any]) -> None:
        resp = await client.get("/count", headers=_cookie_header("..%2F..%2Fetc"))
        assert resp.status == 200
        assert (await resp.json())["new"] is True

    async def test_storage_fault_returns_500(self, manager: SessionManager) -> None:
        manager.set_session = AsyncMock(side_effect=StorageFaultError("disk full"))  # type: ignore[method-assign]
        server = SessionServer(AppConfig(), manager)
        async with TestClient(TestServer(server.build_app())) as test_client:
            resp = await test_client.get("/count")
            assert resp.status == 500
            assert await resp.json() == {"error": "session_storage_failed"}

            health = await test_client.get("/health")
            assert health.status == 200


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------


class TestLogout:
    async def test_logout_deletes_session(
        self, client: TestClient[Any, Any], manager: SessionManager
    ) -> None:
        first = await client.get("/count")
        sid = first.cookies[_COOKIE].value

        resp = await client.post("/logout", headers=_cookie_header(sid))
        assert resp.status == 200
        assert await resp.json() == {"logged_out": True}
        assert resp.cookies[_COOKIE].value == ""
        assert await manager.storage.list_session_ids() == []

    async def test_logout_without_cookie(self, client: TestClient[Any, Any]) -> None:
        resp = await client.post("/logout")
        assert resp.status == 200
        assert await resp.json() == {"logged_out": False}

    async def test_logout_with_malformed_cookie(self, client: TestClient[Any, Any]) -> None:
        resp = await client.post("/logout", headers=_cookie_header(".."))
        assert resp.status == 200


# ---------------------------------------------------------------------------
# parse_count
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 0), (4, 4), ("7", 7), ("oops", 0), (True, 0), (2.5, 0)],
)
def test_parse_count(raw: Any, expected: int) -> None:
    assert parse_count(raw) == expected
