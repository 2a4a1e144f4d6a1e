"""Tests for the TheTVDB token cache."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from app.config import Settings
from app.errors import AuthenticationError
from app.services.tvdb_session import TVDBSessionCache


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


class FakeClock:
    """Manually advanced replacement for ``time.time``."""

    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def build_settings(**overrides: Any) -> Settings:
    base: dict[str, Any] = {"TVDB_TOKEN_TTL": 600}
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def login_handler(requests: list[httpx.Request], tokens: list[str]):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"status": "success", "data": {"token": tokens[len(requests) - 1]}})

    return handler


@pytest.mark.anyio("asyncio")
async def test_token_is_reused_inside_validity_window() -> None:
    """Calls before expiry must not touch the network."""

    requests: list[httpx.Request] = []
    clock = FakeClock()
    transport = httpx.MockTransport(login_handler(requests, ["first", "second"]))
    async with httpx.AsyncClient(transport=transport, base_url="https://tvdb.example/v4") as http_client:
        cache = TVDBSessionCache(build_settings(), http_client, clock=clock)

        assert await cache.get_token("key") == "first"
        clock.now += 599.9
        assert await cache.get_token("key") == "first"

    assert len(requests) == 1
    assert requests[0].method == "POST"
    assert requests[0].url.path == "/v4/login"
    assert json.loads(requests[0].content) == {"apikey": "key"}


@pytest.mark.anyio("asyncio")
async def test_token_is_refreshed_exactly_once_at_expiry() -> None:
    requests: list[httpx.Request] = []
    clock = FakeClock()
    transport = httpx.MockTransport(login_handler(requests, ["first", "second"]))
    async with httpx.AsyncClient(transport=transport, base_url="https://tvdb.example/v4") as http_client:
        cache = TVDBSessionCache(build_settings(), http_client, clock=clock)

        await cache.get_token("key")
        clock.now += 600
        assert await cache.get_token("key") == "second"
        assert await cache.get_token("key") == "second"

        assert cache.session is not None
        assert cache.session.expires_at == clock.now + 600

    assert len(requests) == 2


@pytest.mark.anyio("asyncio")
async def test_rejected_login_raises_and_caches_nothing() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"status": "failure", "message": "Unauthorized"})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://tvdb.example/v4") as http_client:
        cache = TVDBSessionCache(build_settings(), http_client, clock=FakeClock())

        with pytest.raises(AuthenticationError) as excinfo:
            await cache.get_token("bad-key")

        assert cache.session is None

    assert excinfo.value.status_code == 401
    assert "401" in str(excinfo.value)


@pytest.mark.anyio("asyncio")
async def test_login_without_token_raises() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"status": "success", "data": {}})

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://tvdb.example/v4") as http_client:
        cache = TVDBSessionCache(build_settings(), http_client, clock=FakeClock())

        with pytest.raises(AuthenticationError, match="did not include a token"):
            await cache.get_token("key")

        assert cache.session is None


@pytest.mark.anyio("asyncio")
async def test_failed_refresh_leaves_previous_session_untouched() -> None:
    """An expired token is not replaced when the refresh login fails."""

    responses = [
        httpx.Response(200, json={"data": {"token": "first"}}),
        httpx.Response(503, text="maintenance"),
    ]

    def handler(_: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    clock = FakeClock()
    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://tvdb.example/v4") as http_client:
        cache = TVDBSessionCache(build_settings(), http_client, clock=clock)
        await cache.get_token("key")
        previous = cache.session
        clock.now += 10_000

        with pytest.raises(AuthenticationError) as excinfo:
            await cache.get_token("key")

        assert cache.session is previous

    assert excinfo.value.status_code == 503


@pytest.mark.anyio("asyncio")
async def test_transport_failure_raises_authentication_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = httpx.MockTransport(handler)
    async with httpx.AsyncClient(transport=transport, base_url="https://tvdb.example/v4") as http_client:
        cache = TVDBSessionCache(build_settings(), http_client, clock=FakeClock())

        with pytest.raises(AuthenticationError) as excinfo:
            await cache.get_token("key")

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.original_exception, httpx.ConnectError)


@pytest.mark.anyio("asyncio")
async def test_concurrent_callers_share_one_login() -> None:
    requests: list[httpx.Request] = []
    transport = httpx.MockTransport(login_handler(requests, ["shared", "unused"]))
    async with httpx.AsyncClient(transport=transport, base_url="https://tvdb.example/v4") as http_client:
        cache = TVDBSessionCache(build_settings(), http_client, clock=FakeClock())

        tokens = await asyncio.gather(*(cache.get_token("key") for _ in range(5)))

    assert tokens == ["shared"] * 5
    assert len(requests) == 1


@pytest.mark.anyio("asyncio")
async def test_invalidate_forces_a_new_login() -> None:
    requests: list[httpx.Request] = []
    transport = httpx.MockTransport(login_handler(requests, ["first", "second"]))
    async with httpx.AsyncClient(transport=transport, base_url="https://tvdb.example/v4") as http_client:
        cache = TVDBSessionCache(build_settings(), http_client, clock=FakeClock())

        await cache.get_token("key")
        cache.invalidate()
        assert await cache.get_token("key") == "second"

    assert len(requests) == 2
