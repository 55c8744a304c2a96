from __future__ import annotations

from collections.abc import AsyncIterator

import aiohttp
import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from featurewatch._transport import HttpPushTransport, is_legacy_endpoint
from featurewatch.config import WatchConfig
from featurewatch.exceptions import DeliveryError


def _push_app(seen: list[web.Request], bodies: list[bytes]) -> web.Application:
    async def accept(request: web.Request) -> web.Response:
        seen.append(request)
        bodies.append(await request.read())
        return web.Response(status=201)

    async def gone(request: web.Request) -> web.Response:
        return web.Response(status=410, text="subscription expired")

    app = web.Application()
    app.router.add_post("/push/ok", accept)
    app.router.add_post("/gcm/send/abc", accept)
    app.router.add_post("/push/gone", gone)
    return app


@pytest_asyncio.fixture
async def push_server() -> AsyncIterator[tuple[TestServer, list[web.Request], list[bytes]]]:
    seen: list[web.Request] = []
    bodies: list[bytes] = []
    server = TestServer(_push_app(seen, bodies))
    await server.start_server()
    try:
        yield server, seen, bodies
    finally:
        await server.close()


def test_is_legacy_endpoint() -> None:
    prefix = "https://android.googleapis.com/gcm/send"
    assert is_legacy_endpoint("https://android.googleapis.com/gcm/send/abc", prefix)
    assert not is_legacy_endpoint("https://updates.push.services.mozilla.com/wpush/v1/abc", prefix)
    assert not is_legacy_endpoint("https://android.googleapis.com/gcm/send/abc", "")


@pytest.mark.asyncio
async def test_post_sends_body_and_headers(push_server) -> None:
    server, seen, bodies = push_server
    async with aiohttp.ClientSession() as session:
        transport = HttpPushTransport(WatchConfig(legacy_api_key="server-key"), session)
        status = await transport.post(str(server.make_url("/push/ok")), body=b"cipher", headers={"ttl": "60"})

    assert status == 201
    assert bodies == [b"cipher"]
    assert seen[0].headers["ttl"] == "60"
    assert seen[0].headers["user-agent"].startswith("featurewatch/")
    assert "authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_legacy_endpoint_gets_server_key(push_server) -> None:
    server, seen, _ = push_server
    prefix = str(server.make_url("/gcm/send"))
    config = WatchConfig(legacy_endpoint_prefix=prefix, legacy_api_key="server-key")
    async with aiohttp.ClientSession() as session:
        await HttpPushTransport(config, session).post(f"{prefix}/abc")

    assert seen[0].headers["authorization"] == "key=server-key"


@pytest.mark.asyncio
async def test_non_2xx_raises_delivery_error(push_server) -> None:
    server, _, _ = push_server
    endpoint = str(server.make_url("/push/gone"))
    async with aiohttp.ClientSession() as session:
        with pytest.raises(DeliveryError) as exc_info:
            await HttpPushTransport(WatchConfig(), session).post(endpoint)

    assert exc_info.value.status_code == 410
    assert exc_info.value.endpoint == endpoint
    assert "subscription expired" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_failure_raises_delivery_error(unused_tcp_port: int) -> None:
    endpoint = f"http://127.0.0.1:{unused_tcp_port}/push"
    async with aiohttp.ClientSession() as session:
        with pytest.raises(DeliveryError) as exc_info:
            await HttpPushTransport(WatchConfig(request_timeout=2.0), session).post(endpoint)

    assert exc_info.value.status_code is None
