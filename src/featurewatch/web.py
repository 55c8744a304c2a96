"""HTTP front end for device registrations.

Routes map 1:1 to registry operations:

- ``POST /register`` -> ``register``
- ``POST /unregister`` -> ``unregister``
- ``PUT /update_device`` -> ``update_device``
- ``GET /registrations/{device_id}`` -> ``get_registered_features``
- ``GET /payload/{device_id}`` -> ``get_payload`` (legacy devices)

``ValidationError`` answers 400 and ``NotFoundError`` answers 404, both with
``{"error": "<message>"}``.

Run the service directly with ``python -m featurewatch.web``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from aiohttp import web

from featurewatch.config import WatchConfig
from featurewatch.exceptions import NotFoundError, ValidationError
from featurewatch.watcher import FeatureWatch

__all__ = ["WATCH_KEY", "create_app", "main"]

_logger = logging.getLogger(__name__)

WATCH_KEY = web.AppKey("watch", FeatureWatch)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except ValidationError as exc:
        return _error(400, str(exc))
    except NotFoundError as exc:
        return _error(404, str(exc))


async def _json_body(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON body: {exc.msg}") from exc
    if not isinstance(body, dict):
        raise ValidationError("JSON body must be an object")
    return body


def _device_id(body: dict[str, Any]) -> str:
    device_id = body.get("deviceId")
    if not isinstance(device_id, str) or not device_id.strip():
        raise ValidationError("No device id provided")
    return device_id


async def register(request: web.Request) -> web.Response:
    body = await _json_body(request)
    features = await request.app[WATCH_KEY].register(
        _device_id(body),
        body.get("features"),
        body.get("endpoint"),
        body.get("key"),
        body.get("authSecret"),
    )
    return web.json_response({"features": features})


async def unregister(request: web.Request) -> web.Response:
    body = await _json_body(request)
    await request.app[WATCH_KEY].unregister(_device_id(body), body.get("features"))
    return web.json_response({})


async def update_device(request: web.Request) -> web.Response:
    body = await _json_body(request)
    await request.app[WATCH_KEY].update_device(
        _device_id(body),
        body.get("endpoint"),
        body.get("key"),
        body.get("authSecret"),
    )
    return web.json_response({})


async def registrations(request: web.Request) -> web.Response:
    features = await request.app[WATCH_KEY].get_registered_features(request.match_info["device_id"])
    return web.json_response({"features": features})


async def payload(request: web.Request) -> web.Response:
    pending = await request.app[WATCH_KEY].get_payload(request.match_info["device_id"])
    return web.json_response(pending if pending is not None else {})


def create_app(watch: FeatureWatch | None = None, config: WatchConfig | None = None) -> web.Application:
    """Build the aiohttp application.

    An already started *watch* is used as-is. Without one, a `FeatureWatch`
    is opened on startup from *config* (or the environment) and closed on
    cleanup.
    """
    app = web.Application(middlewares=[error_middleware])

    if watch is not None:
        app[WATCH_KEY] = watch
    else:

        async def _watch_ctx(app: web.Application) -> AsyncIterator[None]:
            async with FeatureWatch(config or WatchConfig.from_env()) as started:
                app[WATCH_KEY] = started
                yield

        app.cleanup_ctx.append(_watch_ctx)

    app.router.add_post("/register", register)
    app.router.add_post("/unregister", unregister)
    app.router.add_put("/update_device", update_device)
    app.router.add_get("/registrations/{device_id}", registrations)
    app.router.add_get("/payload/{device_id}", payload)
    return app


def main() -> None:
    """Serve the front end on ``FEATUREWATCH_WEB_HOST``/``FEATUREWATCH_WEB_PORT``."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = WatchConfig.from_env()
    web.run_app(create_app(config=config), host=config.web_host, port=config.web_port)


if __name__ == "__main__":
    main()
