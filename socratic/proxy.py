"""Edge proxy: gatekeeps the Gemini API key and relays one upstream call per request."""

import asyncio
import json
import logging
import math
import os
import time
from typing import Any

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from config.config_loader import ProxyConfig

logger = logging.getLogger(__name__)

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, X-App-Token"
MAX_AGE_SEC = "86400"

_ROUTE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def cors_headers(config: ProxyConfig, origin: str) -> dict[str, str]:
    """CORS headers echoing origin when allow-listed, else the default origin."""
    allowed = origin if origin in config.allowed_origins else config.default_origin
    return {
        "Access-Control-Allow-Origin": allowed,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Max-Age": MAX_AGE_SEC,
        "Vary": "Origin",
    }


def declared_length(raw: str | None) -> float:
    """Content-Length as a number. Missing, blank or non-numeric counts as 0.

    Decimal and exponent forms such as ``1e5`` are accepted.
    """
    try:
        value = float((raw or "").strip() or 0)
    except ValueError:
        return 0
    return 0 if math.isnan(value) else value


def has_valid_contents(body: Any) -> bool:
    """Minimal generateContent shape: non-empty contents, each with non-empty parts."""
    if not isinstance(body, dict):
        return False
    contents = body.get("contents")
    if not isinstance(contents, list) or not contents:
        return False
    for entry in contents:
        if not isinstance(entry, dict):
            return False
        parts = entry.get("parts")
        if not isinstance(parts, list) or not parts:
            return False
    return True


def upstream_error_message(payload: Any) -> str:
    error = payload.get("error") if isinstance(payload, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    return message or "Unknown upstream error"


class ProxyHandler:
    """Maps one inbound request to one response. Holds configuration only."""

    def __init__(
        self,
        config: ProxyConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    async def handle(self, request: Request) -> Response:
        cfg = self._config
        origin = request.headers.get("origin", "")
        cors = cors_headers(cfg, origin)

        def reply(payload: Any, status: int = 200, extra: dict[str, str] | None = None) -> JSONResponse:
            return JSONResponse(payload, status_code=status, headers={**cors, **(extra or {})})

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=cors)

        if origin not in cfg.allowed_origins:
            logger.info("Rejected origin %r", origin)
            return reply({"error": "forbidden_origin"}, 403)

        if request.method != "POST":
            return reply({"error": "method_not_allowed"}, 405, {"Allow": ALLOW_METHODS})

        api_key = os.environ.get(cfg.api_key_env, "").strip()
        if not api_key:
            logger.error("Missing API key: %s", cfg.api_key_env)
            return reply({"error": "server_not_configured"}, 500)

        app_token = os.environ.get(cfg.app_token_env, "").strip()
        if app_token and request.headers.get("x-app-token") != app_token:
            logger.info("Rejected request with bad or missing X-App-Token")
            return reply({"error": "unauthorized"}, 401)

        if declared_length(request.headers.get("content-length")) > cfg.max_body_bytes:
            return reply({"error": "payload_too_large"}, 413)

        raw_body = await request.body()
        try:
            body = json.loads(raw_body)
        except (ValueError, UnicodeDecodeError):
            return reply({"error": "invalid_json"}, 400)

        if not has_valid_contents(body):
            return reply({"error": "invalid_payload_shape"}, 400)

        return await self._forward(raw_body, api_key, reply)

    async def _forward(self, raw_body: bytes, api_key: str, reply) -> JSONResponse:
        cfg = self._config
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=cfg.timeout_sec) as client:
                upstream = await asyncio.wait_for(
                    client.post(
                        cfg.endpoint(),
                        params={"key": api_key},
                        content=raw_body,
                        headers={"Content-Type": "application/json"},
                    ),
                    timeout=cfg.timeout_sec,
                )
        except (TimeoutError, httpx.TimeoutException):
            logger.warning("Upstream timed out after %ss", cfg.timeout_sec)
            return reply({"error": "upstream_timeout"}, 504)
        except httpx.HTTPError as exc:
            # str(exc) can include the request URL, which carries the key.
            logger.warning("Upstream unavailable: %s", type(exc).__name__)
            return reply({"error": "upstream_unavailable"}, 502)

        latency = time.monotonic() - start

        try:
            payload = upstream.json()
        except ValueError:
            logger.warning("Upstream returned non-JSON body (HTTP %d)", upstream.status_code)
            return reply({"error": "upstream_invalid_json"}, 502)

        if upstream.is_error:
            logger.warning("Upstream error HTTP %d after %.2fs", upstream.status_code, latency)
            return reply(
                {
                    "error": "upstream_error",
                    "status": upstream.status_code,
                    "details": upstream_error_message(payload),
                },
                upstream.status_code,
            )

        logger.info("Upstream %s: HTTP %d in %.2fs", cfg.model, upstream.status_code, latency)
        return reply(payload, upstream.status_code)


def create_app(config: ProxyConfig, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """ASGI app answering every path and method with the proxy handler."""
    app = FastAPI(
        title="Socratic Argument Proxy",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    handler = ProxyHandler(config, transport=transport)

    @app.api_route("/{path:path}", methods=_ROUTE_METHODS)
    async def proxy(request: Request) -> Response:
        return await handler.handle(request)

    return app
