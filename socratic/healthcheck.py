"""Proxy health check: send a CORS preflight before the first generation."""

import logging

import httpx

from config.config_loader import ClientConfig

logger = logging.getLogger(__name__)

_TIMEOUT_SEC = 10.0


async def check_proxy(
    config: ClientConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[bool, str]:
    """Preflight the proxy with the client's origin.

    Returns:
        (ok, error_message). error_message is "" when ok is True.
    """
    headers = {
        "Origin": config.origin,
        "Access-Control-Request-Method": "POST",
    }
    try:
        async with httpx.AsyncClient(transport=transport, timeout=_TIMEOUT_SEC) as client:
            response = await client.options(config.proxy_url, headers=headers)
    except httpx.HTTPError as exc:
        return False, f"{type(exc).__name__}: {exc}"

    if response.status_code >= 300:
        return False, f"Preflight returned HTTP {response.status_code}"

    allowed = response.headers.get("Access-Control-Allow-Origin", "")
    if allowed != config.origin:
        return False, f"Origin {config.origin} not allowed (proxy answered {allowed or 'nothing'})"

    logger.debug("Proxy preflight OK: %s", config.proxy_url)
    return True, ""
