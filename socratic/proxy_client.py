"""Client for the edge proxy using httpx with native async."""

import logging
import os
import time
from typing import Any

import httpx

from config.config_loader import ClientConfig
from socratic.errors import TransportError

logger = logging.getLogger(__name__)


def build_request_body(prompt: str, temperature: float) -> dict[str, Any]:
    """Gemini generateContent payload for a single user prompt."""
    return {
        "contents": [
            {
                "role": "user",
                "parts": [{"text": prompt}],
            }
        ],
        "generationConfig": {
            "temperature": temperature,
        },
    }


def extract_model_text(data: Any) -> str:
    """Return candidates[0].content.parts[0].text, or "" if any link is missing."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return ""
    return text if isinstance(text, str) else ""


class ProxyClient:
    """Sends one generation request per call to the proxy endpoint."""

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def url(self) -> str:
        return self._config.proxy_url

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Origin": self._config.origin,
        }
        app_token = os.environ.get(self._config.app_token_env, "").strip()
        if app_token:
            headers["X-App-Token"] = app_token
        return headers

    async def generate(self, prompt: str) -> str:
        """Request a dialogue and return the raw model text.

        Raises:
            TransportError: On network failure, a non-JSON or non-success
                response, or empty model text. raw_text holds what arrived.
        """
        body = build_request_body(prompt, self._config.temperature)
        start = time.monotonic()
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._config.timeout_sec,
            ) as client:
                response = await client.post(self._config.proxy_url, json=body, headers=self._headers())
        except httpx.HTTPError as exc:
            raise TransportError(f"Proxy request failed: {exc}", raw_text=str(exc)) from exc

        latency = time.monotonic() - start

        try:
            data = response.json()
        except ValueError as exc:
            raise TransportError(
                f"Proxy returned a non-JSON body (HTTP {response.status_code})",
                raw_text=response.text,
            ) from exc

        text = extract_model_text(data)
        if response.is_error or not text:
            logger.warning("Model call failed: HTTP %d after %.2fs", response.status_code, latency)
            raise TransportError("Model call failed.", raw_text=text or response.text)

        logger.info("Proxy responded in %.2fs with %d chars", latency, len(text))
        return text
