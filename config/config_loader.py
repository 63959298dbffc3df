"""Load settings.yaml into typed dataclasses. Secrets come from the environment."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ClientConfig:
    proxy_url: str
    origin: str
    throttle_sec: float
    timeout_sec: float
    temperature: float
    app_token_env: str = "APP_TOKEN"


@dataclass
class ProxyConfig:
    allowed_origins: list[str]
    upstream_url: str
    model: str
    api_key_env: str
    timeout_sec: float
    max_body_bytes: int
    app_token_env: str = "APP_TOKEN"
    host: str = "127.0.0.1"
    port: int = 8787

    @property
    def default_origin(self) -> str:
        return self.allowed_origins[0]

    def endpoint(self) -> str:
        """Upstream generateContent URL with the model filled in (no key)."""
        return self.upstream_url.format(model=self.model)


@dataclass
class PromptsConfig:
    dialogue: str
    resolutions: dict[str, str] = field(default_factory=dict)


@dataclass
class AppConfig:
    client: ClientConfig
    proxy: ProxyConfig
    prompts: PromptsConfig


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs whether the proxy secrets are present but does not raise; the proxy
    reports server_not_configured per request instead.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    client_raw = raw["client"]
    client = ClientConfig(
        proxy_url=str(client_raw["proxy_url"]),
        origin=str(client_raw["origin"]),
        throttle_sec=float(client_raw["throttle_sec"]),
        timeout_sec=float(client_raw["timeout_sec"]),
        temperature=float(client_raw["temperature"]),
        app_token_env=str(client_raw.get("app_token_env", "APP_TOKEN")),
    )

    proxy_raw = raw["proxy"]
    allowed_origins = [str(o) for o in proxy_raw["allowed_origins"]]
    if not allowed_origins:
        raise ValueError("proxy.allowed_origins must list at least one origin")
    proxy = ProxyConfig(
        allowed_origins=allowed_origins,
        upstream_url=str(proxy_raw["upstream_url"]),
        model=str(proxy_raw["model"]),
        api_key_env=str(proxy_raw["api_key_env"]),
        timeout_sec=float(proxy_raw["timeout_sec"]),
        max_body_bytes=int(proxy_raw["max_body_bytes"]),
        app_token_env=str(proxy_raw.get("app_token_env", "APP_TOKEN")),
        host=str(proxy_raw.get("host", "127.0.0.1")),
        port=int(proxy_raw.get("port", 8787)),
    )

    prompts_raw = raw["prompts"]
    resolutions_raw = raw.get("resolutions", {})
    prompts = PromptsConfig(
        dialogue=prompts_raw["dialogue"],
        resolutions={str(k): str(v) for k, v in resolutions_raw.items()},
    )

    if os.environ.get(proxy.api_key_env, "").strip():
        logger.info("Upstream API key found in %s", proxy.api_key_env)
    else:
        logger.info("No upstream API key, set %s in .env to run the proxy", proxy.api_key_env)
    if os.environ.get(proxy.app_token_env, "").strip():
        logger.info("App token gate enabled via %s", proxy.app_token_env)

    return AppConfig(client=client, proxy=proxy, prompts=prompts)
