"""Shared pytest fixtures."""

import copy
import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import ClientConfig, PromptsConfig, ProxyConfig
from socratic.models import Step
from socratic.render.base import Renderer

ORIGIN = "https://focus-on-the-code.github.io"


def _turn(number: int) -> dict:
    speaker = "A" if number % 2 else "B"
    return {
        "turn": number,
        "speaker": speaker,
        "claim": f"Claim {number} from {speaker}.",
        "reason": f"Reason {number}.",
        "question": f"Why {number}?",
    }


_DIALOGUE = {
    "resolution": "Social media is net-good for democracy.",
    "turns": [_turn(n) for n in range(1, 9)],
    "checkin": {
        "agree": "Both value participation.",
        "core_disagreement": "Whether reach outweighs distortion.",
        "terms_to_define": ["democracy", "net-good"],
        "assumptions": {"A": "Access drives engagement.", "B": "Algorithms reward outrage."},
    },
    "final_synthesis": {
        "agree": ["Access matters.", "Moderation matters."],
        "disagree": ["Size of harms.", "Who should regulate."],
        "remaining_question": "What evidence would settle it?",
    },
    "assessment": {
        key: {"strength": f"{key} strength", "improvement": f"{key} improvement"}
        for key in ("analysis", "evaluation", "reasoning", "explanation", "reflection")
    },
    "tightened_resolutions": ["First tightened.", "Second tightened.", "Third tightened."],
    "done": {
        "message": "Done! Would you like to try again?",
        "optional_next_steps": ["Pick another side.", "Define terms.", "Find evidence."],
    },
}


@pytest.fixture
def dialogue_dict() -> dict:
    return copy.deepcopy(_DIALOGUE)


@pytest.fixture
def dialogue_text(dialogue_dict: dict) -> str:
    return json.dumps(dialogue_dict)


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        proxy_url="https://proxy.test/",
        origin=ORIGIN,
        throttle_sec=10,
        timeout_sec=5,
        temperature=0.7,
        app_token_env="TEST_APP_TOKEN",
    )


@pytest.fixture
def proxy_config() -> ProxyConfig:
    return ProxyConfig(
        allowed_origins=[ORIGIN, f"{ORIGIN}/Socratic-Argument-Bot"],
        upstream_url="https://upstream.test/v1beta/models/{model}:generateContent",
        model="gemini-2.5-flash",
        api_key_env="TEST_GEMINI_KEY",
        timeout_sec=25,
        max_body_bytes=50_000,
        app_token_env="TEST_APP_TOKEN",
    )


@pytest.fixture
def prompts_config() -> PromptsConfig:
    return PromptsConfig(
        dialogue='RESOLUTION: "{resolution}"\nOutput JSON like {{"turns": []}}',
        resolutions={
            "net-good": "Social media is net-good for democracy.",
            "net-bad": "Social media is net-bad for democracy.",
            "mixed": "Social media has mixed benefits for democracy.",
            "no-impact": "Social media has no impact on democracy.",
        },
    )


@pytest.fixture
def settings_path() -> Path:
    return Path(__file__).parent.parent / "config" / "settings.yaml"


class RecordingRenderer(Renderer):
    """Test double Renderer that records every call."""

    def __init__(self) -> None:
        self.events: list[tuple] = []
        self.rendered: list[Step] = []
        self.errors: list[tuple[str, str]] = []
        self.loading = False
        self.next_enabled = False

    def clear(self) -> None:
        self.events.append(("clear",))

    def set_loading(self, loading: bool) -> None:
        self.loading = loading
        self.events.append(("loading", loading))

    def set_next_enabled(self, enabled: bool) -> None:
        self.next_enabled = enabled
        self.events.append(("next", enabled))

    def render_step(self, step: Step) -> None:
        self.rendered.append(step)
        self.events.append(("render", step.kind))

    def show_error(self, message: str, raw_text: str = "") -> None:
        self.errors.append((message, raw_text))
        self.events.append(("error", message))


class MockProxyClient:
    """Test double ProxyClient with an AsyncMock generate."""

    def __init__(self, text: str = "") -> None:
        self.generate = AsyncMock(return_value=text)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
