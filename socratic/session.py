"""Generation orchestration: throttle, one proxy call, validation, step reveal."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from config.config_loader import PromptsConfig
from socratic.errors import DialogueError, ThrottleError, UserInputError
from socratic.models import Resolution
from socratic.prompts import build_prompt, resolve
from socratic.proxy_client import ProxyClient
from socratic.render.base import Renderer
from socratic.sequencer import StepSequencer, build_steps
from socratic.validation import parse_dialogue

logger = logging.getLogger(__name__)

THROTTLE_MESSAGE = "Please wait a moment before generating again."
FAILURE_MESSAGE = "We couldn't generate the dialogue this time. Please try again."


class GenerationState(str, Enum):
    IDLE = "idle"
    THROTTLED = "throttled"
    LOADING = "loading"
    FAILED = "failed"
    REVEALING = "revealing"
    DONE = "done"


@dataclass
class Session:
    """Per-process client state. reset() is the only way back to a blank slate."""

    sequencer: StepSequencer
    last_generated_at: float | None = None
    selected: Resolution | None = None
    loading: bool = False
    state: GenerationState = field(default=GenerationState.IDLE)

    def reset(self, *, keep_selection: bool = False) -> None:
        self.sequencer.reset()
        self.loading = False
        self.state = GenerationState.IDLE
        if not keep_selection:
            self.selected = None


class GenerationOrchestrator:
    """Runs one generate-a-dialogue attempt at a time.

    Mutual exclusion comes from the loading flag: callers must not trigger
    generate() while a call is in flight, the same way a disabled button
    cannot be clicked.
    """

    def __init__(
        self,
        client: ProxyClient,
        renderer: Renderer,
        prompts: PromptsConfig,
        throttle_sec: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._renderer = renderer
        self._prompts = prompts
        self._throttle_sec = throttle_sec
        self._clock = clock
        self.session = Session(
            sequencer=StepSequencer(renderer.render_step, on_exhausted=self._on_exhausted),
        )
        self.last_error: DialogueError | None = None

    @property
    def state(self) -> GenerationState:
        return self.session.state

    @property
    def has_next(self) -> bool:
        return self.session.sequencer.has_next

    def _on_exhausted(self) -> None:
        self._renderer.set_next_enabled(False)
        self.session.state = GenerationState.DONE

    def _set_loading(self, loading: bool) -> None:
        self.session.loading = loading
        self._renderer.set_loading(loading)

    def _reject(self, error: DialogueError, state: GenerationState) -> GenerationState:
        self.last_error = error
        self._renderer.clear()
        self._renderer.show_error(str(error))
        self.session.state = state
        return state

    def _fail(self, error: DialogueError) -> GenerationState:
        self.last_error = error
        self._renderer.set_next_enabled(False)
        self.session.state = GenerationState.FAILED
        return self.session.state

    async def generate(self, resolution_key: str | None) -> GenerationState:
        """Generate a dialogue for the chosen position and reveal its first step.

        Returns the state the attempt ended in. Failures are shown as an error
        card and kept on last_error, never raised.
        """
        if self.session.loading:
            logger.debug("Generation already in flight, ignoring trigger")
            return self.session.state

        now = self._clock()
        last = self.session.last_generated_at
        if last is not None and now - last < self._throttle_sec:
            logger.info("Throttled: %.1fs since last generation", now - last)
            return self._reject(ThrottleError(THROTTLE_MESSAGE), GenerationState.THROTTLED)

        try:
            resolution = resolve(self._prompts, resolution_key)
        except UserInputError as exc:
            return self._reject(exc, GenerationState.IDLE)

        self.session.reset(keep_selection=True)
        self._renderer.clear()
        self._renderer.set_next_enabled(False)
        self.session.selected = resolution
        self.last_error = None
        self._set_loading(True)
        self.session.state = GenerationState.LOADING
        logger.info("Generating dialogue for %s", resolution.key)

        raw_text = ""
        try:
            raw_text = await self._client.generate(build_prompt(self._prompts.dialogue, resolution))
            dialogue = parse_dialogue(raw_text)
            self.session.sequencer.load(build_steps(dialogue))
            self.session.state = GenerationState.REVEALING
            self._renderer.set_next_enabled(True)
            self.session.sequencer.advance()
            self.session.last_generated_at = now
        except DialogueError as exc:
            logger.warning("Generation failed: %s", exc)
            self._renderer.show_error(FAILURE_MESSAGE, exc.raw_text or raw_text or str(exc))
            return self._fail(exc)
        finally:
            self._set_loading(False)

        return self.session.state

    def next_step(self) -> bool:
        """Reveal the next step. Returns False when nothing was revealed."""
        try:
            return self.session.sequencer.advance()
        except DialogueError as exc:
            logger.warning("Step could not be displayed: %s", exc)
            self._renderer.show_error(str(exc), exc.raw_text)
            self._fail(exc)
            return False

    def restart(self) -> None:
        """Start over from the done step: clears steps, output and selection."""
        self.session.reset()
        self.last_error = None
        self._renderer.set_next_enabled(False)
        self._renderer.clear()
