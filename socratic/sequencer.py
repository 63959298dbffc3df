"""Step sequencing: turn a validated Dialogue into revealable steps."""

import logging
from collections.abc import Callable, Sequence

from socratic.models import Dialogue, Step, StepKind

logger = logging.getLogger(__name__)


def build_steps(dialogue: Dialogue) -> tuple[Step, ...]:
    """Map a validated Dialogue to its 9 steps in reveal order.

    The check-in sits between turn 4 and turn 5. Does not re-validate.
    """
    turns = dialogue.turns
    return (
        Step(StepKind.TURN_PAIR, turns=(turns[0], turns[1])),
        Step(StepKind.TURN_PAIR, turns=(turns[2], turns[3])),
        Step(StepKind.CHECKIN, data=dialogue.checkin),
        Step(StepKind.TURN_PAIR, turns=(turns[4], turns[5])),
        Step(StepKind.TURN_PAIR, turns=(turns[6], turns[7])),
        Step(StepKind.FINAL_SYNTHESIS, data=dialogue.final_synthesis),
        Step(StepKind.ASSESSMENT, data=dialogue.assessment),
        Step(StepKind.TIGHTENED, data=dialogue.tightened_resolutions),
        Step(StepKind.DONE, data=dialogue.done),
    )


class StepSequencer:
    """Reveals steps one at a time through a render callback.

    The cursor only moves forward, one step per advance(). Revealed steps are
    never rendered again.
    """

    def __init__(
        self,
        render: Callable[[Step], None],
        on_exhausted: Callable[[], None] | None = None,
    ) -> None:
        self._render = render
        self._on_exhausted = on_exhausted
        self._steps: tuple[Step, ...] = ()
        self._cursor = 0

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def has_next(self) -> bool:
        return self._cursor < len(self._steps)

    @property
    def revealed(self) -> tuple[Step, ...]:
        return self._steps[:self._cursor]

    def load(self, steps: Sequence[Step]) -> None:
        """Replace any previous sequence and rewind the cursor."""
        self._steps = tuple(steps)
        self._cursor = 0

    def advance(self) -> bool:
        """Reveal the step at the cursor.

        Returns:
            True if a step was rendered, False once the sequence is exhausted.
            A failing render leaves the cursor where it was and propagates.
        """
        if not self.has_next:
            self._exhausted()
            return False

        step = self._steps[self._cursor]
        self._render(step)
        self._cursor += 1
        logger.debug("Revealed step %d/%d (%s)", self._cursor, len(self._steps), step.kind.value)

        if not self.has_next:
            self._exhausted()
        return True

    def reset(self) -> None:
        self._steps = ()
        self._cursor = 0

    def _exhausted(self) -> None:
        if self._on_exhausted:
            self._on_exhausted()
