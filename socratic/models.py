"""Pure dataclasses for the Socratic dialogue client. No logic, no deps."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Resolution:
    key: str    # "net-good", "net-bad", "mixed", "no-impact"
    text: str


@dataclass(frozen=True)
class Dialogue:
    """Model output that passed the top-level gate. Nested shapes are unchecked."""

    resolution: Any
    turns: tuple[Any, ...]
    checkin: Any
    final_synthesis: Any
    assessment: Any
    tightened_resolutions: Any
    done: Any


class StepKind(str, Enum):
    TURN_PAIR = "turn_pair"
    CHECKIN = "checkin"
    FINAL_SYNTHESIS = "final_synthesis"
    ASSESSMENT = "assessment"
    TIGHTENED = "tightened"
    DONE = "done"


@dataclass(frozen=True)
class Step:
    kind: StepKind
    turns: tuple[Any, ...] = field(default_factory=tuple)   # only for TURN_PAIR
    data: Any = None
