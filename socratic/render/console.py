"""Rich console rendering of dialogue steps and error cards."""

import json
import logging
from typing import Any

from rich.console import Console, Group, RenderableType
from rich.errors import ConsoleError
from rich.panel import Panel
from rich.status import Status
from rich.table import Table
from rich.text import Text

from socratic.errors import RenderError
from socratic.models import Step, StepKind
from socratic.render.base import Renderer

logger = logging.getLogger(__name__)

ASSESSMENT_CATEGORIES = ("analysis", "evaluation", "reasoning", "explanation", "reflection")


def _labelled(label: str, value: Any) -> Text:
    text = Text()
    text.append(f"{label}: ", style="bold")
    text.append(str(value))
    return text


def _bullets(items: Any, numbered: bool = False) -> Text:
    text = Text()
    for i, item in enumerate(items, start=1):
        marker = f"{i}. " if numbered else "• "
        text.append(f"  {marker}{item}\n")
    text.rstrip()
    return text


def _turn_panel(turn: Any) -> Panel:
    bot = "Bot A" if turn["speaker"] == "A" else "Bot B"
    body = Group(
        _labelled("Claim", turn["claim"]),
        _labelled("Reason", turn["reason"]),
        _labelled("Question", turn["question"]),
    )
    return Panel(
        body,
        title=Text(f"Turn {turn['turn']} - {bot}", style="bold"),
        border_style="cyan" if turn["speaker"] == "A" else "magenta",
    )


def _turn_pair(turns: tuple[Any, ...]) -> RenderableType:
    left = next((t for t in turns if t["speaker"] == "A"), None)
    right = next((t for t in turns if t["speaker"] == "B"), None)
    row = Table.grid(expand=True, padding=(0, 1))
    cells = [_turn_panel(t) for t in (left, right) if t is not None]
    for _ in cells:
        row.add_column(ratio=1)
    row.add_row(*cells)
    return row


def _checkin(data: Any) -> RenderableType:
    assumptions = data["assumptions"]
    return Group(
        _labelled("Agree", data["agree"]),
        _labelled("Core disagreement", data["core_disagreement"]),
        Text("Terms to define:", style="bold"),
        _bullets(data["terms_to_define"]),
        _labelled("Assumptions", f"A: {assumptions['A']} | B: {assumptions['B']}"),
    )


def _final_synthesis(data: Any) -> RenderableType:
    return Group(
        Text("Agreements:", style="bold"),
        _bullets(data["agree"]),
        Text("Disagreements:", style="bold"),
        _bullets(data["disagree"]),
        _labelled("Remaining question", data["remaining_question"]),
    )


def _assessment(data: Any) -> RenderableType:
    parts: list[RenderableType] = []
    for key in ASSESSMENT_CATEGORIES:
        parts.append(Text(key.capitalize(), style="bold underline"))
        parts.append(_labelled("Strength", data[key]["strength"]))
        parts.append(_labelled("Improvement", data[key]["improvement"]))
    return Group(*parts)


def _done(data: Any) -> RenderableType:
    parts: list[RenderableType] = [Text(str(data["message"]))]
    next_steps = data.get("optional_next_steps")
    if isinstance(next_steps, list) and next_steps:
        parts.append(_bullets(next_steps))
    return Group(*parts)


_CARDS = {
    StepKind.CHECKIN: ("Check-in #1", _checkin),
    StepKind.FINAL_SYNTHESIS: ("Final Synthesis", _final_synthesis),
    StepKind.ASSESSMENT: ("Assessment", _assessment),
    StepKind.TIGHTENED: ("Tighten the Resolution", lambda data: _bullets(data, numbered=True)),
    StepKind.DONE: ("Done", _done),
}


def build_renderable(step: Step) -> RenderableType:
    """Build the rich renderable for a step.

    Raises:
        RenderError: If nested fields the card needs are missing or mistyped.
    """
    try:
        if step.kind is StepKind.TURN_PAIR:
            return _turn_pair(step.turns)
        title, body = _CARDS[step.kind]
        style = "green" if step.kind is StepKind.DONE else "blue"
        return Panel(body(step.data), title=f"[bold]{title}[/bold]", border_style=style)
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        payload = step.turns if step.kind is StepKind.TURN_PAIR else step.data
        raise RenderError(
            f"Could not display the {step.kind.value} step: {exc!r}",
            raw_text=json.dumps(payload, indent=2, default=str),
        ) from exc


class ConsoleRenderer(Renderer):
    """Append-only terminal output. Previously revealed steps stay on screen."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(legacy_windows=False)
        self._status: Status | None = None
        self.loading = False
        self.next_enabled = False

    @property
    def console(self) -> Console:
        return self._console

    def clear(self) -> None:
        if self._console.is_terminal:
            self._console.clear()

    def set_loading(self, loading: bool) -> None:
        self.loading = loading
        if loading and self._status is None:
            self._status = self._console.status("Generating dialogue...")
            self._status.start()
        elif not loading and self._status is not None:
            self._status.stop()
            self._status = None

    def set_next_enabled(self, enabled: bool) -> None:
        self.next_enabled = enabled

    def render_step(self, step: Step) -> None:
        renderable = build_renderable(step)
        try:
            self._console.print(renderable)
        except ConsoleError as exc:
            payload = step.turns if step.kind is StepKind.TURN_PAIR else step.data
            raise RenderError(
                f"Could not display the {step.kind.value} step: {exc}",
                raw_text=json.dumps(payload, indent=2, default=str),
            ) from exc

    def show_error(self, message: str, raw_text: str = "") -> None:
        parts: list[RenderableType] = [Text(message)]
        if raw_text:
            parts.append(Text("\nDebug details", style="bold dim"))
            parts.append(Text(raw_text, style="dim"))
        self._console.print(
            Panel(Group(*parts), title="[bold red]Something went wrong[/bold red]", border_style="red")
        )
