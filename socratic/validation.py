"""Recover a Dialogue from untrusted model text: sanitize, parse, validate."""

import json
import logging
import re
from typing import Any

from socratic.errors import DialogueError, MalformedResponse, SchemaViolation
from socratic.models import Dialogue

logger = logging.getLogger(__name__)

REQUIRED_KEYS = (
    "resolution",
    "turns",
    "checkin",
    "final_synthesis",
    "assessment",
    "tightened_resolutions",
    "done",
)
TURN_COUNT = 8

_JSON_FENCE = re.compile(r"```json", re.IGNORECASE)
_LEADING_FENCE = re.compile(r"^```\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")


def sanitize(raw_text: str | None) -> str:
    """Strip code fences and commentary around the JSON object.

    Heuristic: keeps everything from the first "{" to the last "}" when both
    are present, so stray braces in surrounding prose can still break parsing.
    """
    text = (raw_text or "").strip()
    if not text:
        return text

    text = _JSON_FENCE.sub("```", text)
    if text.startswith("```"):
        text = _LEADING_FENCE.sub("", text)
        text = _TRAILING_FENCE.sub("", text)
    text = text.replace("```", "")

    first = text.find("{")
    last = text.rfind("}")
    if first != -1 and last > first:
        text = text[first:last + 1]

    return text.strip()


def parse(text: str) -> Any:
    """Strict JSON decode. Raises MalformedResponse on any syntax error."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Model output is not valid JSON: {exc}", raw_text=text) from exc


def validate(data: Any) -> Dialogue:
    """Top-level gate only: required keys present and exactly 8 turns.

    Raises:
        SchemaViolation: On a non-object payload, a missing key or a wrong turn count.
    """
    if not isinstance(data, dict):
        raise SchemaViolation(f"Expected a JSON object, got {type(data).__name__}.")

    for key in REQUIRED_KEYS:
        if key not in data:
            raise SchemaViolation(f"Missing key: {key}")

    turns = data["turns"]
    if not isinstance(turns, list) or len(turns) != TURN_COUNT:
        raise SchemaViolation(f"Expected {TURN_COUNT} turns.")

    return Dialogue(
        resolution=data["resolution"],
        turns=tuple(turns),
        checkin=data["checkin"],
        final_synthesis=data["final_synthesis"],
        assessment=data["assessment"],
        tightened_resolutions=data["tightened_resolutions"],
        done=data["done"],
    )


def parse_dialogue(raw_text: str) -> Dialogue:
    """Run the full pipeline. Every failure carries the raw model text."""
    cleaned = sanitize(raw_text)
    try:
        dialogue = validate(parse(cleaned))
    except DialogueError as exc:
        exc.raw_text = raw_text
        logger.debug("Rejected model output (%d chars): %s", len(raw_text), exc)
        raise
    logger.debug("Accepted dialogue for resolution %r", dialogue.resolution)
    return dialogue
