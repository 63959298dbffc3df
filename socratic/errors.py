"""Client-side failures. Each one ends the current generation attempt."""


class DialogueError(Exception):
    """Base for client errors. raw_text keeps whatever the model or proxy sent."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        self.raw_text = raw_text
        super().__init__(message)


class UserInputError(DialogueError):
    """No resolution chosen."""


class ThrottleError(DialogueError):
    """Cooldown since the last successful generation has not elapsed."""


class TransportError(DialogueError):
    """Network failure, non-success status or empty text from the proxy."""


class MalformedResponse(DialogueError):
    """Model text could not be decoded as JSON."""


class SchemaViolation(DialogueError):
    """Decoded JSON lacks a required key or does not hold 8 turns."""


class RenderError(DialogueError):
    """A step's nested fields could not be displayed."""
