"""Abstract base for display adapters."""

from abc import ABC, abstractmethod

from socratic.models import Step


class Renderer(ABC):
    """The only part of the client tied to a display toolkit."""

    @abstractmethod
    def clear(self) -> None:
        """Drop everything shown so far."""
        ...

    @abstractmethod
    def set_loading(self, loading: bool) -> None:
        """Show or hide the loading indicator; controls are locked while loading."""
        ...

    @abstractmethod
    def set_next_enabled(self, enabled: bool) -> None:
        ...

    @abstractmethod
    def render_step(self, step: Step) -> None:
        """Append one step to the output.

        Raises:
            RenderError: When the step's nested fields are malformed.
        """
        ...

    @abstractmethod
    def show_error(self, message: str, raw_text: str = "") -> None:
        ...
