"""Prompt construction for the dialogue request."""

from config.config_loader import PromptsConfig
from socratic.errors import UserInputError
from socratic.models import Resolution


def resolve(prompts: PromptsConfig, key: str | None) -> Resolution:
    """Look up a resolution by its position key.

    Raises:
        UserInputError: When no key was chosen or the key is not one of the fixed positions.
    """
    if not key or key not in prompts.resolutions:
        raise UserInputError("Please choose a position before generating.")
    return Resolution(key=key, text=prompts.resolutions[key])


def build_prompt(template: str, resolution: Resolution) -> str:
    return template.format(resolution=resolution.text)
