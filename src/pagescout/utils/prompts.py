"""Utility for loading prompts from markdown files."""

from pathlib import Path
from string import Template


def load_prompt(name: str) -> str:
    """Load a prompt from a .md file in the prompts directory.

    Args:
        name: Name of the prompt file (without extension)

    Returns:
        The content of the prompt file as a string.

    Raises:
        FileNotFoundError: If the prompt file does not exist.

    """
    current_dir = Path(__file__).parent.parent
    prompt_path = current_dir / 'prompts' / f'{name}.md'

    if not prompt_path.exists():
        raise FileNotFoundError(f'Prompt file not found: {prompt_path}')

    return prompt_path.read_text(encoding='utf-8').strip()


def render_prompt(name: str, **values: object) -> str:
    """Load a prompt and substitute ``$placeholders``.

    ``string.Template`` is used so the JSON examples inside prompts keep
    their braces untouched.

    Args:
        name: Name of the prompt file (without extension)
        **values: Placeholder values

    Returns:
        The rendered prompt.

    Raises:
        KeyError: If the template references a placeholder not given.

    """
    return Template(load_prompt(name)).substitute({key: str(value) for key, value in values.items()})
