"""Interactive prompt helpers using Rich library."""

from rich.markup import escape
from rich.prompt import Prompt

AFFIRMATIVE_ANSWERS = ("y", "yes")


def is_affirmative(answer: str) -> bool:
    """Return True only for "y" or "yes", ignoring case and surrounding whitespace."""
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def confirm_delete(number: int, full_name: str) -> bool:
    """Ask before deleting a post. Anything but y/yes declines, including empty input.

    Args:
        number: Post number
        full_name: Post full name shown in the question

    Returns:
        True if the user confirmed
    """
    answer = Prompt.ask(
        f"[bold red]Delete post #{number}[/bold red] \"{escape(full_name)}\"? (y/N)",
        default="",
        show_default=False,
    )
    return is_affirmative(answer)
