"""Interactive prompts used when a command is missing an argument."""

from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import IntPrompt, Prompt

from .history import JotError
from .models import Jot, JotState

# Order shown in the state selector
STATE_CHOICES: tuple[JotState, ...] = (
    JotState.COMPLETED,
    JotState.REMOVED,
    JotState.IN_PROGRESS,
    JotState.FAILED,
    JotState.NOT_STARTED,
)


class PromptAborted(JotError):
    """Raised when the user aborts a prompt (Ctrl-C or end of input)."""
    pass


def _console() -> Console:
    return Console(highlight=False)


def prompt_text(message: str, initial: Optional[str] = None) -> str:
    """Ask for free text; ``initial`` is returned when the answer is empty."""
    kwargs = {} if initial is None else {"default": initial}
    try:
        answer = Prompt.ask(message, console=_console(), **kwargs)
    except (KeyboardInterrupt, EOFError) as e:
        raise PromptAborted("Prompt aborted") from e
    return answer


def prompt_state(message: str = "Enter jot state") -> JotState:
    """Single-select over the jot states.

    Skippable: an empty answer or end of input selects NotStarted.

    Raises:
        PromptAborted: If the user interrupts the prompt with Ctrl-C
    """
    names = [s.cli_name for s in STATE_CHOICES]
    try:
        answer = Prompt.ask(
            message,
            choices=names,
            case_sensitive=False,
            default=JotState.NOT_STARTED.cli_name,
            console=_console(),
        )
    except KeyboardInterrupt as e:
        raise PromptAborted("Prompt aborted") from e
    except EOFError:
        return JotState.NOT_STARTED
    return JotState.from_cli(answer)


def select_index(message: str, options: Sequence[object]) -> int:
    """Show ``options`` as a numbered list and return the chosen index.

    Raises:
        PromptAborted: If there is nothing to choose from or the user aborts
    """
    if not options:
        raise PromptAborted("Nothing to select")

    console = _console()
    for number, option in enumerate(options, start=1):
        console.print(f"  {number}. {option}", markup=False)

    try:
        number = IntPrompt.ask(
            message,
            choices=[str(n) for n in range(1, len(options) + 1)],
            console=console,
        )
    except (KeyboardInterrupt, EOFError) as e:
        raise PromptAborted("Selection aborted") from e
    return number - 1


def select_jot(jots: Sequence[Jot], message: str = "Select a jot to modify") -> Jot:
    """Return a copy of the jot the user picks."""
    return jots[select_index(message, jots)].copy()
