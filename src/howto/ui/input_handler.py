"""Reading continuation questions from the terminal."""

from rich.console import Console

CONTINUATION_PROMPT = "Type a continuation question, or press Enter to quit"
QUIT_WORDS = frozenset({"", "q", "quit", "exit"})


def parse_continuation(raw: str) -> str | None:
    """Return the trimmed question, or None if the user wants to stop."""
    text = raw.strip()
    if text in QUIT_WORDS:
        return None
    return text


def prompt_for_continuation(console: Console) -> str | None:
    """Ask for a follow-up question.

    Returns:
        The question, or None on an empty line, a quit word, EOF or Ctrl-C
    """
    console.print(CONTINUATION_PROMPT, style="cyan")
    try:
        raw = console.input("")
    except (EOFError, KeyboardInterrupt):
        return None
    return parse_continuation(raw)
