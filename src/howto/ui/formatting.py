"""Terminal rendering of answers and usage.

Hides the details of markdown rendering and layout.
"""

from rich.console import Console
from rich.markdown import Markdown
from rich.padding import Padding

MAX_ANSWER_WIDTH = 80
ANSWER_INDENT = 2
COST_STYLE = "dark_orange"


def answer_width(terminal_width: int) -> int:
    """Width available to the rendered answer."""
    return min(terminal_width, MAX_ANSWER_WIDTH) - ANSWER_INDENT


def render_answer(console: Console, answer_md: str) -> None:
    """Print a markdown answer, wrapped and indented."""
    width = answer_width(console.width)
    console.print(
        Padding(Markdown(answer_md), (1, 0, 0, ANSWER_INDENT)),
        width=width + ANSWER_INDENT,
    )


def format_cost(tokens: int, cost: float) -> str:
    return f"(Cost: {tokens} tokens, {cost:.4f} USD)"


def print_cost(console: Console, tokens: int, cost: float) -> None:
    console.print()
    console.print(format_cost(tokens, cost), style=COST_STYLE, markup=False)
