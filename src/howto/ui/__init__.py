"""Terminal user interface helpers for howto."""

from .formatting import format_cost, print_cost, render_answer
from .input_handler import parse_continuation, prompt_for_continuation
from .log_setup import setup_logging
from .progress import SpinnerObserver

__all__ = [
    "format_cost",
    "print_cost",
    "render_answer",
    "parse_continuation",
    "prompt_for_continuation",
    "setup_logging",
    "SpinnerObserver",
]
