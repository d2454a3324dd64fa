"""Token usage estimation for a completed exchange.

Counting never fails a query: any problem degrades to "no count".
"""

import logging
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

import tiktoken

logger = logging.getLogger(__name__)

# Encodings we know how to count with; other model families get no count.
SUPPORTED_ENCODINGS = frozenset({
    "cl100k_base",
    "o200k_base",
    "p50k_base",
    "p50k_edit",
    "r50k_base",
})


class CountingStrategy(str, Enum):
    """How tokens of an exchange are estimated."""

    TIKTOKEN = "tiktoken"      # Model tokenizer over prompt + answer
    FRAGMENTS = "fragments"    # One unit per streamed fragment


def encoding_for_model(model: str) -> str | None:
    """Map a model identifier to a supported tiktoken encoding name."""
    try:
        name = tiktoken.encoding_name_for_model(model)
    except KeyError:
        return None
    if name not in SUPPORTED_ENCODINGS:
        logger.warning(f"Cannot find tokenizer for model: {model}")
        return None
    return name


class TokenCounter:
    """Estimates the tokens consumed by a prompt and its answer."""

    def __init__(
        self,
        strategy: CountingStrategy = CountingStrategy.TIKTOKEN,
        encoding_loader: Callable[[str], Any] = tiktoken.get_encoding
    ):
        """Initialize the counter.

        Args:
            strategy: Counting strategy, applied to every exchange
            encoding_loader: Returns an encoder with an `encode` method for an encoding name
        """
        self.strategy = strategy
        self._encoding_loader = encoding_loader

    def count(
        self,
        model: str,
        contents: Iterable[str],
        answer: str,
        fragment_count: int
    ) -> int | None:
        """Estimate the tokens of an exchange.

        Args:
            model: Model identifier the request was sent to
            contents: Content of every history message, in order
            answer: Final assistant answer
            fragment_count: Number of fragments the decoder delivered

        Returns:
            Token count, or None when it cannot be estimated
        """
        try:
            if self.strategy is CountingStrategy.FRAGMENTS:
                return fragment_count
            return self._count_tiktoken(model, contents, answer)
        except Exception as e:
            logger.warning(f"Token counting failed for model {model}: {e}")
            return None

    def _count_tiktoken(self, model: str, contents: Iterable[str], answer: str) -> int | None:
        name = encoding_for_model(model)
        if name is None:
            return None
        encoding = self._encoding_loader(name)
        text = " ".join(contents) + answer
        return len(encoding.encode(text, allowed_special="all"))


def estimate_cost(tokens: int | None, cost_per_token: float | None) -> float | None:
    """Cost of an exchange, or None unless both inputs are known."""
    if tokens is None or cost_per_token is None:
        return None
    return tokens * cost_per_token
