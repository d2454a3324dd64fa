from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .tokens import estimate_cost


class ChatRole(str, Enum):
    """Author of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single turn in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: ChatRole = Field(description="Who wrote the message")
    content: str = Field(description="Content of the message")


class ConversationHistory(BaseModel):
    """Ordered, chronological record of the conversation so far.

    The history is immutable: appending a turn returns a new history, so a
    history handed to the engine can never be changed behind the caller's back.

    Ordering rules:
    - a system (priming) message may only appear first
    - after it, turns alternate user / assistant, starting with the user
    """

    model_config = ConfigDict(frozen=True)

    messages: tuple[ChatMessage, ...] = Field(default=(), description="Messages in order")

    @model_validator(mode="after")
    def _check_turn_order(self) -> "ConversationHistory":
        expected = ChatRole.USER
        for i, msg in enumerate(self.messages):
            if msg.role is ChatRole.SYSTEM:
                if i != 0:
                    raise ValueError(f"System message must come first, found at position {i}")
                continue
            if msg.role is not expected:
                raise ValueError(
                    f"Expected a {expected.value} message at position {i}, got {msg.role.value}"
                )
            expected = ChatRole.ASSISTANT if expected is ChatRole.USER else ChatRole.USER
        return self

    @classmethod
    def primed(cls, priming_msg: str) -> "ConversationHistory":
        """Start a conversation with a system priming message."""
        return cls(messages=(ChatMessage(role=ChatRole.SYSTEM, content=priming_msg),))

    def append(self, role: ChatRole, content: str) -> "ConversationHistory":
        """Return a new history with one more message at the end."""
        return ConversationHistory(
            messages=(*self.messages, ChatMessage(role=role, content=content))
        )

    @property
    def pending_question(self) -> str | None:
        """The last user message if it has not been answered yet."""
        if self.messages and self.messages[-1].role is ChatRole.USER:
            return self.messages[-1].content
        return None

    def contents(self) -> Iterator[str]:
        for msg in self.messages:
            yield msg.content

    def __len__(self) -> int:
        return len(self.messages)


class QueryResult(BaseModel):
    """Outcome of one streamed completion."""

    model_config = ConfigDict(frozen=True)

    answer: str = Field(description="Full assistant answer, concatenation of all fragments")
    tokens: int | None = Field(
        default=None,
        ge=0,
        description="Estimated tokens for the whole exchange, if they could be counted"
    )

    def cost(self, cost_per_token: float | None) -> float | None:
        """Cost of the exchange, only when both a count and a price are known."""
        return estimate_cost(self.tokens, cost_per_token)
