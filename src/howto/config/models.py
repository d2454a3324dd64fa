from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .defaults import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    DEFAULT_PRIMING_MSG,
    DEFAULT_SUBJECT_MSG,
    DEFAULT_TEMPERATURE,
    trim_lines,
)


class Config(BaseModel):
    """Immutable client configuration, shared read-only by all tasks."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(description="OpenAI API bearer token")
    model: str = Field(default=DEFAULT_MODEL, description="Model identifier")
    temperature: float = Field(
        default=DEFAULT_TEMPERATURE,
        ge=0.0,
        le=2.0,
        description="Sampling temperature"
    )
    cost_per_token: float | None = Field(
        default=None,
        ge=0.0,
        description="Price of one token in USD; no cost is shown when unset"
    )
    priming_msg: str = Field(
        default_factory=lambda: trim_lines(DEFAULT_PRIMING_MSG),
        description="System message establishing the assistant persona"
    )
    subject_msg: str = Field(
        default=DEFAULT_SUBJECT_MSG,
        description="Template prefixed to the first question, '{}' is the subject"
    )
    chat: bool = Field(default=True, description="Ask for a continuation after each answer")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL")
    token_counting: Literal["tiktoken", "fragments"] = Field(
        default="tiktoken",
        description="Token estimation strategy"
    )
    buffered_decoding: bool = Field(
        default=True,
        description="Reassemble stream lines split across network reads"
    )

    @field_validator("token")
    @classmethod
    def _token_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("token is empty")
        return v
