"""Pytest configuration and shared fixtures."""
import json
from collections.abc import AsyncIterator, Iterable

import httpx
import pytest

from howto.config import Config
from howto.llm import ChatRole, ConversationHistory, FragmentChannel


def sse_event(content: str | None = None, finish_reason: str | None = None) -> str:
    """Return one `data:` line carrying a single choice delta."""
    delta: dict[str, object] = {}
    if content is not None:
        delta["content"] = content
    if finish_reason is not None:
        delta["finish_reason"] = finish_reason
    return "data: " + json.dumps({"choices": [{"delta": delta}]}, ensure_ascii=False) + "\n"


def sse_body(*contents: str, done: bool = True) -> bytes:
    """Return a complete event stream body for the given fragments."""
    body = "".join(sse_event(c) for c in contents)
    if done:
        body += "data: [DONE]\n"
    return body.encode("utf-8")


async def aiter_chunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


async def drain(channel: FragmentChannel) -> list[str]:
    """Collect everything left in a closed channel."""
    return [fragment async for fragment in channel]


class ChunkStream(httpx.AsyncByteStream):
    """Response body delivered as the given network reads."""

    def __init__(self, chunks: Iterable[bytes], error: Exception | None = None):
        self._chunks = list(chunks)
        self._error = error

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._error is not None:
            raise self._error


class FakeServer:
    """Mock completions endpoint recording the requests it receives."""

    def __init__(
        self,
        chunks: Iterable[bytes] = (),
        status_code: int = 200,
        error: Exception | None = None
    ):
        self.chunks = list(chunks)
        self.status_code = status_code
        self.error = error
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(
            self.status_code,
            stream=ChunkStream(self.chunks, self.error),
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def last_json(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def config():
    """Return a test configuration."""
    return Config(
        token="test-key",
        model="gpt-3.5-turbo",
        temperature=0.4,
        priming_msg="You are a helpful sysops assistant.",
    )


@pytest.fixture
def history(config):
    """Return a primed history with one pending question."""
    return ConversationHistory.primed(config.priming_msg).append(
        ChatRole.USER, "How do I list open ports?"
    )
