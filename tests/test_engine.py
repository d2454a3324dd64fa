"""Unit tests for the streaming request engine."""
import asyncio

import httpx
import pytest

from conftest import ChunkStream, FakeServer, drain, sse_body, sse_event
from howto.config import Config
from howto.llm import (
    ChatRole,
    ConversationHistory,
    CountingStrategy,
    FragmentChannel,
    ProtocolError,
    StreamDecoder,
    StreamingRequestEngine,
    TokenCounter,
    TransportError,
)


def fragment_engine(server: FakeServer, **kwargs) -> StreamingRequestEngine:
    """Engine against a fake server, counting tokens by fragments."""
    return StreamingRequestEngine(
        transport=server.transport,
        token_counter=TokenCounter(CountingStrategy.FRAGMENTS),
        **kwargs
    )


class TestSubmit:
    """Tests for StreamingRequestEngine.submit."""

    @pytest.mark.asyncio
    async def test_streams_answer_and_fragments(self, config, history):
        """A successful call returns the answer and forwards every fragment."""
        server = FakeServer([sse_body("Use ", "`ss`")])
        engine = fragment_engine(server)
        channel = FragmentChannel()

        result = await engine.submit(config, history, channel)

        assert result.answer == "Use `ss`"
        assert result.tokens == 2
        assert await drain(channel) == ["Use ", "`ss`"]
        assert channel.closed

    @pytest.mark.asyncio
    async def test_request_body_and_headers(self, config, history):
        """The POST carries the payload and bearer token."""
        server = FakeServer([sse_body("ok")])
        await fragment_engine(server).submit(config, history, FragmentChannel())

        request = server.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer test-key"
        assert request.headers["Content-Type"] == "text/event-stream"
        assert request.headers["Cache-Control"] == "no-cache"
        assert request.headers["Access-Control-Allow-Origin"] == "*"
        assert request.headers["Connection"] == "keep-alive"
        assert server.last_json == {
            "model": "gpt-3.5-turbo",
            "stream": True,
            "temperature": 0.4,
            "messages": [
                {"role": "system", "content": "You are a helpful sysops assistant."},
                {"role": "user", "content": "How do I list open ports?"},
            ],
        }

    @pytest.mark.asyncio
    async def test_url_follows_base_url(self, history):
        """A custom base_url changes the endpoint."""
        config = Config(token="k", base_url="http://localhost:8080/v1/")
        server = FakeServer([sse_body("ok")])
        await fragment_engine(server).submit(config, history, FragmentChannel())

        assert str(server.requests[0].url) == "http://localhost:8080/v1/chat/completions"

    @pytest.mark.asyncio
    async def test_explicit_url_overrides_config(self, config, history):
        """An engine URL takes precedence over the config's base_url."""
        server = FakeServer([sse_body("ok")])
        engine = fragment_engine(server, url="http://proxy.local/completions")
        await engine.submit(config, history, FragmentChannel())

        assert str(server.requests[0].url) == "http://proxy.local/completions"

    @pytest.mark.asyncio
    async def test_exactly_one_attempt(self, config, history):
        """Failures are not retried."""
        server = FakeServer(status_code=500, chunks=[b"boom"])
        with pytest.raises(ProtocolError):
            await fragment_engine(server).submit(config, history, FragmentChannel())
        assert len(server.requests) == 1

    @pytest.mark.asyncio
    async def test_history_is_not_mutated(self, config, history):
        """The caller's history is unchanged after a call."""
        before = history.model_copy()
        server = FakeServer([sse_body("answer")])
        await fragment_engine(server).submit(config, history, FragmentChannel())

        assert history == before
        assert len(history) == 2

    @pytest.mark.asyncio
    async def test_requires_pending_user_message(self, config):
        """A history without an unanswered question is rejected."""
        answered = (
            ConversationHistory.primed("p")
            .append(ChatRole.USER, "q")
            .append(ChatRole.ASSISTANT, "a")
        )
        server = FakeServer([sse_body("x")])
        channel = FragmentChannel()

        with pytest.raises(ValueError, match="unanswered user message"):
            await fragment_engine(server).submit(config, answered, channel)
        assert server.requests == []
        assert channel.closed

    @pytest.mark.asyncio
    async def test_tiktoken_unknown_model_gives_no_count(self, history):
        """Token counting degrades to None for unmapped models."""
        config = Config(token="k", model="my-local-model")
        server = FakeServer([sse_body("hello")])
        engine = StreamingRequestEngine(transport=server.transport)

        result = await engine.submit(config, history, FragmentChannel())

        assert result.answer == "hello"
        assert result.tokens is None

    def test_from_config(self):
        """Decoding and counting choices come from the config."""
        config = Config(token="k", token_counting="fragments", buffered_decoding=False)
        engine = StreamingRequestEngine.from_config(config)

        assert engine.token_counter.strategy is CountingStrategy.FRAGMENTS
        assert engine.decoder.buffered is False

    @pytest.mark.asyncio
    async def test_overlapping_calls_keep_separate_counts(self, config, history):
        """Two calls sharing one engine each count only their own fragments."""
        server = FakeServer([sse_event(c).encode() for c in ("a", "b", "c")])
        engine = fragment_engine(server)
        first, second = FragmentChannel(), FragmentChannel()

        results = await asyncio.gather(
            engine.submit(config, history, first),
            engine.submit(config, history, second),
        )

        assert [r.answer for r in results] == ["abc", "abc"]
        assert [r.tokens for r in results] == [3, 3]
        assert await drain(first) == await drain(second) == ["a", "b", "c"]


class TestSubmitErrors:
    """Tests for fatal request errors."""

    @pytest.mark.asyncio
    async def test_unauthorized_is_protocol_error(self, config, history):
        """A 401 yields ProtocolError with status and body, and no fragments."""
        body = b'{"error": {"message": "Incorrect API key provided"}}'
        server = FakeServer([body], status_code=401)
        channel = FragmentChannel()

        with pytest.raises(ProtocolError) as exc_info:
            await fragment_engine(server).submit(config, history, channel)

        assert exc_info.value.status_code == 401
        assert "Incorrect API key" in exc_info.value.body
        assert channel.closed
        assert await drain(channel) == []

    @pytest.mark.asyncio
    async def test_connection_failure_is_transport_error(self, config, history):
        """Connection faults become TransportError."""
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        engine = StreamingRequestEngine(transport=httpx.MockTransport(refuse))
        channel = FragmentChannel()

        with pytest.raises(TransportError, match="connection refused"):
            await engine.submit(config, history, channel)
        assert channel.closed

    @pytest.mark.asyncio
    async def test_read_failure_mid_stream_is_transport_error(self, config, history):
        """A body read failure after some fragments is fatal."""
        server = FakeServer(
            [sse_body("partial", done=False)],
            error=httpx.ReadError("reset by peer"),
        )
        channel = FragmentChannel()

        with pytest.raises(TransportError, match="reset by peer"):
            await fragment_engine(server).submit(config, history, channel)
        assert await drain(channel) == ["partial"]

    @pytest.mark.asyncio
    async def test_overall_timeout_covers_the_stream(self, config, history):
        """A stream that outlives the deadline fails with TransportError."""
        class SlowStream(ChunkStream):
            async def __aiter__(self):
                yield sse_body("first", done=False)
                await asyncio.sleep(5)
                yield sse_body("late")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=SlowStream([]))

        engine = StreamingRequestEngine(
            transport=httpx.MockTransport(handler),
            timeout_s=0.2,
            decoder=StreamDecoder(),
        )
        channel = FragmentChannel()

        with pytest.raises(TransportError, match="timed out"):
            await engine.submit(config, history, channel)
        assert channel.closed
        assert await drain(channel) == ["first"]
