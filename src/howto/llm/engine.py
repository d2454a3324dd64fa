import asyncio
import logging
from typing import TYPE_CHECKING

import httpx

from .channel import FragmentChannel
from .decoder import DecodedStream, StreamDecoder
from .errors import ProtocolError, TransportError
from .models import ConversationHistory, QueryResult
from .request import build_headers, build_payload, completions_url
from .tokens import CountingStrategy, TokenCounter

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 120.0


class StreamingRequestEngine:
    """Sends one streaming chat completion request per call.

    Hidden design decisions:
    - HTTP client setup, headers and authentication
    - Streaming body decoding (delegated to StreamDecoder)
    - Token estimation (delegated to TokenCounter)
    - An overall deadline covering connect and the whole stream

    There is no retry: each call makes exactly one network attempt and any
    failure is reported to the caller.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        token_counter: TokenCounter | None = None,
        decoder: StreamDecoder | None = None,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        """Initialize the engine.

        Args:
            url: Completions endpoint; None derives it from the config's base_url
            timeout_s: Ceiling for the whole call, connect plus streaming
            token_counter: Token estimator (default: tiktoken strategy)
            decoder: Stream decoder (default: buffered line splitting)
            transport: Optional httpx transport, used by tests to fake the server
        """
        self.url = url
        self.timeout_s = timeout_s
        self.token_counter = token_counter or TokenCounter()
        self.decoder = decoder or StreamDecoder()
        self._transport = transport

    @classmethod
    def from_config(cls, config: "Config", **kwargs) -> "StreamingRequestEngine":
        """Build an engine honoring the config's decoding and counting choices."""
        kwargs.setdefault("decoder", StreamDecoder(buffered=config.buffered_decoding))
        kwargs.setdefault(
            "token_counter", TokenCounter(CountingStrategy(config.token_counting))
        )
        return cls(**kwargs)

    async def submit(
        self,
        config: "Config",
        history: ConversationHistory,
        channel: FragmentChannel
    ) -> QueryResult:
        """Ask the model to answer the last user message of the history.

        Fragments are pushed to the channel as they arrive; the channel is
        closed when the call ends, whatever the outcome.

        Args:
            config: Immutable client configuration
            history: Conversation ending with an unanswered user message
            channel: Observer channel for content fragments

        Returns:
            QueryResult with the full answer and the token estimate

        Raises:
            ValueError: If the history does not end with a user message
            TransportError: On connection, timeout or read failures
            ProtocolError: If the server answers with a non-2xx status
            ChannelError: If the observer went away mid-stream
        """
        try:
            if history.pending_question is None:
                raise ValueError("History must end with an unanswered user message")
            try:
                decoded = await asyncio.wait_for(
                    self._stream(config, history, channel), timeout=self.timeout_s
                )
            except asyncio.TimeoutError as e:
                raise TransportError(f"Request timed out after {self.timeout_s}s") from e
        finally:
            channel.close()

        tokens = self.token_counter.count(
            config.model,
            history.contents(),
            decoded.answer,
            decoded.fragment_count,
        )
        logger.debug(f"Answer complete: {len(decoded.answer)} chars, tokens={tokens}")
        return QueryResult(answer=decoded.answer, tokens=tokens)

    async def _stream(
        self,
        config: "Config",
        history: ConversationHistory,
        channel: FragmentChannel
    ) -> DecodedStream:
        url = self.url or completions_url(config.base_url)
        payload = build_payload(config, history)
        logger.debug(f"POST {url} model={config.model} messages={len(history)}")

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout_s),
                transport=self._transport
            ) as client:
                async with client.stream(
                    "POST",
                    url,
                    json=payload,
                    headers=build_headers(config.token)
                ) as response:
                    if not response.is_success:
                        body = (await response.aread()).decode("utf-8", errors="replace")
                        raise ProtocolError(response.status_code, body)
                    return await self.decoder.decode(response.aiter_bytes(), channel)
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}") from e
