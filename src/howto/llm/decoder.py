"""Incremental decoder for the completions event stream.

Hides the wire format of the streamed answer:
- frames are newline-delimited `data: <json>` or `data: [DONE]` lines
- each JSON frame carries `choices[].delta.content` text pieces
- malformed lines are logged and skipped, never fatal

Two line-splitting modes are supported. The default (buffered) mode carries
incomplete trailing bytes over to the next network read, so a frame split
across two reads is reassembled. The unbuffered mode splits every read on its
own, which drops any frame that straddles a read boundary.

A `[DONE]` line only stops processing of the remaining lines delivered by the
same read; the decoder keeps consuming the transport until it ends.
"""

import codecs
import json
import logging
from collections.abc import AsyncIterable
from dataclasses import dataclass, field
from typing import Any

import httpx

from .channel import FragmentChannel
from .errors import ParseWarning, TransportError

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


@dataclass
class DecodedStream:
    """Outcome of decoding one response body."""

    answer: str = ""
    fragment_count: int = 0
    warnings: list[ParseWarning] = field(default_factory=list)


class StreamDecoder:
    """Turns raw response chunks into content fragments and a final answer."""

    def __init__(self, buffered: bool = True):
        """Initialize the decoder.

        Args:
            buffered: Carry undelimited bytes across chunks before splitting lines
        """
        self.buffered = buffered

    async def decode(self, chunks: AsyncIterable[bytes], channel: FragmentChannel) -> DecodedStream:
        """Consume the byte stream until the transport ends.

        Every content fragment is sent to the channel before it is appended to
        the answer, so the observer sees exactly the pieces the answer is made of.
        The channel is closed when decoding finishes, successfully or not.
        Per-call state lives in the returned DecodedStream, so one decoder can
        serve overlapping calls.

        Args:
            chunks: Response body, one item per network read
            channel: Observer channel receiving fragments as they arrive

        Returns:
            The answer (concatenation of all fragments), fragment count and warnings

        Raises:
            TransportError: If reading the body fails
            ChannelError: If the observer went away
        """
        result = DecodedStream()
        answer: list[str] = []
        utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""

        try:
            try:
                async for chunk in chunks:
                    logger.debug("> RAW EVENT: %r", chunk)
                    if self.buffered:
                        text = pending + utf8.decode(chunk)
                        *lines, pending = text.split("\n")
                    else:
                        lines = chunk.decode("utf-8", errors="replace").split("\n")
                    await self._process_lines(lines, channel, answer, result)
            except httpx.HTTPError as e:
                raise TransportError(f"Error reading response stream: {e}") from e

            if self.buffered:
                pending += utf8.decode(b"", final=True)
                if pending:
                    await self._process_lines([pending], channel, answer, result)
        finally:
            channel.close()

        result.answer = "".join(answer)
        return result

    async def _process_lines(
        self,
        lines: list[str],
        channel: FragmentChannel,
        answer: list[str],
        result: DecodedStream
    ) -> None:
        for raw_line in lines:
            line = raw_line.removesuffix("\r")
            key, sep, value = line.partition(":")
            if not sep:
                if line.strip():
                    self._warn(result, f"Unexpected line format: {line}")
                continue
            if key != "data":
                self._warn(result, f"Unexpected key: {key}")
                continue
            if value.strip() == DONE_SENTINEL:
                break

            try:
                parsed = json.loads(value)
            except json.JSONDecodeError as e:
                self._warn(result, f"Error parsing JSON: {e}")
                continue
            logger.debug("> PARSED: %r", parsed)

            choices = parsed.get("choices") if isinstance(parsed, dict) else None
            if not isinstance(choices, list):
                self._warn(result, f"No 'choices' in response: {parsed!r}")
                continue

            await self._process_choices(choices, channel, answer, result)

    async def _process_choices(
        self,
        choices: list[Any],
        channel: FragmentChannel,
        answer: list[str],
        result: DecodedStream
    ) -> None:
        for choice in choices:
            logger.debug("> CHOICE: %r", choice)
            delta = choice.get("delta") if isinstance(choice, dict) else None
            if not isinstance(delta, dict):
                continue
            content = delta.get("content")
            if isinstance(content, str):
                await channel.send(content)
                answer.append(content)
                result.fragment_count += 1
            if "finish_reason" in delta:
                break

    def _warn(self, result: DecodedStream, message: str) -> None:
        logger.warning(message)
        result.warnings.append(ParseWarning(message))
