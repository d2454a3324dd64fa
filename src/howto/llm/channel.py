"""One-directional channel carrying content fragments to a progress observer.

Hides how the engine task and the observer task exchange fragments:
- single producer, single consumer
- logically unbounded, fragments arrive in send order
- the producer closes it when decoding ends, the consumer may detach early
"""

import asyncio
from collections.abc import AsyncIterator

from .errors import ChannelError

_CLOSED = object()


class FragmentChannel:
    """Async SPSC channel of content fragments.

    Usage:
        channel = FragmentChannel()
        # producer
        await channel.send("Hel")
        channel.close()
        # consumer
        async for fragment in channel:
            print(fragment, end="")
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._receiver_gone = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, fragment: str) -> None:
        """Deliver a fragment to the observer.

        Raises:
            ChannelError: If the observer detached or the channel is closed
        """
        if self._receiver_gone:
            raise ChannelError("Fragment observer is gone")
        if self._closed:
            raise ChannelError("Cannot send on a closed channel")
        await self._queue.put(fragment)
        # Let the consumer run before the next fragment is decoded
        await asyncio.sleep(0)

    def close(self) -> None:
        """Signal end of stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    def close_receiver(self) -> None:
        """Detach the consumer; every later send fails."""
        self._receiver_gone = True
        while not self._queue.empty():
            self._queue.get_nowait()

    def __aiter__(self) -> AsyncIterator[str]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[str]:
        while not self._receiver_gone:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
