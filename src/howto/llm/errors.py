"""Errors raised by the streaming request engine.

Every fatal condition of a query derives from RequestError, so callers can
report any failure of a turn with a single except clause.
"""


class RequestError(Exception):
    """Base class for a failed query."""


class TransportError(RequestError):
    """Connection, timeout or I/O failure while talking to the server."""


class ProtocolError(RequestError):
    """The server answered the initial request with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class ChannelError(RequestError):
    """A fragment could not be delivered to the progress observer."""


class ParseWarning(UserWarning):
    """A malformed stream line that was logged and skipped.

    Never raised: the decoder records these and carries on.
    """
