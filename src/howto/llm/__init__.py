from .channel import FragmentChannel
from .decoder import DecodedStream, StreamDecoder
from .engine import StreamingRequestEngine
from .errors import ChannelError, ParseWarning, ProtocolError, RequestError, TransportError
from .models import ChatMessage, ChatRole, ConversationHistory, QueryResult
from .request import build_headers, build_payload
from .tokens import CountingStrategy, TokenCounter, estimate_cost

__all__ = [
    "FragmentChannel",
    "DecodedStream",
    "StreamDecoder",
    "StreamingRequestEngine",
    "ChannelError",
    "ParseWarning",
    "ProtocolError",
    "RequestError",
    "TransportError",
    "ChatMessage",
    "ChatRole",
    "ConversationHistory",
    "QueryResult",
    "build_headers",
    "build_payload",
    "CountingStrategy",
    "TokenCounter",
    "estimate_cost",
]
