from typing import TYPE_CHECKING, Any

from .models import ChatRole, ConversationHistory

if TYPE_CHECKING:
    from ..config import Config


def _wire_role(role: ChatRole) -> str:
    match role:
        case ChatRole.SYSTEM:
            return "system"
        case ChatRole.USER:
            return "user"
        case ChatRole.ASSISTANT:
            return "assistant"


def build_payload(config: "Config", history: ConversationHistory) -> dict[str, Any]:
    """Build the streaming chat completion request body.

    Messages mirror the history one to one, in the same order.

    Args:
        config: Immutable client configuration
        history: Conversation so far, ending with the question to answer

    Returns:
        JSON-serializable request body
    """
    return {
        "model": config.model,
        "stream": True,
        "temperature": config.temperature,
        "messages": [
            {"role": _wire_role(msg.role), "content": msg.content}
            for msg in history.messages
        ],
    }


def build_headers(token: str) -> dict[str, str]:
    """Request headers for the completions endpoint.

    The content negotiation headers are the ones the server has always been sent
    by this client, including the event-stream Content-Type.
    """
    return {
        "Authorization": f"Bearer {token}",
        "Cache-Control": "no-cache",
        "Content-Type": "text/event-stream",
        "Access-Control-Allow-Origin": "*",
        "Connection": "keep-alive",
    }


def completions_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/chat/completions"
