"""
howto: a command-line chat assistant streaming answers from OpenAI language models.
"""

__version__ = "0.3.0"

from .config import Config, load_config
from .llm import ConversationHistory, QueryResult, StreamingRequestEngine

__all__ = [
    "Config",
    "load_config",
    "ConversationHistory",
    "QueryResult",
    "StreamingRequestEngine",
]
