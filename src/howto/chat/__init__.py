from .session import ChatSession, run_query

__all__ = ["ChatSession", "run_query"]
