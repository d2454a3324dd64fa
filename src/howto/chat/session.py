"""Interactive chat loop and per-query task orchestration."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from rich.console import Console

from ..config import Config
from ..llm import (
    ChannelError,
    ChatRole,
    ConversationHistory,
    FragmentChannel,
    QueryResult,
    StreamingRequestEngine,
)
from ..ui import SpinnerObserver, print_cost, prompt_for_continuation, render_answer

logger = logging.getLogger(__name__)

Observer = Callable[[FragmentChannel], Awaitable[Any]]


async def run_query(
    engine: StreamingRequestEngine,
    config: Config,
    history: ConversationHistory,
    observer: Observer
) -> QueryResult:
    """Run one query with its progress observer as two concurrent tasks.

    Both tasks are started before either completes and both are joined
    before the result is inspected. A failing observer detaches from the
    channel, so the engine stops at its next fragment.

    Args:
        engine: Engine performing the request
        config: Client configuration
        history: Conversation ending with the question to answer
        observer: Async callable consuming the fragment channel

    Returns:
        The engine's QueryResult

    Raises:
        RequestError: If the engine failed
        Exception: Whatever the observer raised, if the engine succeeded
    """
    channel = FragmentChannel()

    async def observe() -> Any:
        try:
            return await observer(channel)
        except BaseException:
            channel.close_receiver()
            raise

    engine_task = asyncio.create_task(engine.submit(config, history, channel))
    observer_task = asyncio.create_task(observe())
    engine_result, observer_result = await asyncio.gather(
        engine_task, observer_task, return_exceptions=True
    )

    if isinstance(engine_result, BaseException):
        if isinstance(engine_result, ChannelError) and isinstance(observer_result, BaseException):
            raise engine_result from observer_result
        raise engine_result
    if isinstance(observer_result, BaseException):
        raise observer_result
    return engine_result


class ChatSession:
    """Owns the conversation history for one interactive session.

    The history grows only by appending the user's questions and the
    engine's returned answers; the engine gets an immutable snapshot.
    """

    def __init__(
        self,
        config: Config,
        engine: StreamingRequestEngine | None = None,
        console: Console | None = None,
        observer: Observer | None = None,
        prompt: Callable[[Console], str | None] = prompt_for_continuation
    ):
        self.config = config
        self.engine = engine or StreamingRequestEngine.from_config(config)
        self.console = console or Console()
        self.observer = observer or SpinnerObserver(self.console)
        self.prompt = prompt
        self.history = ConversationHistory.primed(config.priming_msg)

    def format_first_question(self, question: str, subject: str | None = None) -> str:
        """Prefix the question with the subject template, if a subject is given."""
        if subject is None:
            return question
        subject = subject.replace("\n", " ")
        return f"{self.config.subject_msg.replace('{}', subject)} {question}"

    async def ask(self, question: str) -> QueryResult:
        """Ask one question; on success the exchange is added to the history."""
        pending = self.history.append(ChatRole.USER, question)
        result = await run_query(self.engine, self.config, pending, self.observer)
        self.history = pending.append(ChatRole.ASSISTANT, result.answer)
        return result

    def show(self, result: QueryResult) -> None:
        render_answer(self.console, result.answer)
        cost = result.cost(self.config.cost_per_token)
        if cost is not None and result.tokens is not None:
            print_cost(self.console, result.tokens, cost)

    async def run(self, first_question: str) -> None:
        """Answer the first question, then follow-ups while chat mode is on.

        Raises:
            RequestError: If a query fails; the session ends
        """
        question: str | None = first_question
        while question is not None:
            result = await self.ask(question)
            self.show(result)

            if not self.config.chat:
                break
            question = self.prompt(self.console)
        logger.debug(f"Session ended after {len(self.history)} messages")
