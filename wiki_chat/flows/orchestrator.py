"""High-level entry point: one question in, one finalized message out."""

from __future__ import annotations

from typing import List, Optional, Sequence

from wiki_chat.config.settings import settings
from wiki_chat.domain.articles import Article
from wiki_chat.domain.conversation import ConversationMessage, QueryPhase, QueryState
from wiki_chat.domain.exceptions import ValidationError
from wiki_chat.flows.graph import (
    ERROR_MESSAGE,
    LookupPort,
    Notify,
    RelayPort,
    build_graph,
    stream_node,
)
from wiki_chat.flows.state import QueryGraphState
from wiki_chat.infrastructure.logging.logger import logger


def _ignore(state: QueryState, delta: Optional[str]) -> None:
    return None


class QueryOrchestrator:
    """Drives IDLE -> EXTRACTING -> SEARCHING -> STREAMING -> DONE | ERRORED.

    Only one question is processed at a time; ``busy`` guards re-entry.
    ``on_update(state, delta)`` is called on every phase change (delta=None)
    and on every streamed text fragment.
    """

    def __init__(
        self,
        relay: RelayPort,
        wiki: LookupPort,
        *,
        on_update: Optional[Notify] = None,
        limit: Optional[int] = None,
    ):
        self._relay = relay
        self._notify = on_update or _ignore
        self._limit = limit or settings.wikipedia_search_limit
        self._graph = build_graph(relay, wiki, self._dispatch, self._limit)
        self.state = QueryState()
        self.messages: List[ConversationMessage] = []
        self.busy = False

    def ask(self, question: str) -> ConversationMessage:
        """Run the full extract/search/stream cycle for ``question``."""

        query = self._begin(question)
        try:
            self._graph.invoke({"query": query})
        except Exception as exc:  # noqa: BLE001 - 状态机必须落在终止态
            logger.exception("orchestrator.ask.crashed", extra={"extra": {"question": query.question}})
            self._crash(query, str(exc) or type(exc).__name__)
        return self._finish(query)

    def ask_with_articles(self, question: str, articles: Sequence[Article]) -> ConversationMessage:
        """Skip extraction and search; stream an answer grounded in ``articles``."""

        query = self._begin(question)
        query.articles = list(articles)
        try:
            state: QueryGraphState = {"query": query}
            stream_node(state, self._relay, self._dispatch)
        except Exception as exc:  # noqa: BLE001 - 状态机必须落在终止态
            logger.exception("orchestrator.ask.crashed", extra={"extra": {"question": query.question}})
            self._crash(query, str(exc) or type(exc).__name__)
        return self._finish(query)

    def _begin(self, question: str) -> QueryState:
        question = (question or "").strip()
        if not question:
            raise ValidationError(code="MISSING_QUERY", message="Question is required")
        if self.busy:
            raise ValidationError(code="BUSY", message="A question is already being processed", http_status=409)
        self.busy = True
        self.state = QueryState(question=question)
        self.messages.append(ConversationMessage(role="user", content=question))
        logger.info("orchestrator.ask.start", extra={"extra": {"question": question}})
        return self.state

    def _finish(self, query: QueryState) -> ConversationMessage:
        try:
            message = query.message
            if query.phase == QueryPhase.ERRORED:
                if message is not None and message.content:
                    self.messages.append(message)
                message = ConversationMessage(role="error", content=ERROR_MESSAGE)
                query.message = message
            self.messages.append(message)
            logger.info(
                "orchestrator.ask.end",
                extra={"extra": {"phase": query.phase.value, "chars": len(message.content)}},
            )
            return message
        finally:
            self.busy = False

    def _crash(self, query: QueryState, reason: str) -> None:
        if query.message is not None and query.message.streaming:
            query.message.finalize()
        query.error = reason
        query.phase = QueryPhase.ERRORED
        self._dispatch(query, None)

    def _dispatch(self, state: QueryState, delta: Optional[str]) -> None:
        self._notify(state, delta)
