"""LangGraph construction and node implementations.

extract -> search -> (stream | not_found) -> END
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Protocol, Sequence

from langgraph.graph import END, StateGraph
from langgraph.graph.state import CompiledStateGraph

from wiki_chat.domain.articles import Article
from wiki_chat.domain.conversation import ConversationMessage, QueryPhase, QueryState
from wiki_chat.domain.events import Done, Error, StreamEvent, TextDelta
from wiki_chat.domain.exceptions import TransportError
from wiki_chat.flows.state import QueryGraphState
from wiki_chat.infrastructure.logging.logger import logger


NOT_FOUND_MESSAGE = (
    "I couldn't find any Wikipedia articles related to your question. "
    "Try rephrasing it or asking about a different topic."
)
ERROR_MESSAGE = "Sorry, I encountered an error processing your request. Please try again."

Notify = Callable[[QueryState, Optional[str]], None]


class RelayPort(Protocol):
    def extract_keywords(self, question: str) -> str:
        ...

    def stream_chat(self, question: str, articles: Sequence[Article]) -> Iterable[StreamEvent]:
        ...


class LookupPort(Protocol):
    def lookup(self, query: str, limit: Optional[int] = None) -> List[Article]:
        ...


def _enter(query: QueryState, phase: QueryPhase, notify: Notify) -> None:
    logger.info("query.phase", extra={"extra": {"from": query.phase.value, "to": phase.value}})
    query.phase = phase
    notify(query, None)


def extract_node(state: QueryGraphState, relay: RelayPort, notify: Notify) -> QueryGraphState:
    query = state["query"]
    _enter(query, QueryPhase.EXTRACTING, notify)
    query.keywords = relay.extract_keywords(query.question) or query.question
    return {"query": query}


def search_node(state: QueryGraphState, wiki: LookupPort, limit: Optional[int], notify: Notify) -> QueryGraphState:
    query = state["query"]
    _enter(query, QueryPhase.SEARCHING, notify)
    query.articles = list(wiki.lookup(query.keywords or query.question, limit))
    return {"query": query}


def not_found_node(state: QueryGraphState, notify: Notify) -> QueryGraphState:
    query = state["query"]
    query.message = ConversationMessage(role="assistant", content=NOT_FOUND_MESSAGE, articles_used=0)
    _enter(query, QueryPhase.DONE, notify)
    return {"query": query}


def stream_node(state: QueryGraphState, relay: RelayPort, notify: Notify) -> QueryGraphState:
    """Consume the relay stream, growing one assistant message in place."""

    query = state["query"]
    message = ConversationMessage(role="assistant", content="", sources=list(query.articles), streaming=True)
    query.message = message
    _enter(query, QueryPhase.STREAMING, notify)
    try:
        for event in relay.stream_chat(query.question, query.articles):
            if isinstance(event, TextDelta):
                message.append(event.text)
                notify(query, event.text)
            elif isinstance(event, Done):
                message.articles_used = event.articles_used
                message.finalize()
                _enter(query, QueryPhase.DONE, notify)
                return {"query": query}
            elif isinstance(event, Error):
                _fail(query, event.message, notify)
                return {"query": query}
    except TransportError as e:
        _fail(query, e.message, notify)
        return {"query": query}
    _fail(query, "Stream ended without a terminal event", notify)
    return {"query": query}


def _fail(query: QueryState, reason: str, notify: Notify) -> None:
    if query.message is not None and query.message.streaming:
        query.message.finalize()
    query.error = reason
    logger.warning("query.errored", extra={"extra": {"question": query.question, "error": reason}})
    _enter(query, QueryPhase.ERRORED, notify)


def search_router(state: QueryGraphState) -> str:
    if state["query"].articles:
        return "stream"
    return "not_found"


def build_graph(
    relay: RelayPort,
    wiki: LookupPort,
    notify: Notify,
    limit: Optional[int] = None,
) -> CompiledStateGraph:
    graph = StateGraph(QueryGraphState)
    graph.add_node("extract", lambda s: extract_node(s, relay, notify))
    graph.add_node("search", lambda s: search_node(s, wiki, limit, notify))
    graph.add_node("stream", lambda s: stream_node(s, relay, notify))
    graph.add_node("not_found", lambda s: not_found_node(s, notify))
    graph.set_entry_point("extract")
    graph.add_edge("extract", "search")
    graph.add_conditional_edges("search", search_router, {"stream": "stream", "not_found": "not_found"})
    graph.add_edge("stream", END)
    graph.add_edge("not_found", END)
    return graph.compile()
