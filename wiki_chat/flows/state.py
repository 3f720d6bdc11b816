"""State definition for the question-answering LangGraph."""

from __future__ import annotations

from typing import TypedDict

from wiki_chat.domain.conversation import QueryState


class QueryGraphState(TypedDict):
    """State shared across LangGraph nodes.

    The orchestrator owns the QueryState instance; nodes mutate it in place
    and hand it back so routing can read the current phase.
    """

    query: QueryState
