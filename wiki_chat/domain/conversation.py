from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional

from .articles import Article


MessageRole = Literal["user", "assistant", "error"]


class QueryPhase(str, Enum):
    """单个问题的处理阶段。DONE / ERRORED 为终止态。"""

    IDLE = "idle"
    EXTRACTING = "extracting"
    SEARCHING = "searching"
    STREAMING = "streaming"
    DONE = "done"
    ERRORED = "errored"

    @property
    def terminal(self) -> bool:
        return self in (QueryPhase.DONE, QueryPhase.ERRORED)


@dataclass
class ConversationMessage:
    role: MessageRole
    content: str
    sources: Optional[List[Article]] = None
    streaming: bool = False
    articles_used: Optional[int] = None

    def append(self, text: str) -> None:
        if not self.streaming:
            raise RuntimeError("Cannot append to a finalized message")
        self.content += text

    def finalize(self) -> None:
        self.streaming = False


@dataclass
class QueryState:
    """Orchestrator 持有的显式状态，替代零散的布尔标志。"""

    phase: QueryPhase = QueryPhase.IDLE
    question: str = ""
    keywords: Optional[str] = None
    articles: List[Article] = field(default_factory=list)
    message: Optional[ConversationMessage] = None
    error: Optional[str] = None
