"""中继回答流的事件模型。

一条流由零个或多个 TextDelta 组成，最后恰好跟随一个终止事件
（Done 或 Error）。线上 JSON 形态：

- TextDelta -> {"text": "..."}
- Done      -> {"done": true, "articlesUsed": n}
- Error     -> {"error": "..."}
"""

from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class Done:
    articles_used: int


@dataclass(frozen=True)
class Error:
    message: str


StreamEvent = Union[TextDelta, Done, Error]


def is_terminal(event: StreamEvent) -> bool:
    return isinstance(event, (Done, Error))


def event_to_payload(event: StreamEvent) -> Dict[str, Any]:
    if isinstance(event, TextDelta):
        return {"text": event.text}
    if isinstance(event, Done):
        return {"done": True, "articlesUsed": event.articles_used}
    if isinstance(event, Error):
        return {"error": event.message}
    raise TypeError(f"Unknown stream event: {event!r}")


def event_from_payload(payload: Dict[str, Any]) -> StreamEvent:
    """把一条 data 记录的 JSON 还原为事件；无法识别时抛出 ValueError。"""

    if not isinstance(payload, dict):
        raise ValueError(f"Stream record is not an object: {payload!r}")
    if "error" in payload:
        return Error(message=str(payload["error"]))
    if payload.get("done"):
        used = payload.get("articlesUsed") or 0
        if not isinstance(used, int) or isinstance(used, bool):
            raise ValueError(f"articlesUsed must be an integer: {used!r}")
        return Done(articles_used=used)
    if "text" in payload:
        if not isinstance(payload["text"], str):
            raise ValueError(f"text must be a string: {payload['text']!r}")
        return TextDelta(text=payload["text"])
    raise ValueError(f"Unrecognised stream record: {payload!r}")
