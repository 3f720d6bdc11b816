"""回答流的 server-sent-event 编解码。

每条记录形如 ``data: <JSON>\\n\\n``。解码端按记录分隔符 ``\\n\\n`` 做缓冲重组：
传输层的一个分块可能只包含半条记录，也可能包含多条记录，
只有看到完整分隔符后才解析，残缺部分留在缓冲区等待下一个分块。
"""

from __future__ import annotations

import json
from typing import Iterable, Iterator, List, Optional

from wiki_chat.domain.events import StreamEvent, event_from_payload, event_to_payload
from wiki_chat.infrastructure.logging.logger import logger


RECORD_DELIMITER = "\n\n"
DATA_PREFIX = "data:"

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def encode_event(event: StreamEvent) -> str:
    return f"{DATA_PREFIX} {json.dumps(event_to_payload(event), ensure_ascii=False)}{RECORD_DELIMITER}"


class SseDecoder:
    """增量 SSE 解码器。

    feed() 接收任意切分的文本分块，返回其中已完整的事件；
    无法解析的完整记录记日志后跳过。
    """

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, chunk: str) -> List[StreamEvent]:
        if not chunk:
            return []
        # 整体归一化，跨分块的 \r\n 也能合并
        self._buffer = (self._buffer + chunk).replace("\r\n", "\n")
        events: List[StreamEvent] = []
        while RECORD_DELIMITER in self._buffer:
            record, self._buffer = self._buffer.split(RECORD_DELIMITER, 1)
            event = self._parse_record(record)
            if event is not None:
                events.append(event)
        return events

    def flush(self) -> List[StreamEvent]:
        """流结束时解析缓冲区中最后一条没有分隔符的记录。"""

        record, self._buffer = self._buffer, ""
        if not record.strip():
            return []
        event = self._parse_record(record)
        return [event] if event is not None else []

    @staticmethod
    def _parse_record(record: str) -> Optional[StreamEvent]:
        data_lines = []
        for line in record.split("\n"):
            if line.startswith(DATA_PREFIX):
                data_lines.append(line[len(DATA_PREFIX):].lstrip(" "))
        if not data_lines:
            return None
        data = "\n".join(data_lines)
        try:
            return event_from_payload(json.loads(data))
        except ValueError as e:
            # json.JSONDecodeError 也是 ValueError
            logger.warning("sse.record.invalid", extra={"extra": {"record": data[:200], "error": str(e)}})
            return None


def decode_stream(chunks: Iterable[str]) -> Iterator[StreamEvent]:
    decoder = SseDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    yield from decoder.flush()
