"""中继服务的 HTTP 客户端。

所有 LLM 调用都经由中继完成，客户端不持有任何 LLM 密钥。
"""

from __future__ import annotations

from typing import Iterator, Optional, Sequence

import httpx

from wiki_chat.config.settings import settings
from wiki_chat.domain.articles import Article
from wiki_chat.domain.events import StreamEvent, is_terminal
from wiki_chat.domain.exceptions import TransportError
from wiki_chat.infrastructure.logging.logger import logger
from wiki_chat.relay.sse import SseDecoder


class RelayClient:
    def __init__(self, base_url: Optional[str] = None, cfg=settings):
        self._settings = cfg
        self._base_url = (base_url or cfg.relay_url).rstrip("/")

    def extract_keywords(self, question: str) -> str:
        """请求中继提取关键词；中继的回退值或任何传输失败都得到原始问题。"""

        try:
            with httpx.Client(timeout=self._settings.http_timeout) as client:
                resp = client.post(f"{self._base_url}/api/extract-keywords", json={"query": question})
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("relay_client.keywords.failed", extra={"extra": {"error": str(e)}})
            return question
        keywords = data.get("keywords") if isinstance(data, dict) else None
        if not isinstance(keywords, str) or not keywords.strip():
            return question
        return keywords.strip()

    def stream_chat(self, question: str, articles: Sequence[Article]) -> Iterator[StreamEvent]:
        """打开回答流并逐个产出事件，收到终止事件后停止。

        Raises:
            TransportError: 中继返回错误状态、连接中断或流在终止事件前结束。
        """

        decoder = SseDecoder()
        body = {"query": question, "articles": [a.to_dict() for a in articles]}
        try:
            with httpx.Client(timeout=self._settings.http_timeout) as client:
                with client.stream("POST", f"{self._base_url}/api/chat/stream", json=body) as resp:
                    if resp.status_code >= 400:
                        resp.read()
                        raise TransportError(
                            code="RELAY_HTTP_ERROR",
                            message=f"Relay returned {resp.status_code}: {resp.text[:200]}",
                            http_status=resp.status_code,
                        )
                    for chunk in resp.iter_text():
                        for event in decoder.feed(chunk):
                            yield event
                            if is_terminal(event):
                                return
                    for event in decoder.flush():
                        yield event
                        if is_terminal(event):
                            return
        except httpx.HTTPError as e:
            raise TransportError(code="TRANSPORT_ERROR", message=str(e) or type(e).__name__, http_status=502)
        raise TransportError(
            code="STREAM_INCOMPLETE",
            message="Stream ended without a terminal event",
            http_status=502,
        )
