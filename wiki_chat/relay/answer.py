"""回答流中继。

根据问题与检索到的文章构造提示词，打开上游 LLM 的 token 流，
每收到一段文本立即产出 TextDelta；正常结束时产出一个 Done，
中途出错时产出一个 Error。不做重试。
"""

from __future__ import annotations

from typing import Iterator, Optional, Sequence

from wiki_chat.config.settings import settings
from wiki_chat.domain.articles import Article
from wiki_chat.domain.events import Done, Error, StreamEvent, TextDelta
from wiki_chat.domain.exceptions import BusinessError
from wiki_chat.domain.models import ChatMessage, ChatRequest
from wiki_chat.infrastructure.logging.logger import logger
from wiki_chat.prompts import build_answer_prompt
from wiki_chat.providers import create_provider
from wiki_chat.providers.base import ProviderClient
from wiki_chat.providers.registry import ANSWER_MODEL


class AnswerRelay:
    def __init__(self, provider: Optional[ProviderClient] = None, cfg=settings):
        self._settings = cfg
        self._provider = provider or create_provider(cfg=cfg)

    def build_request(self, question: str, articles: Sequence[Article]) -> ChatRequest:
        return ChatRequest(
            provider=self._provider.name,
            model=ANSWER_MODEL,
            messages=[ChatMessage(role="user", content=build_answer_prompt(question, articles))],
            max_tokens=self._settings.answer_max_tokens,
        )

    def stream_answer(self, question: str, articles: Sequence[Article]) -> Iterator[StreamEvent]:
        req = self.build_request(question, articles)
        logger.info(
            "relay.stream.start",
            extra={"extra": {"question": question, "articles": len(articles), "provider": self._provider.name}},
        )
        deltas = 0
        try:
            for chunk in self._provider.chat_stream(req):
                if chunk.delta_text:
                    deltas += 1
                    yield TextDelta(text=chunk.delta_text)
        except BusinessError as e:
            logger.error(
                "relay.stream.failed",
                extra={"extra": {"code": e.code, "error": e.message, "deltas": deltas}},
            )
            yield Error(message=e.message)
            return
        except Exception as e:  # noqa: BLE001 - 流中任何异常都必须转换为终止事件
            logger.exception("relay.stream.crashed", extra={"extra": {"deltas": deltas}})
            yield Error(message=str(e) or type(e).__name__)
            return
        logger.info("relay.stream.end", extra={"extra": {"deltas": deltas, "articles": len(articles)}})
        yield Done(articles_used=len(articles))
