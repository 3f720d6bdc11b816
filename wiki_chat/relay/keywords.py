"""关键词提取。

把自由提问交给 LLM，让其只返回适合 Wikipedia 搜索的关键词。
提取只是检索优化：任何失败都回退为原始问题。
"""

from __future__ import annotations

from typing import Optional, Tuple

from wiki_chat.config.settings import settings
from wiki_chat.domain.exceptions import BusinessError, ValidationError
from wiki_chat.domain.models import ChatMessage, ChatRequest
from wiki_chat.infrastructure.logging.logger import logger
from wiki_chat.prompts import build_keywords_prompt
from wiki_chat.providers import create_provider
from wiki_chat.providers.base import ProviderClient
from wiki_chat.providers.registry import KEYWORDS_MODEL


class KeywordExtractor:
    def __init__(self, provider: Optional[ProviderClient] = None, cfg=settings):
        self._settings = cfg
        self._provider = provider or create_provider(cfg=cfg)

    def extract(self, question: str) -> Tuple[str, Optional[str]]:
        """返回 (keywords, error)。

        成功时 error 为 None；失败时 keywords 为原始问题，error 为失败原因。
        空问题抛出 ValidationError。
        """

        question = (question or "").strip()
        if not question:
            raise ValidationError(code="MISSING_QUERY", message="Query is required")
        req = ChatRequest(
            provider=self._provider.name,
            model=KEYWORDS_MODEL,
            messages=[ChatMessage(role="user", content=build_keywords_prompt(question))],
            max_tokens=self._settings.keywords_max_tokens,
        )
        try:
            result = self._provider.chat(req)
            keywords = result.text.strip()
        except BusinessError as e:
            logger.warning(
                "keywords.extract.failed",
                extra={"extra": {"question": question, "code": e.code, "error": e.message}},
            )
            return question, e.message
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.warning(
                "keywords.extract.malformed",
                extra={"extra": {"question": question, "error": repr(e)}},
            )
            return question, f"Malformed completion: {e}"
        if not keywords:
            logger.warning("keywords.extract.empty", extra={"extra": {"question": question}})
            return question, "Empty completion"
        logger.info("keywords.extract.end", extra={"extra": {"question": question, "keywords": keywords}})
        return keywords, None

    def extract_keywords(self, question: str) -> str:
        keywords, _ = self.extract(question)
        return keywords
