"""会话内的文章知识库（仅内存，不持久化）。"""

from __future__ import annotations

import itertools
import json
from datetime import datetime, timezone
from typing import Dict, List, Optional

from wiki_chat.domain.articles import Article, LibraryEntry
from wiki_chat.domain.exceptions import ValidationError
from wiki_chat.infrastructure.logging.logger import logger
from wiki_chat.wikipedia.client import WikipediaClient


MIN_MATCH_WORD_LENGTH = 4


class ArticleLibrary:
    def __init__(self, wiki: Optional[WikipediaClient] = None):
        self._wiki = wiki or WikipediaClient()
        self._entries: Dict[int, LibraryEntry] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, title: str) -> LibraryEntry:
        """按精确标题抓取摘要并加入知识库。

        文章不存在时抛出 ValidationError("Article not found")。
        """

        data = self._wiki.fetch_summary(title)
        article = WikipediaClient.article_from_summary(data)
        entry = LibraryEntry(
            id=next(self._ids),
            article=article,
            added_at=datetime.now(timezone.utc),
            thumbnail=WikipediaClient.thumbnail_from_summary(data),
        )
        self._entries[entry.id] = entry
        logger.info("library.add", extra={"extra": {"id": entry.id, "title": article.title}})
        return entry

    def remove(self, entry_id: int) -> bool:
        removed = self._entries.pop(entry_id, None) is not None
        if removed:
            logger.info("library.remove", extra={"extra": {"id": entry_id}})
        return removed

    def get(self, entry_id: int) -> LibraryEntry:
        try:
            return self._entries[entry_id]
        except KeyError:
            raise ValidationError(code="UNKNOWN_ARTICLE", message=f"No article with id {entry_id}", http_status=404)

    def all(self) -> List[LibraryEntry]:
        return list(self._entries.values())

    def filter(self, term: str) -> List[LibraryEntry]:
        """标题或摘要包含 term（不区分大小写）的条目；term 为空时返回全部。"""

        needle = (term or "").strip().lower()
        if not needle:
            return self.all()
        return [
            e for e in self._entries.values()
            if needle in e.article.title.lower() or needle in e.article.extract.lower()
        ]

    def find_relevant(self, question: str) -> List[Article]:
        """选出与问题相关的文章。

        命中条件：标题包含整个问题，或摘要中任一长度大于 3 的词出现在问题里。
        """

        lower_q = (question or "").strip().lower()
        if not lower_q:
            return []
        relevant = []
        for entry in self._entries.values():
            article = entry.article
            title_match = lower_q in article.title.lower()
            content_match = any(
                len(word) >= MIN_MATCH_WORD_LENGTH and word in lower_q
                for word in article.extract.lower().split(" ")
            )
            if title_match or content_match:
                relevant.append(article)
        return relevant

    def to_json(self, entry_id: int) -> str:
        article = self.get(entry_id).article
        return json.dumps(
            {"title": article.title, "content": article.extract, "source": article.url},
            ensure_ascii=False,
            indent=2,
        )
