"""Wikipedia 检索客户端。

两步检索：
1. OpenSearch（/w/api.php?action=opensearch）做模糊标题搜索；
2. 对每个候选标题调用 REST summary（/api/rest_v1/page/summary/{title}）
   取摘要、规范 URL 与缩略图。

lookup 把整个过程中的任何网络/解析失败都记录日志并降级为空列表，
调用方应把“没有文章”当作正常结果处理。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from wiki_chat.config.settings import settings
from wiki_chat.domain.articles import Article
from wiki_chat.domain.exceptions import NetworkError, ApiError, ValidationError
from wiki_chat.infrastructure.logging.logger import logger


class WikipediaClient:
    def __init__(self, cfg=settings):
        self._settings = cfg

    @property
    def base_url(self) -> str:
        return self._settings.wikipedia_base_url.rstrip("/")

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._settings.http_timeout,
            headers={"User-Agent": self._settings.user_agent},
            follow_redirects=True,
        )

    def lookup(self, query: str, limit: Optional[int] = None) -> List[Article]:
        """模糊搜索标题并逐个获取摘要，失败时返回 []。"""

        query = (query or "").strip()
        if not query:
            return []
        limit = limit or self._settings.wikipedia_search_limit
        logger.info("wikipedia.lookup.start", extra={"extra": {"query": query, "limit": limit}})
        try:
            with self._client() as client:
                titles = self._search_titles(client, query, limit)
                if not titles:
                    logger.info("wikipedia.lookup.no_titles", extra={"extra": {"query": query}})
                    return []
                articles = [self.article_from_summary(self._get_summary(client, t)) for t in titles[:limit]]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(
                "wikipedia.lookup.failed",
                extra={"extra": {"query": query, "error": f"{type(e).__name__}: {e}"}},
            )
            return []
        logger.info(
            "wikipedia.lookup.end",
            extra={"extra": {"query": query, "titles": [a.title for a in articles]}},
        )
        return articles

    def fetch_summary(self, title: str) -> Dict[str, Any]:
        """按精确标题获取 REST summary 原始 JSON。

        Raises:
            ValidationError: 标题为空或文章不存在（404）。
            NetworkError / ApiError: 其他网络或服务端错误。
        """

        title = (title or "").strip()
        if not title:
            raise ValidationError(code="MISSING_TITLE", message="Article title is required")
        try:
            with self._client() as client:
                return self._get_summary(client, title)
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise ValidationError(code="ARTICLE_NOT_FOUND", message="Article not found", http_status=404)
            raise ApiError(code="WIKIPEDIA_ERROR", message=str(e), http_status=e.response.status_code)
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), http_status=502)
        except ValueError as e:
            raise ApiError(code="BAD_RESPONSE", message=f"Invalid summary JSON: {e}", http_status=502)

    def _search_titles(self, client: httpx.Client, query: str, limit: int) -> List[str]:
        resp = client.get(
            f"{self.base_url}/w/api.php",
            params={
                "action": "opensearch",
                "search": query,
                "limit": limit,
                "namespace": 0,
                "format": "json",
            },
        )
        resp.raise_for_status()
        data = resp.json()
        # [query, [titles], [descriptions], [urls]]
        if not isinstance(data, list) or len(data) < 2 or not isinstance(data[1], list):
            raise ValueError(f"Unexpected opensearch response: {data!r}")
        return [t for t in data[1] if isinstance(t, str) and t]

    def _get_summary(self, client: httpx.Client, title: str) -> Dict[str, Any]:
        path = quote(title.replace(" ", "_"), safe="")
        resp = client.get(f"{self.base_url}/api/rest_v1/page/summary/{path}")
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected summary response for {title!r}")
        return data

    @staticmethod
    def article_from_summary(data: Dict[str, Any]) -> Article:
        desktop = _as_dict(_as_dict(data.get("content_urls")).get("desktop"))
        url = desktop.get("page") or ""
        return Article(
            title=data.get("title") or "",
            extract=data.get("extract") or "",
            url=url,
        )

    @staticmethod
    def thumbnail_from_summary(data: Dict[str, Any]) -> Optional[str]:
        return _as_dict(data.get("thumbnail")).get("source")


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}
