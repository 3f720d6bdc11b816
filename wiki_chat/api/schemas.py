"""中继 HTTP 接口的请求/响应模型。"""

from typing import List, Optional

from pydantic import BaseModel, Field

from wiki_chat.domain.articles import Article


class ArticlePayload(BaseModel):
    title: str
    extract: str = ""
    url: Optional[str] = ""

    def to_article(self) -> Article:
        return Article.from_dict(self.model_dump())


class KeywordsRequest(BaseModel):
    query: Optional[str] = None


class KeywordsResponse(BaseModel):
    success: bool
    keywords: str
    error: Optional[str] = None


class ChatStreamRequest(BaseModel):
    query: Optional[str] = None
    articles: List[ArticlePayload] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    timestamp: str
