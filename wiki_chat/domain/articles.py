"""Wikipedia 文章模型。"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Article:
    """一篇检索到的文章，创建后不可变。

    url 缺失时为空字符串；同一次检索结果内以 title 区分。
    """

    title: str
    extract: str
    url: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        return cls(
            title=str(data.get("title") or ""),
            extract=str(data.get("extract") or ""),
            url=str(data.get("url") or ""),
        )


@dataclass(frozen=True)
class LibraryEntry:
    """知识库中收藏的一篇文章。"""

    id: int
    article: Article
    added_at: datetime
    thumbnail: Optional[str] = None
