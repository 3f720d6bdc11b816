"""提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取模板文本，
并为关键词提取与回答生成两类请求填充内容。
"""

from functools import lru_cache
from pathlib import Path
from typing import Sequence

from wiki_chat.domain.articles import Article


PROMPTS_DIR = Path(__file__).resolve().parent


@lru_cache(maxsize=None)
def load_prompt(name: str, locale: str = "en") -> str:
    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8").strip()


def build_keywords_prompt(question: str) -> str:
    return load_prompt("keywords").format(question=question)


def build_context(articles: Sequence[Article]) -> str:
    """把文章列表渲染为提示词里的参考资料块。"""

    blocks = []
    for article in articles:
        blocks.append(
            f"Article: {article.title}\n"
            f"Content: {article.extract}\n"
            f"Source: {article.url}"
        )
    return "\n\n".join(blocks)


def build_answer_prompt(question: str, articles: Sequence[Article]) -> str:
    """有文章时生成带引用要求的提示词，否则要求基于常识作答并说明无存储文章。"""

    if articles:
        return load_prompt("answer_grounded").format(context=build_context(articles), question=question)
    return load_prompt("answer_general").format(question=question)
