"""Wikipedia 检索与会话内知识库。"""

from wiki_chat.wikipedia.client import WikipediaClient
from wiki_chat.wikipedia.library import ArticleLibrary

__all__ = ["WikipediaClient", "ArticleLibrary"]
