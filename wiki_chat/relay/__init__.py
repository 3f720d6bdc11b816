"""服务端中继：关键词提取、回答流与 SSE 编解码。"""

from wiki_chat.relay.answer import AnswerRelay
from wiki_chat.relay.keywords import KeywordExtractor

__all__ = ["AnswerRelay", "KeywordExtractor"]
