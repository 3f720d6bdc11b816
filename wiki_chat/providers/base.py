"""Provider 抽象接口。

中继不直接依赖具体厂商的 HTTP API，而是依赖此协议：

- 每个厂商实现一个 ProviderClient（如 AnthropicClient）。
- 负责：将 ChatRequest 转成具体 API 请求，并把响应解析为 ChatResult /
  ChatStreamChunk；失败时抛出 domain.exceptions 中的 UpstreamError 子类。
"""

from typing import Protocol, Iterable
from wiki_chat.domain.models import ChatRequest, ChatResult, ChatStreamChunk


class ProviderClient(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志。
    - chat(req): 执行一次非流式调用，返回统一的 ChatResult。
    - chat_stream(req): 执行一次流式调用，逐步产出增量。
    """

    name: str

    def chat(self, req: ChatRequest) -> ChatResult:
        ...

    def chat_stream(self, req: ChatRequest) -> Iterable[ChatStreamChunk]:
        ...
