"""统一的 LLM 请求/响应数据模型。

本模块定义了中继在不同 Provider 之间共享的标准数据结构：

- ChatMessage: 一条对话消息（user/assistant）。
- ChatRequest: 发给底层 LLM Provider 的完整请求。
- ChatResult: 从 Provider 解析后的统一响应结果。
- ChatStreamChunk: 流式调用中的单条增量。

所有 Provider 适配器（如 AnthropicClient）都只依赖这些模型，
并负责在各自的 API JSON 和这些模型之间做转换。
"""

from dataclasses import dataclass
from typing import Literal, Optional, List


# LLM 消息角色类型
Role = Literal["system", "user", "assistant"]


@dataclass
class ChatMessage:
    """一条对话消息，既可用于请求，也可用于响应。

    - role: 消息角色。
    - content: 纯文本内容。
    """

    role: Role
    content: str


@dataclass
class ChatRequest:
    """一次完整的 LLM 请求。

    Provider 适配层负责把本结构转换成各家 API 的 JSON 请求体。
    """

    provider: str  # 逻辑 Provider 名，如 "anthropic"
    model: str  # 逻辑模型名，如 "keywords" / "answer"（再由 registry 映射为真实模型名）
    messages: List[ChatMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


@dataclass
class ChatUsage:
    """Provider 返回的 token 统计信息（统一格式）。"""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class ChatChoice:
    """单个候选回答（目前只用 index=0 的一条）。"""

    index: int
    message: ChatMessage
    finish_reason: Optional[str] = None


@dataclass
class ChatResult:
    """一次非流式调用的最终结果。"""

    provider: str
    model: str
    choices: List[ChatChoice]
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None

    @property
    def text(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


@dataclass
class ChatStreamChunk:
    """流式调用的单条增量；delta_text 为空表示该条只携带元数据。"""

    provider: str
    model: str
    delta_text: str = ""
    finish_reason: Optional[str] = None
    usage: Optional[ChatUsage] = None
    raw: Optional[dict] = None
