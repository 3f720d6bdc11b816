"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base)。
- 维护 Provider 与模型配置 (registry)。
- 提供各厂商的具体实现 (anthropic_client、openai_compat_client)。
"""

from typing import Optional

from wiki_chat.config.settings import settings
from wiki_chat.providers.base import ProviderClient
from wiki_chat.providers.anthropic_client import AnthropicClient
from wiki_chat.providers.openai_compat_client import OpenAICompatClient
from wiki_chat.providers.registry import get_provider_config


def create_provider(name: Optional[str] = None, cfg=None) -> ProviderClient:
    """根据名称创建 Provider 实例，默认取配置中的 llm_provider。"""

    cfg = cfg or settings
    provider_name = (name or getattr(cfg, "llm_provider", "anthropic")).lower()
    provider_config = get_provider_config(provider_name)
    if provider_name == "anthropic":
        return AnthropicClient(cfg, provider_config)
    return OpenAICompatClient(cfg, provider_config)

