"""Provider 与模型配置。

本模块将“逻辑模型名”与“具体厂商模型名”解耦：

- 逻辑名（logical_name）：代码里使用的统一名称，"keywords" 或 "answer"。
- provider_model：厂商实际提供的模型 ID，例如 "claude-sonnet-4-20250514"。

上层只关心逻辑名，具体用哪个底层模型由这里集中配置。"""

from dataclasses import dataclass
from typing import Dict, Mapping


KEYWORDS_MODEL = "keywords"
ANSWER_MODEL = "answer"


@dataclass
class ModelConfig:
    """单个逻辑模型的配置。"""

    logical_name: str
    provider_model: str
    max_tokens: int
    default_temperature: float


@dataclass
class ProviderConfig:
    """某个 Provider 的整体配置。"""

    name: str
    base_url: str
    models: Dict[str, ModelConfig]


def _models(provider_model: str) -> Dict[str, ModelConfig]:
    return {
        KEYWORDS_MODEL: ModelConfig(
            logical_name=KEYWORDS_MODEL,
            provider_model=provider_model,
            max_tokens=100,
            default_temperature=0.0,
        ),
        ANSWER_MODEL: ModelConfig(
            logical_name=ANSWER_MODEL,
            provider_model=provider_model,
            max_tokens=1500,
            default_temperature=0.7,
        ),
    }


ANTHROPIC_CONFIG = ProviderConfig(
    name="anthropic",
    base_url="https://api.anthropic.com/v1",
    models=_models("claude-sonnet-4-20250514"),
)

OPENAI_CONFIG = ProviderConfig(
    name="openai",
    base_url="https://api.openai.com/v1",
    models=_models("gpt-4.1-mini"),
)

KIMI_CONFIG = ProviderConfig(
    name="kimi",
    base_url="https://api.moonshot.cn/v1",
    models=_models("kimi-k2-turbo-preview"),
)

GLM_CONFIG = ProviderConfig(
    name="glm",
    base_url="https://open.bigmodel.cn/api/paas/v4",
    models=_models("glm-4.6"),
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "anthropic": ANTHROPIC_CONFIG,
    "openai": OPENAI_CONFIG,
    "kimi": KIMI_CONFIG,
    "glm": GLM_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = name.lower()
    for k, cfg in PROVIDER_REGISTRY.items():
        if k.lower() == key:
            return cfg
    raise KeyError(f"Unknown provider: {name!r}")
