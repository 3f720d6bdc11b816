"""配置管理模块。

支持从环境变量、.env 以及 config.yaml 加载配置。
中继服务端必需的配置（LLM 密钥、监听端口）在启动时由
require_server_settings 统一校验，缺失时直接失败。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wiki_chat.domain.exceptions import ConfigError


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("WIKI_CHAT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except (OSError, yaml.YAMLError) as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class WikiChatSettings(BaseSettings):
    """配置设置（使用 Pydantic）。"""

    # ---- LLM Provider ----
    llm_provider: str = Field(
        default="anthropic",
        description="上游 LLM Provider 名称：anthropic、openai、kimi、glm",
    )
    llm_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("llm_api_key", "anthropic_api_key"),
        description="上游 LLM API 密钥（仅服务端持有）",
    )
    llm_base_url: Optional[str] = Field(default=None, description="覆盖 registry 中的 base_url")
    llm_model: Optional[str] = Field(default=None, description="覆盖 registry 中的厂商模型 ID")
    keywords_max_tokens: int = Field(default=100, ge=1, description="关键词提取的输出 token 上限")
    answer_max_tokens: int = Field(default=1500, ge=1, description="回答流的输出 token 上限")
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 中继服务 ----
    host: str = Field(default="0.0.0.0", description="监听地址")
    port: Optional[int] = Field(default=None, ge=1, le=65535, description="监听端口（必填）")
    cors_origins: str = Field(default="*", description="逗号分隔的 CORS 来源")
    static_dir: Optional[str] = Field(default=None, description="前端构建产物目录（可选）")

    # ---- 客户端 ----
    relay_url: str = Field(default="http://localhost:3001", description="客户端访问的中继地址")
    wikipedia_base_url: str = Field(default="https://en.wikipedia.org", description="Wikipedia 站点")
    wikipedia_search_limit: int = Field(default=3, ge=1, le=20, description="每次检索的文章上限")
    user_agent: str = Field(
        default="wiki-chat/0.1 (https://github.com/wiki-chat/wiki-chat)",
        description="访问 Wikipedia 时使用的 User-Agent",
    )

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_level: str = Field(default="INFO", description="日志级别")
    log_redact_content: bool = Field(default=False, description="是否截断日志内容")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("llm_api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        if v and len(v) < 10:
            raise ValueError("API key seems too short")
        return v

    @field_validator("llm_provider", "log_level")
    @classmethod
    def normalize_name(cls, v: str) -> str:
        return v.strip()

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


def require_server_settings(cfg: Any) -> None:
    """校验中继服务端的必需配置，缺失时抛出 ConfigError。"""

    missing = []
    if not getattr(cfg, "llm_api_key", None):
        missing.append("LLM_API_KEY (or ANTHROPIC_API_KEY)")
    if not getattr(cfg, "port", None):
        missing.append("PORT")
    if missing:
        raise ConfigError(
            code="MISSING_CONFIG",
            message="Missing required configuration: " + ", ".join(missing),
            missing=missing,
        )


settings = WikiChatSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = WikiChatSettings
