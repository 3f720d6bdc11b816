"""OpenAI 兼容 Provider 适配器（OpenAI / Kimi / GLM）。

这几家接口风格一致，均使用 chat/completions 端点：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>

本实现只依赖公共字段：model/messages/temperature/max_tokens/stream。
"""

import json
from typing import Any, Dict, Iterable, Optional

import httpx

from wiki_chat.config.settings import settings
from wiki_chat.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from wiki_chat.domain.models import (
    ChatChoice,
    ChatMessage,
    ChatRequest,
    ChatResult,
    ChatStreamChunk,
    ChatUsage,
)
from wiki_chat.providers.registry import OPENAI_CONFIG, ModelConfig, ProviderConfig


class OpenAICompatClient:
    """chat/completions 风格的 Provider 客户端实现。"""

    def __init__(self, cfg=settings, provider_config: ProviderConfig = OPENAI_CONFIG):
        self._settings = cfg
        self._provider = provider_config
        self.name = provider_config.name

    # ---- 非流式 ----

    def chat(self, req: ChatRequest) -> ChatResult:
        model_cfg = self._model_config(req)
        payload = self._build_payload(req, model_cfg, stream=False)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(self._url(), json=payload, headers=self._headers())
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(code="BAD_RESPONSE", message=f"Invalid JSON from {self.name}: {e}", http_status=502)
        return self._parse_response(data, req)

    # ---- 流式 ----

    def chat_stream(self, req: ChatRequest) -> Iterable[ChatStreamChunk]:
        model_cfg = self._model_config(req)
        payload = self._build_payload(req, model_cfg, stream=True)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream("POST", self._url(), json=payload, headers=self._headers()) as resp:
                    if resp.status_code == 429:
                        raise RateLimitError(code="RATE_LIMIT", message=f"{self.name} rate limit", http_status=429)
                    if resp.status_code >= 400:
                        resp.read()
                        raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
                    for line in resp.iter_lines():
                        if not line:
                            continue
                        data_str = line
                        if data_str.startswith("data:"):
                            data_str = data_str[5:].strip()
                        else:
                            data_str = data_str.strip()
                        if not data_str:
                            continue
                        if data_str == "[DONE]":
                            return
                        try:
                            payload_chunk = json.loads(data_str)
                        except json.JSONDecodeError:
                            continue
                        if isinstance(payload_chunk, dict) and payload_chunk.get("error"):
                            err = payload_chunk["error"]
                            message = err.get("message") if isinstance(err, dict) else str(err)
                            raise ApiError(code="STREAM_ERROR", message=message or "stream error", http_status=502)
                        yield self._parse_stream_chunk(payload_chunk, req)
                    raise ApiError(
                        code="STREAM_INCOMPLETE",
                        message=f"{self.name} stream ended before [DONE]",
                        http_status=502,
                    )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), provider=self.name)

    # ---- 辅助方法 ----

    def _model_config(self, req: ChatRequest) -> ModelConfig:
        if not getattr(self._settings, "llm_api_key", None):
            raise ValidationError(code="MISSING_API_KEY", message="LLM_API_KEY not set")
        return self._provider.models[req.model]

    def _url(self) -> str:
        base = getattr(self._settings, "llm_base_url", None) or self._provider.base_url
        return f"{base.rstrip('/')}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.llm_api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(self, req: ChatRequest, model_cfg: ModelConfig, stream: bool) -> dict:
        return {
            "model": getattr(self._settings, "llm_model", None) or model_cfg.provider_model,
            "messages": [{"role": m.role, "content": m.content} for m in req.messages],
            "temperature": model_cfg.default_temperature if req.temperature is None else req.temperature,
            "max_tokens": req.max_tokens or model_cfg.max_tokens,
            "stream": stream,
        }

    def _parse_response(self, data: dict, req: ChatRequest) -> ChatResult:
        choices: list[ChatChoice] = []
        for i, ch in enumerate(data.get("choices", [])):
            msg = ch.get("message") or {}
            cm = ChatMessage(role=msg.get("role") or "assistant", content=msg.get("content") or "")
            choices.append(ChatChoice(index=i, message=cm, finish_reason=ch.get("finish_reason")))
        return ChatResult(
            provider=self.name,
            model=req.model,
            choices=choices,
            usage=self._parse_usage(data.get("usage")),
            raw=data,
        )

    def _parse_stream_chunk(self, data: Dict[str, Any], req: ChatRequest) -> ChatStreamChunk:
        text = ""
        finish_reason = None
        for ch in data.get("choices", []):
            if ch.get("index", 0) != 0:
                continue
            delta = ch.get("delta") or {}
            text = delta.get("content") or ""
            finish_reason = ch.get("finish_reason")
        return ChatStreamChunk(
            provider=self.name,
            model=req.model,
            delta_text=text,
            finish_reason=finish_reason,
            usage=self._parse_usage(data.get("usage")),
            raw=data,
        )

    @staticmethod
    def _parse_usage(raw: Optional[dict]) -> Optional[ChatUsage]:
        if not raw:
            return None
        return ChatUsage(
            prompt_tokens=raw.get("prompt_tokens", 0),
            completion_tokens=raw.get("completion_tokens", 0),
            total_tokens=raw.get("total_tokens", 0),
        )
