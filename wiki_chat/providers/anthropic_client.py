"""Anthropic Provider 适配器。

本模块负责：

1. 接收统一的 ChatRequest。
2. 将其转换为 Anthropic Messages API（/v1/messages）的请求格式。
3. 调用 HTTP 接口并把网络/API 异常包装为 UpstreamError 子类。
4. 将响应 JSON（或流式 SSE 事件）解析为 ChatResult / ChatStreamChunk。

流式响应中只关心以下事件：
- content_block_delta (delta.type == "text_delta"): 文本增量。
- message_delta: 结束原因与输出 token 统计。
- message_stop: 流结束。
- error: 上游在流中途报错。
"""

import json
from typing import Any, Dict, Iterable, Iterator, Optional

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
from wiki_chat.providers.registry import ANTHROPIC_CONFIG, ModelConfig, ProviderConfig


ANTHROPIC_VERSION = "2023-06-01"


class AnthropicClient:
    """Anthropic Messages API 客户端实现。"""

    name = "anthropic"

    def __init__(self, cfg=settings, provider_config: ProviderConfig = ANTHROPIC_CONFIG):
        self._settings = cfg
        self._provider = provider_config

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
            raise RateLimitError(code="RATE_LIMIT", message="Anthropic rate limit", http_status=429)
        if resp.status_code >= 400:
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError as e:
            raise ApiError(code="BAD_RESPONSE", message=f"Invalid JSON from Anthropic: {e}", http_status=502)
        return self._parse_response(data, req)

    # ---- 流式 ----

    def chat_stream(self, req: ChatRequest) -> Iterable[ChatStreamChunk]:
        model_cfg = self._model_config(req)
        payload = self._build_payload(req, model_cfg, stream=True)
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                with client.stream("POST", self._url(), json=payload, headers=self._headers()) as resp:
                    if resp.status_code == 429:
                        raise RateLimitError(code="RATE_LIMIT", message="Anthropic rate limit", http_status=429)
                    if resp.status_code >= 400:
                        resp.read()
                        raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
                    for event in self._iter_events(resp.iter_lines()):
                        etype = event.get("type")
                        if etype == "message_stop":
                            return
                        if etype == "error":
                            err = event.get("error") or {}
                            raise ApiError(
                                code=err.get("type") or "STREAM_ERROR",
                                message=err.get("message") or "Anthropic stream error",
                                http_status=502,
                            )
                        chunk = self._parse_stream_event(event, req)
                        if chunk is not None:
                            yield chunk
                    raise ApiError(
                        code="STREAM_INCOMPLETE",
                        message="Anthropic stream ended before message_stop",
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
        return f"{base.rstrip('/')}/messages"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self._settings.llm_api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    def _build_payload(self, req: ChatRequest, model_cfg: ModelConfig, stream: bool) -> dict:
        """将 ChatRequest 转成 Messages API 所需的请求 JSON。

        system 角色的消息合并到顶层 system 字段，其余按原顺序放入 messages。
        """

        system_parts = [m.content for m in req.messages if m.role == "system"]
        msgs = [{"role": m.role, "content": m.content} for m in req.messages if m.role != "system"]
        payload: Dict[str, Any] = {
            "model": getattr(self._settings, "llm_model", None) or model_cfg.provider_model,
            "max_tokens": req.max_tokens or model_cfg.max_tokens,
            "messages": msgs,
            "temperature": model_cfg.default_temperature if req.temperature is None else req.temperature,
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)
        if stream:
            payload["stream"] = True
        return payload

    def _parse_response(self, data: dict, req: ChatRequest) -> ChatResult:
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise ApiError(code="BAD_RESPONSE", message="Anthropic response has no content", http_status=502)
        text = "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")
        message = ChatMessage(role="assistant", content=text)
        return ChatResult(
            provider=self.name,
            model=req.model,
            choices=[ChatChoice(index=0, message=message, finish_reason=data.get("stop_reason"))],
            usage=self._parse_usage(data.get("usage")),
            raw=data,
        )

    @staticmethod
    def _iter_events(lines: Iterable[str]) -> Iterator[Dict[str, Any]]:
        """从 SSE 文本行中取出 data 记录并解析为 JSON；event 行和注释行跳过。"""

        for line in lines:
            if not line or not line.startswith("data:"):
                continue
            data_str = line[5:].strip()
            if not data_str:
                continue
            try:
                payload = json.loads(data_str)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict):
                yield payload

    def _parse_stream_event(self, event: Dict[str, Any], req: ChatRequest) -> Optional[ChatStreamChunk]:
        etype = event.get("type")
        if etype == "content_block_delta":
            delta = event.get("delta") or {}
            if delta.get("type") != "text_delta":
                return None
            return ChatStreamChunk(
                provider=self.name,
                model=req.model,
                delta_text=delta.get("text") or "",
                raw=event,
            )
        if etype == "message_delta":
            delta = event.get("delta") or {}
            return ChatStreamChunk(
                provider=self.name,
                model=req.model,
                finish_reason=delta.get("stop_reason"),
                usage=self._parse_usage(event.get("usage")),
                raw=event,
            )
        return None

    @staticmethod
    def _parse_usage(raw: Optional[dict]) -> Optional[ChatUsage]:
        if not raw:
            return None
        prompt = raw.get("input_tokens", 0) or 0
        completion = raw.get("output_tokens", 0) or 0
        return ChatUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion)