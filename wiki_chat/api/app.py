"""
FastAPI relay application.

Routes:
- GET  /health                health probe
- POST /api/extract-keywords  question -> search keywords (falls back to the question)
- POST /api/chat/stream       question + articles -> text/event-stream answer
- GET  /*                     optional built front-end with SPA fallback
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, StreamingResponse

from wiki_chat.api.schemas import ChatStreamRequest, HealthResponse, KeywordsRequest, KeywordsResponse
from wiki_chat.config.settings import require_server_settings, settings
from wiki_chat.domain.exceptions import BusinessError, ValidationError
from wiki_chat.infrastructure.logging.logger import logger
from wiki_chat.providers import create_provider
from wiki_chat.providers.base import ProviderClient
from wiki_chat.relay.answer import AnswerRelay
from wiki_chat.relay.keywords import KeywordExtractor
from wiki_chat.relay.sse import SSE_HEADERS, encode_event


def create_app(cfg=None, provider: Optional[ProviderClient] = None) -> FastAPI:
    """Create and configure the relay application.

    Raises ConfigError when the LLM credential or listen port is missing.
    """

    cfg = cfg or settings
    require_server_settings(cfg)
    provider = provider or create_provider(cfg=cfg)

    app = FastAPI(title="wiki-chat relay", version="0.1.0")
    app.state.settings = cfg
    app.state.keywords = KeywordExtractor(provider=provider, cfg=cfg)
    app.state.relay = AnswerRelay(provider=provider, cfg=cfg)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origin_list or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BusinessError)
    async def business_error_handler(request: Request, exc: BusinessError):
        logger.warning(
            "api.business_error",
            extra={"extra": {"path": request.url.path, "code": exc.code, "error": exc.message}},
        )
        return JSONResponse(
            status_code=exc.http_status,
            content={"success": False, "code": exc.code, "error": exc.message},
        )

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc).isoformat())

    @app.post("/api/extract-keywords", response_model=KeywordsResponse)
    def extract_keywords(payload: Optional[KeywordsRequest] = None):
        query = ((payload.query if payload else None) or "").strip()
        logger.info("api.extract_keywords", extra={"extra": {"query": query}})
        if not query:
            return JSONResponse(
                status_code=400,
                content=KeywordsResponse(success=False, keywords="", error="Query is required").model_dump(),
            )
        keywords, error = app.state.keywords.extract(query)
        if error is not None:
            return JSONResponse(
                status_code=500,
                content=KeywordsResponse(success=False, keywords=keywords, error=error).model_dump(),
            )
        return KeywordsResponse(success=True, keywords=keywords)

    @app.post("/api/chat/stream")
    def chat_stream(payload: ChatStreamRequest):
        query = (payload.query or "").strip()
        if not query:
            raise ValidationError(code="MISSING_QUERY", message="Query is required")
        articles = [a.to_article() for a in payload.articles]

        def body() -> Iterator[str]:
            for event in app.state.relay.stream_answer(query, articles):
                yield encode_event(event)

        return StreamingResponse(body(), media_type="text/event-stream", headers=SSE_HEADERS)

    if cfg.static_dir:
        _mount_frontend(app, Path(cfg.static_dir))

    logger.info(
        "api.app.created",
        extra={"extra": {"provider": provider.name, "static_dir": cfg.static_dir}},
    )
    return app


def _mount_frontend(app: FastAPI, static_dir: Path) -> None:
    """Serve a built single-page front-end; unknown paths fall back to index.html."""

    root = static_dir.resolve()
    index = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    def frontend(full_path: str):
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and root in candidate.parents:
            return FileResponse(candidate)
        if index.is_file():
            return FileResponse(index)
        return JSONResponse(status_code=404, content={"success": False, "error": "Not found"})
