"""Relay server entry point (``wiki-chat-server``)."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import uvicorn

from wiki_chat.api.app import create_app
from wiki_chat.config.settings import require_server_settings, settings
from wiki_chat.domain.exceptions import ConfigError
from wiki_chat.infrastructure.logging.logger import logger


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the wiki-chat LLM relay server")
    parser.add_argument("--host", help=f"Listen address (default {settings.host})")
    parser.add_argument("--port", type=int, help="Listen port (default from PORT)")
    parser.add_argument("--static-dir", help="Serve a built front-end from this directory")
    args = parser.parse_args(argv)

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.static_dir:
        overrides["static_dir"] = args.static_dir
    cfg = settings.model_copy(update=overrides)

    try:
        require_server_settings(cfg)
    except ConfigError as e:
        logger.error("server.config_missing", extra={"extra": {"missing": e.extra.get("missing")}})
        print(f"error: {e.message}", file=sys.stderr)
        return 2

    app = create_app(cfg)
    logger.info("server.start", extra={"extra": {"host": cfg.host, "port": cfg.port, "provider": cfg.llm_provider}})
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level=cfg.log_level.lower())
    return 0


if __name__ == "__main__":
    sys.exit(main())
