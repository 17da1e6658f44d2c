"""FastAPI explain proxy.

Accepts ``POST /api/explain`` with ``{code, language}``, opens a
streaming chat completion upstream, and relays it to the caller as an
SSE stream of chat-completion envelopes.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse

from xc import __version__
from xc.keys import get_api_key
from xc.prompts import build_messages
from xc.schemas.config import ServerConfig
from xc.schemas.explanation import ErrorResponse
from xc.server.upstream import (
    UpstreamError,
    build_completion_kwargs,
    open_stream,
    relay_frames,
)

logger = logging.getLogger(__name__)


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=status_code)


def _validate_body(body: Any) -> tuple[str, str] | JSONResponse:
    """Check the request body, returning (code, language) or an error response."""
    if not isinstance(body, dict):
        return _error("code is required", 400)
    code = body.get("code")
    if not code or not isinstance(code, str):
        return _error("code is required", 400)
    language = body.get("language")
    if not language or not isinstance(language, str):
        return _error("language is required", 400)
    return code, language


def create_app(config: ServerConfig | None = None) -> FastAPI:
    """Create and configure the explain proxy application."""
    config = config or ServerConfig()

    app = FastAPI(
        title="XC Explain API",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.post("/api/explain", response_model=None)
    async def explain(request: Request) -> StreamingResponse | JSONResponse:
        """Stream an explanation for the submitted code."""
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _error("invalid JSON body", 400)

        validated = _validate_body(body)
        if isinstance(validated, JSONResponse):
            return validated
        code, language = validated

        kwargs = build_completion_kwargs(
            config,
            build_messages(code, language),
            get_api_key(config.api_key_env),
        )
        try:
            response = await open_stream(kwargs, config.max_retries)
        except UpstreamError as e:
            logger.error("Explain request failed: %s", e)
            return _error("Failed to get explanation", 500)

        logger.info("Streaming %s explanation (%d chars of code)", language, len(code))
        return StreamingResponse(
            relay_frames(response),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )

    return app
