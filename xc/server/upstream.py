"""Upstream chat-completion calls via LiteLLM.

Opens a streaming completion with exponential-backoff retry on transient
failures and re-encodes each chunk as an SSE frame carrying the
chat-completion envelope.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import litellm

# Keep LiteLLM's feedback banners out of server logs
litellm.suppress_debug_info = True

from xc.schemas.config import ServerConfig
from xc.schemas.streaming import Choice, Delta, Envelope

logger = logging.getLogger(__name__)

_FIRST_BACKOFF = 1.0  # seconds, doubled per attempt

DONE_FRAME = "data: [DONE]\n\n"

# Transient upstream failures worth another attempt, with a log label
_TRANSIENT: tuple[tuple[type[Exception], str], ...] = (
    (litellm.RateLimitError, "rate limit"),
    (litellm.Timeout, "timeout"),
    (TimeoutError, "timeout"),
    (litellm.ServiceUnavailableError, "service unavailable"),
    (litellm.InternalServerError, "upstream server error"),
    (litellm.APIConnectionError, "connection error"),
)
_RETRYABLE = tuple(exc_type for exc_type, _ in _TRANSIENT)


class UpstreamError(RuntimeError):
    """The upstream completion could not be started."""


def _transient_label(error: Exception) -> str:
    for exc_type, label in _TRANSIENT:
        if isinstance(error, exc_type):
            return label
    return type(error).__name__


def build_completion_kwargs(
    config: ServerConfig,
    messages: list[dict[str, str]],
    api_key: str,
) -> dict[str, Any]:
    """Build the kwargs dict for litellm.acompletion."""
    kwargs: dict[str, Any] = {
        "model": config.model,
        "messages": messages,
        "timeout": float(config.timeout),
        "stream": True,
    }
    if api_key:
        kwargs["api_key"] = api_key
    if config.api_base:
        kwargs["api_base"] = config.api_base
    if config.json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    headers = {}
    if config.referer:
        headers["HTTP-Referer"] = config.referer
    if config.app_title:
        headers["X-Title"] = config.app_title
    if headers:
        kwargs["extra_headers"] = headers
    return kwargs


async def open_stream(kwargs: dict[str, Any], max_retries: int) -> Any:
    """Start a streaming completion, retrying transient failures.

    Authentication and bad-request errors fail on the first attempt.

    Raises:
        UpstreamError: If the stream could not be opened.
    """
    model = kwargs["model"]
    last_error: Exception | None = None

    for attempt in range(max_retries):
        try:
            return await litellm.acompletion(**kwargs)
        except litellm.AuthenticationError:
            raise UpstreamError(f"Authentication failed for {model}") from None
        except litellm.BadRequestError as e:
            raise UpstreamError(f"Bad request to {model}: {e}") from e
        except _RETRYABLE as e:
            last_error = e

        if attempt + 1 < max_retries:
            delay = _FIRST_BACKOFF * 2**attempt
            logger.warning(
                "Upstream %s unavailable (%s), attempt %d/%d, retrying in %.1fs",
                model, _transient_label(last_error), attempt + 1, max_retries, delay,
            )
            await asyncio.sleep(delay)

    raise UpstreamError(
        f"Streaming call to {model} failed after {max_retries} retries: {last_error}"
    ) from last_error


def encode_frame(content: str) -> str:
    """Encode one text delta as an SSE ``data:`` frame."""
    envelope = Envelope(choices=[Choice(delta=Delta(content=content))])
    return f"data: {envelope.model_dump_json(exclude_none=True)}\n\n"


async def relay_frames(response: Any) -> AsyncIterator[str]:
    """Re-encode a LiteLLM streaming response as SSE frames.

    Ends with the ``[DONE]`` sentinel. An upstream failure mid-stream is
    logged and re-raised, so the HTTP response aborts without a clean end
    and the client sees a transport error.
    """
    try:
        async for chunk in response:
            delta = ""
            if chunk.choices and chunk.choices[0].delta:
                delta = chunk.choices[0].delta.content or ""
            if delta:
                yield encode_frame(delta)
    except Exception:
        logger.exception("Upstream stream failed mid-response")
        raise
    yield DONE_FRAME
