"""Thin OpenAI-compatible chat client.

Wraps the openai Python SDK with a configurable base_url so the advisory and
prefill adapters work against any OpenAI-compatible endpoint. Some reasoning
models return their answer in `reasoning_content` with empty `content`; both
are passed back to the caller.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from json_repair import repair_json
from openai import OpenAI, OpenAIError

from car_cost_calculator.config import Settings, get_settings
from car_cost_calculator.errors import AdvisoryUnavailable

logger = logging.getLogger(__name__)

# Client cache keyed by (base_url, api_key) to reuse HTTP connections
_clients: dict[tuple[str, str], OpenAI] = {}


@dataclass
class ChatReply:
    content: str
    reasoning_content: str | None = None


def get_client(settings: Settings) -> OpenAI:
    """Return a cached OpenAI client for the configured endpoint."""
    if not settings.LLM_API_KEY:
        raise AdvisoryUnavailable("LLM_API_KEY not configured")
    cache_key = (settings.LLM_BASE_URL, settings.LLM_API_KEY)
    if cache_key not in _clients:
        _clients[cache_key] = OpenAI(
            base_url=settings.LLM_BASE_URL,
            api_key=settings.LLM_API_KEY,
            timeout=settings.LLM_TIMEOUT_SECONDS,
        )
    return _clients[cache_key]


def clear_client_cache() -> None:
    _clients.clear()


def complete_chat(
    messages: list[dict[str, str]],
    settings: Settings | None = None,
    client: OpenAI | None = None,
    **kwargs: Any,
) -> ChatReply:
    """Get a single non-streaming completion."""
    settings = settings or get_settings()
    client = client or get_client(settings)

    try:
        response = client.chat.completions.create(
            model=settings.LLM_MODEL,
            messages=messages,
            **kwargs,
        )
    except OpenAIError as e:
        logger.error("Chat completion failed: %s", e)
        raise AdvisoryUnavailable(f"LLM request failed: {e}") from e

    if not response.choices:
        raise AdvisoryUnavailable("LLM returned no choices")

    message = response.choices[0].message
    content = message.content or ""
    reasoning = getattr(message, "reasoning_content", None)
    logger.debug(
        "Chat completion received: content=%d chars, reasoning=%d chars",
        len(content),
        len(reasoning or ""),
    )
    return ChatReply(content=content, reasoning_content=reasoning or None)


_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)```")
_FENCED_ANY = re.compile(r"```\s*([\s\S]*?)```")


def parse_json_reply(content: str) -> dict[str, Any] | None:
    """
    Extract a JSON object from a model reply.

    Takes the first ```json fenced block, else any fenced block, else the whole
    text. Strict json.loads first, then json_repair for near-miss output
    (trailing commas, truncated braces). Returns None unless the result is an
    object.
    """
    match = _FENCED_JSON.search(content) or _FENCED_ANY.search(content)
    text = (match.group(1) if match else content).strip()
    if not text:
        return None

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        try:
            parsed = json.loads(repair_json(text))
        except (json.JSONDecodeError, ValueError):
            logger.warning("Reply is not valid JSON, even after repair")
            return None
        logger.info("Reply needed JSON repair")

    return parsed if isinstance(parsed, dict) else None
