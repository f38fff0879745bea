# shankai/ai/service.py
from typing import Any, Dict, Iterator, List, Optional
import logging

import httpx
from openai import OpenAIError

from shankai.config.settings import settings
from shankai.utils.errors import UpstreamNotConfigured

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The LLM endpoint failed or returned something unusable."""


def build_messages(
    system_prompt: Optional[str],
    history: List[Dict[str, str]],
    user_message: str,
) -> List[Dict[str, str]]:
    """
    Optional system turn, then prior turns oldest-first, then the new
    user turn.
    """
    messages: List[Dict[str, str]] = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.extend({"role": m["role"], "content": m["content"]} for m in history)
    messages.append({"role": "user", "content": user_message})
    return messages


def _request_params(messages: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "model": settings.LLM_MODEL,
        "messages": messages,
        "max_tokens": settings.LLM_MAX_TOKENS,
        "temperature": settings.LLM_TEMPERATURE,
    }


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(getattr(error, "message", None) or error)


def ask_with_messages(client, messages: List[Dict[str, Any]]) -> str:
    """
    Buffered completion. Raises UpstreamNotConfigured without a client and
    UpstreamError on any transport or API failure.
    """
    if client is None:
        raise UpstreamNotConfigured()

    logger.debug(f"[AI Service] buffered call: model={settings.LLM_MODEL}, messages={len(messages)}")
    try:
        completion = client.chat.completions.create(**_request_params(messages))
    except (OpenAIError, httpx.HTTPError) as e:
        raise UpstreamError(str(e) or e.__class__.__name__) from e

    if not completion.choices:
        raise UpstreamError("No completion choices returned from LLM")
    content = completion.choices[0].message.content
    if content is None:
        raise UpstreamError("Empty completion returned from LLM")
    return content


def ask_with_messages_stream(client, messages: List[Dict[str, Any]]) -> Iterator[str]:
    """
    Streaming completion as a lazy sequence of text fragments, in arrival
    order.

    The sequence only ends normally once the endpoint signals a finish
    reason. A finish reason of "error", or a chunk carrying an error,
    raises UpstreamError instead. A stream that stops short raises
    UpstreamError after the fragments already yielded. Closing the generator
    early closes the upstream connection.
    """
    if client is None:
        raise UpstreamNotConfigured()

    logger.debug(f"[AI Service] streaming call: model={settings.LLM_MODEL}, messages={len(messages)}")
    try:
        stream = client.chat.completions.create(**_request_params(messages), stream=True)
    except (OpenAIError, httpx.HTTPError) as e:
        raise UpstreamError(str(e) or e.__class__.__name__) from e

    finished = False
    chunk_count = 0
    try:
        for chunk in stream:
            error = getattr(chunk, "error", None)
            if error:
                raise UpstreamError(_error_message(error))
            if not chunk.choices:
                continue
            choice = chunk.choices[0]
            delta = getattr(choice, "delta", None)
            content = getattr(delta, "content", None) if delta is not None else None
            if content:
                chunk_count += 1
                yield content
            finish_reason = getattr(choice, "finish_reason", None)
            if finish_reason == "error":
                # OpenRouter reports a mid-stream provider failure this way
                raise UpstreamError("AI stream failed before completion")
            if finish_reason:
                finished = True
    except (OpenAIError, httpx.HTTPError) as e:
        raise UpstreamError(str(e) or e.__class__.__name__) from e
    finally:
        stream.close()

    logger.debug(f"[AI Service] stream ended: fragments={chunk_count}, finished={finished}")
    if not finished:
        raise UpstreamError("AI stream ended before completion")
