# shankai/ai/client.py
from functools import lru_cache
from typing import Optional

from openai import OpenAI

from shankai.config.settings import settings


def build_client(api_key: Optional[str] = None) -> Optional[OpenAI]:
    """
    Build the OpenAI-compatible client for the configured endpoint.
    Returns None when no API key is configured.
    """
    api_key = api_key or settings.OPENROUTER_API_KEY
    if not api_key:
        return None
    return OpenAI(
        base_url=settings.LLM_BASE_URL,
        api_key=api_key,
        timeout=settings.LLM_TIMEOUT_SECONDS,
        max_retries=settings.LLM_MAX_RETRIES,
        default_headers={
            "HTTP-Referer": settings.FRONTEND_URL,
            "X-Title": settings.APP_NAME,
        },
    )


@lru_cache
def get_ai_client() -> Optional[OpenAI]:
    return build_client()
