"""Chat model provider selection."""

import logging

from chatbot.core.config import settings
from chatbot.services.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)

PROVIDERS = ("gemini",)


def get_llm_provider(name: str | None = None) -> BaseLLMProvider:
    """Build the provider named by ``name``, or by ``settings.llm_provider``.

    A missing API key is only warned about; the first model call will fail
    with an upstream error instead of the app refusing to start.
    """
    name = (name or settings.llm_provider).lower()
    if name not in PROVIDERS:
        raise ValueError(f"Unknown LLM provider: {name} (expected one of {', '.join(PROVIDERS)})")

    if not settings.gemini_api_key:
        logger.warning("CHATBOT_GEMINI_API_KEY is not set; chat requests will fail")

    from chatbot.services.llm.gemini import GeminiProvider
    return GeminiProvider(api_key=settings.gemini_api_key)
