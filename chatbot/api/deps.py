"""Request dependencies for the process-wide services opened in the app lifespan."""

from fastapi import Request

from chatbot.services.llm.base import BaseLLMProvider
from chatbot.services.store import ChatStore


def get_store(request: Request) -> ChatStore:
    return request.app.state.store


def get_provider(request: Request) -> BaseLLMProvider:
    return request.app.state.provider
