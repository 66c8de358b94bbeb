"""Shared test fixtures for backend tests."""

import copy
import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from chatbot.core.config import settings
from chatbot.core.database import create_db_engine
from chatbot.services.llm.base import BaseLLMProvider, FinishChunk, TextDelta
from chatbot.services.prompts import TITLE_PROMPT
from chatbot.services.store import ChatStore

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = create_db_engine("sqlite://", poolclass=StaticPool)


class FakeProvider(BaseLLMProvider):
    """Scripted provider: each stream() call plays the next step, the last one repeats."""

    def __init__(self, steps=None, title="Generated title", text="Generated content"):
        self.steps = list(steps or [[
            TextDelta("text-1", "Hello"),
            TextDelta("text-1", " from"),
            TextDelta("text-1", " model"),
        ]])
        self.title = title
        self.text = text
        self.fail: Exception | None = None
        self.calls: list[dict] = []
        self.prompts: list[dict] = []

    async def stream(self, model, system, messages, tools=None, thinking_budget=None):
        self.calls.append({
            "model": model,
            "system": system,
            "messages": copy.deepcopy(messages),
            "tools": tools,
            "thinking_budget": thinking_budget,
        })
        if self.fail:
            raise self.fail
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        for chunk in step:
            yield chunk
        yield FinishChunk()

    async def generate_text(self, model, system, prompt):
        self.prompts.append({"model": model, "system": system, "prompt": prompt})
        return self.title if system == TITLE_PROMPT else self.text


def read_events(response) -> list[dict]:
    """Parse a server-sent event body into its JSON chunks."""
    events = []
    for line in response.text.splitlines():
        if not line.startswith("data: "):
            continue
        payload = line.removeprefix("data: ")
        if payload == "[DONE]":
            break
        events.append(json.loads(payload))
    return events


def user_message(text: str, message_id: str = "msg-user-1") -> dict:
    return {"id": message_id, "role": "user", "parts": [{"type": "text", "text": text}]}


@pytest.fixture(autouse=True)
def setup_test_db():
    """Create all tables before each test, drop after."""
    import chatbot.models  # noqa: F401 - register models
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def store():
    s = ChatStore(test_engine)
    s.ensure_user(settings.default_user_id, settings.default_user_email)
    return s


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def client(provider, tmp_path):
    """FastAPI TestClient with the database, provider and uploads directory patched."""
    with (
        patch("chatbot.main.create_db_engine", return_value=test_engine),
        patch("chatbot.main.get_llm_provider", return_value=provider),
        patch.object(settings, "uploads_dir", tmp_path / "uploads"),
    ):
        from chatbot.main import app

        with TestClient(app) as c:
            yield c
