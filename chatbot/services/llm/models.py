"""Chat model catalogue."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChatModel:
    id: str
    name: str
    description: str
    provider: str = "google"


CHAT_MODELS = [
    ChatModel("gemini-3-flash-preview", "Gemini 3 Flash", "Pro-level intelligence at flash speed"),
    ChatModel("gemini-3-pro-preview", "Gemini 3 Pro", "Most capable Google model for complex tasks"),
    ChatModel("gemini-2.5-flash", "Gemini 2.5 Flash", "Fast and capable for most tasks"),
    ChatModel("gemini-2.5-flash-lite", "Gemini 2.5 Flash Lite", "Ultra fast and affordable"),
    ChatModel("gemini-2.5-pro", "Gemini 2.5 Pro", "Advanced reasoning and coding"),
]


def get_chat_model(model_id: str) -> ChatModel | None:
    base_id = resolve_model_id(model_id)
    return next((m for m in CHAT_MODELS if m.id == base_id), None)


def is_reasoning_model(model_id: str) -> bool:
    """Reasoning variants run without tools and with a thinking budget instead."""
    return "reasoning" in model_id or "thinking" in model_id


def resolve_model_id(model_id: str) -> str:
    """Map a selected id onto a provider model id.

    Reasoning variants are exposed as ``<model>-reasoning`` / ``<model>-thinking``
    and run on the base model.
    """
    for suffix in ("-reasoning", "-thinking"):
        if model_id.endswith(suffix):
            return model_id.removesuffix(suffix)
    return model_id
