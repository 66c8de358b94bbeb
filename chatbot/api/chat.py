"""Chat routes - reading chats, streaming new turns, and pruning history."""

import json
import logging
from typing import Any, AsyncIterator, Literal

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from chatbot.api.deps import get_provider, get_store
from chatbot.core.config import settings
from chatbot.core.errors import BadRequestError, NotFoundError
from chatbot.core.principal import Principal, get_principal
from chatbot.services.chat_turn import ChatTurn
from chatbot.services.llm.base import BaseLLMProvider, Chunk
from chatbot.services.llm.models import get_chat_model
from chatbot.services.store import ChatStore

router = APIRouter()
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    message: dict[str, Any] | None = None
    messages: list[dict[str, Any]] | None = None
    selected_chat_model: str = Field(default_factory=lambda: settings.default_chat_model, alias="selectedChatModel")
    selected_visibility_type: Literal["public", "private"] = Field(alias="selectedVisibilityType")


class VisibilityUpdate(BaseModel):
    visibility: Literal["public", "private"]


async def _sse(chunks: AsyncIterator[Chunk]) -> AsyncIterator[str]:
    async for chunk in chunks:
        yield f"data: {json.dumps(chunk.to_dict())}\n\n"
    yield "data: [DONE]\n\n"


@router.get("/chat/{chat_id}")
async def get_chat(chat_id: str, store: ChatStore = Depends(get_store)):
    chat = store.get_chat_by_id(chat_id)
    if not chat:
        logger.debug(f"Chat {chat_id} not found")
        raise NotFoundError("Chat not found", surface="chat")
    return chat.to_dict()


@router.get("/chat/{chat_id}/messages")
async def get_chat_messages(chat_id: str, store: ChatStore = Depends(get_store)):
    return [m.to_dict() for m in store.get_messages_by_chat_id(chat_id)]


@router.post("/chat")
async def post_chat(
    body: ChatRequest,
    store: ChatStore = Depends(get_store),
    provider: BaseLLMProvider = Depends(get_provider),
    principal: Principal = Depends(get_principal),
):
    if not get_chat_model(body.selected_chat_model):
        raise BadRequestError(f"Unknown chat model: {body.selected_chat_model}", surface="chat")

    turn = ChatTurn(
        store=store,
        provider=provider,
        principal=principal,
        chat_id=body.id,
        selected_chat_model=body.selected_chat_model,
        visibility=body.selected_visibility_type,
        message=body.message,
        messages=body.messages,
    )
    await turn.prepare()

    return StreamingResponse(
        _sse(turn.stream()),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "x-vercel-ai-ui-message-stream": "v1"},
    )


@router.delete("/chat")
async def delete_chat(id: str | None = None, store: ChatStore = Depends(get_store)):
    if not id:
        raise BadRequestError("Chat ID is required", surface="chat")
    chat = store.delete_chat_by_id(id)
    logger.debug(f"Deleted chat {id}")
    return chat.to_dict() if chat else None


@router.patch("/chat/{chat_id}/visibility")
async def update_chat_visibility(chat_id: str, body: VisibilityUpdate, store: ChatStore = Depends(get_store)):
    store.update_chat_visibility_by_id(chat_id, body.visibility)
    return {"success": True}


@router.delete("/messages/{message_id}/trailing")
async def delete_trailing_messages(message_id: str, store: ChatStore = Depends(get_store)):
    """Drop the message and everything after it in its chat, used to regenerate a reply."""
    found = store.get_message_by_id(message_id)
    if not found:
        raise NotFoundError("Message not found", surface="chat")
    message = found[0]

    store.delete_messages_by_chat_id_after_timestamp(message.chat_id, message.created_at)
    return {"success": True}
