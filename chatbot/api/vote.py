"""REST API for message votes."""

from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from chatbot.api.deps import get_store
from chatbot.core.errors import BadRequestError, NotFoundError
from chatbot.services.store import ChatStore

router = APIRouter()


class VoteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chat_id: str = Field(alias="chatId")
    message_id: str = Field(alias="messageId")
    type: Literal["up", "down"]


@router.get("/vote")
async def list_votes(chatId: str | None = None, store: ChatStore = Depends(get_store)):
    if not chatId:
        raise BadRequestError("Parameter chatId is required.", surface="vote")
    if not store.get_chat_by_id(chatId):
        raise NotFoundError("Chat not found", surface="vote")
    return [v.to_dict() for v in store.get_votes_by_chat_id(chatId)]


@router.patch("/vote")
async def vote_message(body: VoteRequest, store: ChatStore = Depends(get_store)):
    if not store.get_chat_by_id(body.chat_id):
        raise NotFoundError("Chat not found", surface="vote")

    store.vote_message(body.chat_id, body.message_id, body.type)
    return {"message": "Message voted"}
