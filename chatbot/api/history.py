"""REST API for the chat history sidebar."""

from fastapi import APIRouter, Depends

from chatbot.api.deps import get_store
from chatbot.core.errors import BadRequestError
from chatbot.core.principal import Principal, get_principal
from chatbot.services.store import ChatStore

router = APIRouter()

MAX_PAGE_SIZE = 100


@router.get("/history")
async def list_history(
    limit: int = 10,
    starting_after: str | None = None,
    ending_before: str | None = None,
    store: ChatStore = Depends(get_store),
    principal: Principal = Depends(get_principal),
):
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise BadRequestError(f"limit must be between 1 and {MAX_PAGE_SIZE}.", surface="history")
    if starting_after and ending_before:
        raise BadRequestError("Only one of starting_after or ending_before can be provided.", surface="history")

    page = store.get_chats_by_user_id(
        principal.id,
        limit=limit,
        starting_after=starting_after,
        ending_before=ending_before,
    )
    return page.to_dict()


@router.delete("/history")
async def delete_history(
    store: ChatStore = Depends(get_store),
    principal: Principal = Depends(get_principal),
):
    return {"deletedCount": store.delete_all_chats_by_user_id(principal.id)}
