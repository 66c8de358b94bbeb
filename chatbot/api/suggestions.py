from fastapi import APIRouter, Depends

from chatbot.api.deps import get_store
from chatbot.core.errors import BadRequestError
from chatbot.services.store import ChatStore

router = APIRouter()


@router.get("/suggestions")
async def list_suggestions(documentId: str | None = None, store: ChatStore = Depends(get_store)):
    if not documentId:
        raise BadRequestError("Parameter documentId is required.", surface="suggestions")
    return [s.to_dict() for s in store.get_suggestions_by_document_id(documentId)]
