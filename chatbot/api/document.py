"""REST API for versioned documents."""

from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chatbot.api.deps import get_store
from chatbot.core.errors import BadRequestError, NotFoundError
from chatbot.core.principal import Principal, get_principal
from chatbot.services.store import ChatStore

router = APIRouter()


class DocumentSave(BaseModel):
    content: str
    title: str
    kind: Literal["text", "code", "sheet"] = "text"


@router.get("/document")
async def get_document_versions(id: str | None = None, store: ChatStore = Depends(get_store)):
    if not id:
        raise BadRequestError("Parameter id is missing", surface="document")

    documents = store.get_documents_by_id(id)
    if not documents:
        raise NotFoundError("Document not found", surface="document")
    return [d.to_dict() for d in documents]


@router.post("/document")
async def save_document(
    body: DocumentSave,
    id: str | None = None,
    store: ChatStore = Depends(get_store),
    principal: Principal = Depends(get_principal),
):
    if not id:
        raise BadRequestError("Parameter id is required.", surface="document")

    document = store.save_document(
        id=id,
        title=body.title,
        kind=body.kind,
        content=body.content,
        user_id=principal.id,
    )
    return [document.to_dict()]


@router.delete("/document")
async def delete_document_versions(
    id: str | None = None,
    timestamp: str | None = None,
    store: ChatStore = Depends(get_store),
):
    if not id:
        raise BadRequestError("Parameter id is required.", surface="document")
    if not timestamp:
        raise BadRequestError("Parameter timestamp is required.", surface="document")

    try:
        after = datetime.fromisoformat(timestamp)
    except ValueError:
        raise BadRequestError(f"Invalid timestamp: {timestamp}", surface="document")

    deleted = store.delete_documents_by_id_after_timestamp(id, after)
    return [d.to_dict() for d in deleted]
