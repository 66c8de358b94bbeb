"""Versioned documents and the suggestions attached to a document version."""

from datetime import datetime
from typing import Any, Optional

from sqlmodel import Field, SQLModel

from chatbot.models.chat import isoformat_utc, new_id, utcnow


class Document(SQLModel, table=True):
    # Each save is a new row; the current version is the one with max created_at.
    id: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, primary_key=True)
    title: str
    content: Optional[str] = None
    kind: str = Field(default="text")  # "text" | "code" | "sheet"
    user_id: str = Field(foreign_key="user.id")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": isoformat_utc(self.created_at),
            "title": self.title,
            "content": self.content,
            "kind": self.kind,
            "userId": self.user_id,
        }


class Suggestion(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    document_id: str = Field(index=True)
    document_created_at: datetime
    original_text: str
    suggested_text: str
    description: Optional[str] = None
    is_resolved: bool = Field(default=False)
    user_id: str = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "documentId": self.document_id,
            "documentCreatedAt": isoformat_utc(self.document_created_at),
            "originalText": self.original_text,
            "suggestedText": self.suggested_text,
            "description": self.description,
            "isResolved": self.is_resolved,
            "userId": self.user_id,
            "createdAt": isoformat_utc(self.created_at),
        }
