"""User, chat, message, vote and stream marker models for chat history persistence."""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(ts: datetime) -> datetime:
    """Return ``ts`` as an aware UTC datetime. Naive values are taken to be UTC already."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def isoformat_utc(ts: datetime) -> str:
    return as_utc(ts).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


class User(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(unique=True, index=True)
    password: Optional[str] = None  # bcrypt hash, absent for placeholder users


class Chat(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    title: str
    user_id: str = Field(foreign_key="user.id", index=True)
    visibility: str = Field(default="private")  # "public" | "private"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": isoformat_utc(self.created_at),
            "title": self.title,
            "userId": self.user_id,
            "visibility": self.visibility,
        }


class Message(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    chat_id: str = Field(foreign_key="chat.id", index=True)
    role: str  # "user" | "assistant" | "system"
    parts: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    attachments: list[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, index=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chatId": self.chat_id,
            "role": self.role,
            "parts": self.parts,
            "attachments": self.attachments,
            "createdAt": isoformat_utc(self.created_at),
        }

    def to_ui_message(self) -> dict[str, Any]:
        """The shape the model context and the browser work with."""
        return {
            "id": self.id,
            "role": self.role,
            "parts": self.parts,
            "metadata": {"createdAt": isoformat_utc(self.created_at)},
        }


class Vote(SQLModel, table=True):
    chat_id: str = Field(foreign_key="chat.id", primary_key=True)
    message_id: str = Field(foreign_key="message.id", primary_key=True)
    is_upvoted: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "chatId": self.chat_id,
            "messageId": self.message_id,
            "isUpvoted": self.is_upvoted,
        }


class Stream(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    chat_id: str = Field(foreign_key="chat.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
