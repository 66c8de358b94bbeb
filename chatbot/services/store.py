"""Persistence layer - typed CRUD over the chat database.

A ChatStore is built once per process around an engine and handed to the
route handlers. Every operation opens its own session; any storage failure
is logged and re-raised as a DatabaseError with a fixed message.
"""

import functools
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Literal

from sqlalchemy import delete, func, text, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from chatbot.core.errors import DatabaseError, NotFoundError
from chatbot.core.security import hash_password
from chatbot.models import Chat, Document, Message, Stream, Suggestion, User, Vote
from chatbot.models.chat import as_utc, utcnow

logger = logging.getLogger(__name__)


def _db_operation(message: str):
    """Translate SQLAlchemy failures raised by the wrapped operation into DatabaseError."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SQLAlchemyError as e:
                logger.warning(f"{message}: {e}")
                raise DatabaseError(message) from None

        return wrapper

    return decorator


@dataclass
class ChatPage:
    chats: list[Chat]
    has_more: bool

    def to_dict(self) -> dict[str, Any]:
        return {"chats": [c.to_dict() for c in self.chats], "hasMore": self.has_more}


class ChatStore:
    def __init__(self, engine: Engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine, expire_on_commit=False)

    def close(self) -> None:
        self.engine.dispose()

    # --- Users ---

    @_db_operation("Failed to get user by email")
    def get_user(self, email: str) -> list[User]:
        with self._session() as session:
            return list(session.exec(select(User).where(User.email == email)).all())

    @_db_operation("Failed to create user")
    def create_user(self, email: str, password: str) -> User:
        with self._session() as session:
            user = User(email=email, password=hash_password(password))
            session.add(user)
            session.commit()
            return user

    @_db_operation("Failed to create guest user")
    def create_guest_user(self) -> User:
        with self._session() as session:
            user = User(
                email=f"guest-{int(time.time() * 1000)}",
                password=hash_password(str(uuid.uuid4())),
            )
            session.add(user)
            session.commit()
            return user

    @_db_operation("Failed to ensure user")
    def ensure_user(self, user_id: str, email: str) -> User:
        with self._session() as session:
            session.exec(
                sqlite_insert(User)
                .values(id=user_id, email=email)
                .on_conflict_do_nothing(index_elements=["id"])
            )
            session.commit()
            return session.get(User, user_id)

    # --- Chats ---

    @_db_operation("Failed to save chat")
    def save_chat(
        self,
        id: str,
        user_id: str,
        title: str,
        visibility: str,
        created_at: datetime | None = None,
    ) -> Chat:
        with self._session() as session:
            chat = Chat(
                id=id,
                user_id=user_id,
                title=title,
                visibility=visibility,
                created_at=as_utc(created_at) if created_at else utcnow(),
            )
            session.add(chat)
            session.commit()
            return chat

    @_db_operation("Failed to save chat")
    def save_chat_if_absent(self, id: str, user_id: str, title: str, visibility: str) -> bool:
        """Insert the chat unless a row with this id exists. Returns True if this call created it."""
        with self._session() as session:
            result = session.exec(
                sqlite_insert(Chat)
                .values(id=id, created_at=utcnow(), user_id=user_id, title=title, visibility=visibility)
                .on_conflict_do_nothing(index_elements=["id"])
            )
            session.commit()
            return result.rowcount == 1

    @_db_operation("Failed to get chat by id")
    def get_chat_by_id(self, id: str) -> Chat | None:
        with self._session() as session:
            return session.get(Chat, id)

    @_db_operation("Failed to delete chat by id")
    def delete_chat_by_id(self, id: str) -> Chat | None:
        with self._session() as session:
            session.exec(delete(Vote).where(Vote.chat_id == id))
            session.exec(delete(Message).where(Message.chat_id == id))
            session.exec(delete(Stream).where(Stream.chat_id == id))
            chat = session.get(Chat, id)
            if chat:
                session.delete(chat)
            session.commit()
            return chat

    @_db_operation("Failed to delete all chats by user id")
    def delete_all_chats_by_user_id(self, user_id: str) -> int:
        with self._session() as session:
            chat_ids = list(session.exec(select(Chat.id).where(Chat.user_id == user_id)).all())
            if not chat_ids:
                return 0

            session.exec(delete(Vote).where(Vote.chat_id.in_(chat_ids)))  # type: ignore
            session.exec(delete(Message).where(Message.chat_id.in_(chat_ids)))  # type: ignore
            session.exec(delete(Stream).where(Stream.chat_id.in_(chat_ids)))  # type: ignore
            result = session.exec(delete(Chat).where(Chat.user_id == user_id))
            session.commit()
            return result.rowcount

    @_db_operation("Failed to get chats by user id")
    def get_chats_by_user_id(
        self,
        user_id: str,
        limit: int,
        starting_after: str | None = None,
        ending_before: str | None = None,
    ) -> ChatPage:
        """Page through a user's chats, newest first.

        ``starting_after`` returns chats created after the anchor chat,
        ``ending_before`` chats created before it. One extra row is fetched
        to tell whether another page exists.
        """
        with self._session() as session:
            query = select(Chat).where(Chat.user_id == user_id)

            if starting_after:
                anchor = session.get(Chat, starting_after)
                if not anchor:
                    raise NotFoundError(f"Chat with id {starting_after} not found", surface="database")
                query = query.where(Chat.created_at > as_utc(anchor.created_at))
            elif ending_before:
                anchor = session.get(Chat, ending_before)
                if not anchor:
                    raise NotFoundError(f"Chat with id {ending_before} not found", surface="database")
                query = query.where(Chat.created_at < as_utc(anchor.created_at))

            rows = list(
                session.exec(
                    query.order_by(Chat.created_at.desc()).limit(limit + 1)  # type: ignore
                ).all()
            )

        has_more = len(rows) > limit
        return ChatPage(chats=rows[:limit], has_more=has_more)

    @_db_operation("Failed to update chat visibility by id")
    def update_chat_visibility_by_id(self, chat_id: str, visibility: str) -> None:
        with self._session() as session:
            session.exec(update(Chat).where(Chat.id == chat_id).values(visibility=visibility))
            session.commit()

    def update_chat_title_by_id(self, chat_id: str, title: str) -> None:
        # Title updates are best effort; a failure must not break the turn.
        try:
            with self._session() as session:
                session.exec(update(Chat).where(Chat.id == chat_id).values(title=title))
                session.commit()
        except SQLAlchemyError as e:
            logger.warning(f"Failed to update title for chat {chat_id}: {e}")

    # --- Messages ---

    @_db_operation("Failed to save messages")
    def save_messages(self, messages: list[Message]) -> int:
        with self._session() as session:
            session.add_all(messages)
            session.commit()
            return len(messages)

    @_db_operation("Failed to update message")
    def update_message(self, id: str, parts: list[dict]) -> None:
        with self._session() as session:
            session.exec(update(Message).where(Message.id == id).values(parts=parts))
            session.commit()

    @_db_operation("Failed to get messages by chat id")
    def get_messages_by_chat_id(self, chat_id: str) -> list[Message]:
        with self._session() as session:
            return list(
                session.exec(
                    select(Message)
                    .where(Message.chat_id == chat_id)
                    .order_by(Message.created_at, text("message.rowid"))  # type: ignore
                ).all()
            )

    @_db_operation("Failed to get message by id")
    def get_message_by_id(self, id: str) -> list[Message]:
        with self._session() as session:
            return list(session.exec(select(Message).where(Message.id == id)).all())

    @_db_operation("Failed to delete messages by chat id after timestamp")
    def delete_messages_by_chat_id_after_timestamp(self, chat_id: str, timestamp: datetime) -> int:
        with self._session() as session:
            message_ids = list(
                session.exec(
                    select(Message.id).where(
                        Message.chat_id == chat_id,
                        Message.created_at >= as_utc(timestamp),
                    )
                ).all()
            )
            if message_ids:
                session.exec(
                    delete(Vote).where(Vote.chat_id == chat_id, Vote.message_id.in_(message_ids))  # type: ignore
                )
                session.exec(
                    delete(Message).where(Message.chat_id == chat_id, Message.id.in_(message_ids))  # type: ignore
                )
                session.commit()
            return len(message_ids)

    @_db_operation("Failed to get message count by user id")
    def get_message_count_by_user_id(self, user_id: str, difference_in_hours: int) -> int:
        cutoff = utcnow() - timedelta(hours=difference_in_hours)
        with self._session() as session:
            return session.exec(
                select(func.count(Message.id))
                .join(Chat, Message.chat_id == Chat.id)  # type: ignore
                .where(
                    Chat.user_id == user_id,
                    Message.created_at >= as_utc(cutoff),
                    Message.role == "user",
                )
            ).one()

    # --- Votes ---

    @_db_operation("Failed to vote message")
    def vote_message(self, chat_id: str, message_id: str, type: Literal["up", "down"]) -> None:
        is_upvoted = type == "up"
        with self._session() as session:
            session.exec(
                sqlite_insert(Vote)
                .values(chat_id=chat_id, message_id=message_id, is_upvoted=is_upvoted)
                .on_conflict_do_update(
                    index_elements=["chat_id", "message_id"],
                    set_={"is_upvoted": is_upvoted},
                )
            )
            session.commit()

    @_db_operation("Failed to get votes by chat id")
    def get_votes_by_chat_id(self, chat_id: str) -> list[Vote]:
        with self._session() as session:
            return list(session.exec(select(Vote).where(Vote.chat_id == chat_id)).all())

    # --- Documents ---

    @_db_operation("Failed to save document")
    def save_document(self, id: str, title: str, kind: str, content: str, user_id: str) -> Document:
        with self._session() as session:
            document = Document(id=id, title=title, kind=kind, content=content, user_id=user_id)
            session.add(document)
            session.commit()
            return document

    @_db_operation("Failed to get documents by id")
    def get_documents_by_id(self, id: str) -> list[Document]:
        with self._session() as session:
            return list(
                session.exec(
                    select(Document).where(Document.id == id).order_by(Document.created_at)  # type: ignore
                ).all()
            )

    @_db_operation("Failed to get document by id")
    def get_document_by_id(self, id: str) -> Document | None:
        with self._session() as session:
            return session.exec(
                select(Document).where(Document.id == id).order_by(Document.created_at.desc())  # type: ignore
            ).first()

    @_db_operation("Failed to delete documents by id after timestamp")
    def delete_documents_by_id_after_timestamp(self, id: str, timestamp: datetime) -> list[Document]:
        ts = as_utc(timestamp)
        with self._session() as session:
            session.exec(
                delete(Suggestion).where(
                    Suggestion.document_id == id,
                    Suggestion.document_created_at > ts,
                )
            )
            documents = list(
                session.exec(select(Document).where(Document.id == id, Document.created_at > ts)).all()
            )
            for document in documents:
                session.delete(document)
            session.commit()
            return documents

    # --- Suggestions ---

    @_db_operation("Failed to save suggestions")
    def save_suggestions(self, suggestions: list[Suggestion]) -> int:
        for suggestion in suggestions:
            suggestion.document_created_at = as_utc(suggestion.document_created_at)
        with self._session() as session:
            session.add_all(suggestions)
            session.commit()
            return len(suggestions)

    @_db_operation("Failed to get suggestions by document id")
    def get_suggestions_by_document_id(self, document_id: str) -> list[Suggestion]:
        with self._session() as session:
            return list(session.exec(select(Suggestion).where(Suggestion.document_id == document_id)).all())

    # --- Stream markers ---

    @_db_operation("Failed to create stream id")
    def create_stream_id(self, stream_id: str, chat_id: str) -> None:
        with self._session() as session:
            session.add(Stream(id=stream_id, chat_id=chat_id))
            session.commit()

    @_db_operation("Failed to get stream ids by chat id")
    def get_stream_ids_by_chat_id(self, chat_id: str) -> list[str]:
        with self._session() as session:
            return list(
                session.exec(
                    select(Stream.id).where(Stream.chat_id == chat_id).order_by(Stream.created_at)  # type: ignore
                ).all()
            )
