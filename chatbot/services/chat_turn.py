"""Chat turn orchestration - from an incoming message to a streamed, persisted assistant reply.

A turn is prepared first (chat row, user message and stream marker are
written before any model call) and then streamed. Agent output, tool side
data and the asynchronously generated chat title all go through one
StreamWriter, so the caller reads a single ordered sequence of chunks.
"""

import asyncio
import logging
from typing import Any, AsyncIterator

from chatbot.core.config import settings
from chatbot.core.errors import BadRequestError, NotFoundError, RateLimitError
from chatbot.core.principal import Principal
from chatbot.models import Message
from chatbot.models.chat import new_id, utcnow
from chatbot.services.agent import Agent
from chatbot.services.llm.base import BaseLLMProvider, Chunk, DataChunk, ErrorChunk, StartChunk
from chatbot.services.llm.models import is_reasoning_model, resolve_model_id
from chatbot.services.messages import MessageAssembler
from chatbot.services.prompts import TITLE_PROMPT, RequestHints, system_prompt
from chatbot.services.store import ChatStore
from chatbot.services.tools.base import ToolContext
from chatbot.services.tools.registry import create_default_registry

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Oops, an error occurred!"
PLACEHOLDER_TITLE = "New chat"

# Maximum user messages per 24 hours, by principal type.
ENTITLEMENTS = {"guest": 20, "regular": 100}

# Title tasks may outlive the request that started them.
_background_tasks: set[asyncio.Task] = set()

_DONE = object()


class StreamWriter:
    """Single queue merging every producer of a turn. Writes after close are dropped."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    async def write(self, chunk: Chunk) -> None:
        if not self.closed:
            self._queue.put_nowait(chunk)

    def finish(self) -> None:
        self._queue.put_nowait(_DONE)

    def close(self) -> None:
        self.closed = True

    async def __aiter__(self) -> AsyncIterator[Chunk]:
        while True:
            item = await self._queue.get()
            if item is _DONE:
                return
            yield item


def _message_text(message: dict[str, Any]) -> str:
    return "\n".join(p.get("text", "") for p in message.get("parts") or [] if p.get("type") == "text")


async def generate_title_from_user_message(provider: BaseLLMProvider, message: dict[str, Any]) -> str:
    title = await provider.generate_text(
        model=settings.title_model,
        system=TITLE_PROMPT,
        prompt=_message_text(message),
    )
    title = title.strip().strip('"').replace(":", "")
    return title[:80] or PLACEHOLDER_TITLE


class ChatTurn:
    def __init__(
        self,
        store: ChatStore,
        provider: BaseLLMProvider,
        principal: Principal,
        chat_id: str,
        selected_chat_model: str,
        visibility: str = "private",
        message: dict[str, Any] | None = None,
        messages: list[dict[str, Any]] | None = None,
        request_hints: RequestHints | None = None,
    ):
        self.store = store
        self.provider = provider
        self.principal = principal
        self.chat_id = chat_id
        self.selected_chat_model = selected_chat_model
        self.visibility = visibility
        self.message = message
        self.messages = messages
        self.request_hints = request_hints

        self.writer = StreamWriter()
        self.title_task: asyncio.Task | None = None
        self.producer: asyncio.Task | None = None
        self.stream_id: str | None = None
        self.history: list[dict[str, Any]] = []
        self.assembler = MessageAssembler(new_id())

    @property
    def is_tool_approval_replay(self) -> bool:
        return self.messages is not None

    def _check_entitlement(self) -> None:
        limit = ENTITLEMENTS.get(self.principal.type, ENTITLEMENTS["guest"])
        count = self.store.get_message_count_by_user_id(self.principal.id, difference_in_hours=24)
        if count >= limit:
            raise RateLimitError("You have exceeded your maximum number of messages for the day.", surface="chat")

    async def prepare(self) -> None:
        """Write everything that must exist before the model is invoked."""
        is_user_message = bool(self.message) and self.message.get("role") == "user"
        if not self.is_tool_approval_replay and not self.message:
            raise BadRequestError("Either message or messages is required.", surface="chat")
        if is_user_message:
            self._check_entitlement()

        chat = self.store.get_chat_by_id(self.chat_id)
        stored: list[Message] = []
        if chat:
            if not self.is_tool_approval_replay:
                stored = self.store.get_messages_by_chat_id(self.chat_id)
        elif is_user_message:
            created = self.store.save_chat_if_absent(
                id=self.chat_id,
                user_id=self.principal.id,
                title=PLACEHOLDER_TITLE,
                visibility=self.visibility,
            )
            if created:
                self.title_task = asyncio.create_task(self._generate_title(self.message))
                _background_tasks.add(self.title_task)
                self.title_task.add_done_callback(_background_tasks.discard)
        else:
            raise NotFoundError("Chat not found", surface="chat")

        if self.is_tool_approval_replay:
            ui_messages = list(self.messages)
        else:
            ui_messages = [m.to_ui_message() for m in stored] + [self.message]

        if is_user_message and not self.is_tool_approval_replay:
            self.store.save_messages([
                Message(
                    id=self.message["id"],
                    chat_id=self.chat_id,
                    role="user",
                    parts=self.message.get("parts") or [],
                    attachments=self.message.get("attachments") or [],
                    created_at=utcnow(),
                )
            ])

        if self.is_tool_approval_replay and ui_messages and ui_messages[-1].get("role") == "assistant":
            continued = ui_messages[-1]
            self._check_continued_message(continued["id"])
            self.assembler = MessageAssembler(continued["id"], continued.get("parts"))
            self.history = ui_messages[:-1]
        else:
            self.history = ui_messages

        self.stream_id = new_id()
        self.store.create_stream_id(self.stream_id, self.chat_id)

    def _check_continued_message(self, message_id: str) -> None:
        for existing in self.store.get_message_by_id(message_id):
            if existing.chat_id != self.chat_id:
                raise BadRequestError("Message does not belong to this chat.", surface="chat")

    def build_agent(self) -> Agent:
        reasoning = is_reasoning_model(self.selected_chat_model)
        registry = None
        if not reasoning:
            context = ToolContext(
                store=self.store,
                principal=self.principal,
                provider=self.provider,
                write=self.writer.write,
            )
            registry = create_default_registry(context)
        return Agent(
            provider=self.provider,
            model=resolve_model_id(self.selected_chat_model),
            system_prompt=system_prompt(self.selected_chat_model, self.request_hints),
            registry=registry,
            max_steps=settings.max_steps,
            thinking_budget=settings.reasoning_budget_tokens if reasoning else None,
            approval_required=settings.tools_requiring_approval,
        )

    async def _generate_title(self, message: dict[str, Any]) -> None:
        try:
            title = await generate_title_from_user_message(self.provider, message)
        except Exception as e:
            logger.warning(f"Title generation failed for chat {self.chat_id}: {e}")
            return
        self.store.update_chat_title_by_id(self.chat_id, title)
        await self.writer.write(DataChunk("chat-title", title, transient=True))

    async def _produce(self) -> None:
        try:
            await self.writer.write(StartChunk(self.assembler.id))
            async for chunk in self.build_agent().run(self.history, self.assembler):
                await self.writer.write(chunk)
            self._persist()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Chat turn failed for chat {self.chat_id}")
            await self.writer.write(ErrorChunk(GENERIC_ERROR))
        finally:
            self.writer.finish()

    def _persist(self) -> None:
        message = self.assembler.message
        if not message["parts"]:
            return
        if self.is_tool_approval_replay and self.store.get_message_by_id(message["id"]):
            self.store.update_message(message["id"], message["parts"])
            return
        self.store.save_messages([
            Message(
                id=message["id"],
                chat_id=self.chat_id,
                role=message["role"],
                parts=message["parts"],
                attachments=[],
                created_at=utcnow(),
            )
        ])

    async def stream(self) -> AsyncIterator[Chunk]:
        """Yield the turn's chunks as they are produced.

        Closing the iterator (client disconnect) cancels the producer, which
        stops consuming the model stream. Nothing already sent is undone.
        """
        self.producer = asyncio.create_task(self._produce())
        try:
            async for chunk in self.writer:
                yield chunk
        finally:
            self.writer.close()
            if not self.producer.done():
                self.producer.cancel()
