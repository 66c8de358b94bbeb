"""Abstract LLM provider interface and the neutral stream chunks all providers produce."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator


@dataclass
class StartChunk:
    message_id: str

    def to_dict(self) -> dict:
        return {"type": "start", "messageId": self.message_id}


@dataclass
class TextDelta:
    id: str
    delta: str

    def to_dict(self) -> dict:
        return {"type": "text-delta", "id": self.id, "delta": self.delta}


@dataclass
class ReasoningDelta:
    id: str
    delta: str

    def to_dict(self) -> dict:
        return {"type": "reasoning-delta", "id": self.id, "delta": self.delta}


@dataclass
class ToolCallChunk:
    tool_call_id: str
    tool_name: str
    input: dict[str, Any] = field(default_factory=dict)
    # Opaque provider data that must be sent back with the call, e.g. Gemini thought signatures.
    provider_metadata: dict[str, Any] | None = None

    def to_dict(self) -> dict:
        chunk = {
            "type": "tool-input-available",
            "toolCallId": self.tool_call_id,
            "toolName": self.tool_name,
            "input": self.input,
        }
        if self.provider_metadata:
            chunk["providerMetadata"] = self.provider_metadata
        return chunk


@dataclass
class ToolApprovalRequest:
    tool_call_id: str
    approval_id: str

    def to_dict(self) -> dict:
        return {
            "type": "tool-approval-request",
            "toolCallId": self.tool_call_id,
            "approvalId": self.approval_id,
        }


@dataclass
class ToolResultChunk:
    tool_call_id: str
    output: Any

    def to_dict(self) -> dict:
        return {"type": "tool-output-available", "toolCallId": self.tool_call_id, "output": self.output}


@dataclass
class ToolOutputDenied:
    tool_call_id: str

    def to_dict(self) -> dict:
        return {"type": "tool-output-denied", "toolCallId": self.tool_call_id}


@dataclass
class DataChunk:
    """Custom side-channel data (document deltas, chat title, ...)."""

    name: str
    data: Any
    transient: bool = False

    def to_dict(self) -> dict:
        chunk = {"type": f"data-{self.name}", "data": self.data}
        if self.transient:
            chunk["transient"] = True
        return chunk


@dataclass
class FinishChunk:
    finish_reason: str = "stop"

    def to_dict(self) -> dict:
        return {"type": "finish", "finishReason": self.finish_reason}


@dataclass
class ErrorChunk:
    error_text: str

    def to_dict(self) -> dict:
        return {"type": "error", "errorText": self.error_text}


Chunk = (
    StartChunk
    | TextDelta
    | ReasoningDelta
    | ToolCallChunk
    | ToolApprovalRequest
    | ToolResultChunk
    | ToolOutputDenied
    | DataChunk
    | FinishChunk
    | ErrorChunk
)


class BaseLLMProvider(ABC):
    @abstractmethod
    def stream(
        self,
        model: str,
        system: str,
        messages: list[dict],
        tools: list[dict] | None = None,
        thinking_budget: int | None = None,
    ) -> AsyncIterator[Chunk]:
        """Run one model step over UI-format messages.

        Yields TextDelta / ReasoningDelta / ToolCallChunk as they arrive and
        ends with a FinishChunk. Tool calls are reported, never executed.
        """
        ...

    @abstractmethod
    async def generate_text(self, model: str, system: str, prompt: str) -> str:
        """Single non-streamed completion."""
        ...
