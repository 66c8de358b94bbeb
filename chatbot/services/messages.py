"""Builds the assistant UI message out of the chunks streamed during a turn."""

import copy
from typing import Any

from chatbot.services.llm.base import (
    Chunk,
    DataChunk,
    ReasoningDelta,
    TextDelta,
    ToolApprovalRequest,
    ToolCallChunk,
    ToolOutputDenied,
    ToolResultChunk,
)


class MessageAssembler:
    def __init__(self, message_id: str, parts: list[dict[str, Any]] | None = None):
        self.message: dict[str, Any] = {
            "id": message_id,
            "role": "assistant",
            "parts": copy.deepcopy(parts) if parts else [],
        }
        self._text_parts: dict[str, dict] = {}
        self._reasoning_parts: dict[str, dict] = {}

    @property
    def id(self) -> str:
        return self.message["id"]

    @property
    def parts(self) -> list[dict[str, Any]]:
        return self.message["parts"]

    def tool_part(self, tool_call_id: str) -> dict | None:
        for part in self.parts:
            if part.get("toolCallId") == tool_call_id:
                return part
        return None

    def apply(self, chunk: Chunk) -> None:
        if isinstance(chunk, TextDelta):
            self._append_delta(self._text_parts, "text", chunk.id, chunk.delta)
        elif isinstance(chunk, ReasoningDelta):
            self._append_delta(self._reasoning_parts, "reasoning", chunk.id, chunk.delta)
        elif isinstance(chunk, ToolCallChunk):
            part = {
                "type": f"tool-{chunk.tool_name}",
                "toolCallId": chunk.tool_call_id,
                "state": "input-available",
                "input": chunk.input,
            }
            if chunk.provider_metadata:
                part["callProviderMetadata"] = chunk.provider_metadata
            self.parts.append(part)
        elif isinstance(chunk, ToolApprovalRequest):
            part = self.tool_part(chunk.tool_call_id)
            if part is not None:
                part["state"] = "approval-requested"
                part["approval"] = {"id": chunk.approval_id}
        elif isinstance(chunk, ToolResultChunk):
            part = self.tool_part(chunk.tool_call_id)
            if part is not None:
                part["state"] = "output-available"
                part["output"] = chunk.output
        elif isinstance(chunk, ToolOutputDenied):
            part = self.tool_part(chunk.tool_call_id)
            if part is not None:
                part["state"] = "output-denied"
        elif isinstance(chunk, DataChunk) and not chunk.transient:
            self.parts.append({"type": f"data-{chunk.name}", "data": chunk.data})

    def _append_delta(self, open_parts: dict[str, dict], part_type: str, stream_id: str, delta: str) -> None:
        part = open_parts.get(stream_id)
        # A tool call between two deltas of one stream starts a new part.
        if part is None or not self.parts or self.parts[-1] is not part:
            part = {"type": part_type, "text": ""}
            self.parts.append(part)
            open_parts[stream_id] = part
        part["text"] += delta
