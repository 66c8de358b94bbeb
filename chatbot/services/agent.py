"""Agent orchestration - handles multi-step tool use with the LLM."""

import logging
from typing import Any, AsyncIterator

from chatbot.models.chat import new_id
from chatbot.services.llm.base import (
    BaseLLMProvider,
    Chunk,
    FinishChunk,
    ToolApprovalRequest,
    ToolCallChunk,
    ToolOutputDenied,
    ToolResultChunk,
)
from chatbot.services.messages import MessageAssembler
from chatbot.services.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class Agent:
    """Agent that orchestrates LLM + tools for multi-step interactions."""

    def __init__(
        self,
        provider: BaseLLMProvider,
        model: str,
        system_prompt: str,
        registry: ToolRegistry | None = None,
        max_steps: int = 5,
        thinking_budget: int | None = None,
        approval_required: list[str] | None = None,
    ):
        self.provider = provider
        self.model = model
        self.system_prompt = system_prompt
        self.registry = registry
        self.max_steps = max_steps
        self.thinking_budget = thinking_budget
        self.approval_required = set(approval_required or [])

    async def execute_tool(self, name: str, args: dict[str, Any]) -> Any:
        tool = self.registry.get(name) if self.registry else None
        if not tool:
            return {"error": f"Unknown tool: {name}"}
        logger.info(f"Tool call: {name}({args})")
        try:
            return await tool.execute(**args)
        except Exception as e:
            logger.warning(f"Tool {name} failed: {e}")
            return {"error": f"Error executing {name}: {e}"}

    async def resume_approved_tools(self, assembler: MessageAssembler) -> AsyncIterator[Chunk]:
        """Settle tool calls the user answered while the turn was paused."""
        for part in list(assembler.parts):
            if part.get("state") != "approval-responded":
                continue
            call_id = part["toolCallId"]
            if (part.get("approval") or {}).get("approved"):
                name = part["type"].removeprefix("tool-")
                chunk: Chunk = ToolResultChunk(call_id, await self.execute_tool(name, part.get("input") or {}))
            else:
                chunk = ToolOutputDenied(call_id)
            assembler.apply(chunk)
            yield chunk

    async def run(self, history: list[dict], assembler: MessageAssembler) -> AsyncIterator[Chunk]:
        """Run the agent with tool use. Yields neutral chunks as they stream.

        ``history`` holds UI-format messages preceding the response; the
        response being built lives in ``assembler`` and is fed back to the
        model after every tool step.
        """
        async for chunk in self.resume_approved_tools(assembler):
            yield chunk

        declarations = self.registry.gemini_declarations() if self.registry else None

        for step in range(self.max_steps):
            context = history + [assembler.message] if assembler.parts else history
            logger.info(
                f"=== LLM API Call (step {step + 1}/{self.max_steps}) ===\n"
                f"  Model: {self.model}\n"
                f"  Tools: {', '.join(self.registry.names()) if self.registry else 'none'}\n"
                f"  Messages: {len(context)}"
            )

            calls: list[ToolCallChunk] = []
            async for chunk in self.provider.stream(
                model=self.model,
                system=self.system_prompt,
                messages=context,
                tools=declarations,
                thinking_budget=self.thinking_budget,
            ):
                if isinstance(chunk, FinishChunk):
                    continue
                if isinstance(chunk, ToolCallChunk):
                    calls.append(chunk)
                assembler.apply(chunk)
                yield chunk

            if not calls:
                yield FinishChunk("stop")
                return

            awaiting_approval = False
            for call in calls:
                if call.tool_name in self.approval_required:
                    awaiting_approval = True
                    chunk = ToolApprovalRequest(call.tool_call_id, approval_id=new_id())
                else:
                    chunk = ToolResultChunk(call.tool_call_id, await self.execute_tool(call.tool_name, call.input))
                assembler.apply(chunk)
                yield chunk

            if awaiting_approval:
                yield FinishChunk("tool-calls")
                return

        logger.info(f"Agent reached maximum steps ({self.max_steps})")
        yield FinishChunk("length")
