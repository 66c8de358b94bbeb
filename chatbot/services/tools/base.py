"""Base tool interface. All tools the agent can use implement this."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from chatbot.core.principal import Principal
from chatbot.services.llm.base import BaseLLMProvider, Chunk

if TYPE_CHECKING:
    from chatbot.services.store import ChatStore


@dataclass
class ToolParameter:
    name: str
    type: str  # "string" | "integer" | "boolean" | "number"
    description: str
    required: bool = True
    enum: list[str] | None = None


@dataclass
class ToolDefinition:
    name: str
    description: str
    parameters: list[ToolParameter] = field(default_factory=list)

    def to_gemini_schema(self) -> dict:
        """Convert to Gemini function declaration format."""
        properties = {}
        required = []
        for param in self.parameters:
            prop: dict[str, Any] = {"type": param.type, "description": param.description}
            if param.enum:
                prop["enum"] = param.enum
            properties[param.name] = prop
            if param.required:
                required.append(param.name)

        return {
            "name": self.name,
            "description": self.description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        }


@dataclass
class ToolContext:
    """What a tool may touch while it runs within a chat turn."""

    store: "ChatStore"
    principal: Principal
    provider: BaseLLMProvider
    write: Callable[[Chunk], Awaitable[None]]


class BaseTool(ABC):
    def __init__(self, context: ToolContext):
        self.context = context

    @abstractmethod
    def definition(self) -> ToolDefinition:
        """Return the tool's definition for LLM function calling."""
        ...

    @abstractmethod
    async def execute(self, **kwargs: Any) -> Any:
        """Execute the tool with the given arguments. Returns a JSON-serializable result."""
        ...
