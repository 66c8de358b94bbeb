"""Tool registry - central place to register and look up the tools of a chat turn."""

from chatbot.services.tools.base import BaseTool, ToolContext, ToolDefinition
from chatbot.services.tools.document_tools import (
    CreateDocumentTool,
    RequestSuggestionsTool,
    UpdateDocumentTool,
)
from chatbot.services.tools.weather_tools import GetWeatherTool


class ToolRegistry:
    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        defn = tool.definition()
        self._tools[defn.name] = tool

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        return [tool.definition() for tool in self._tools.values()]

    def gemini_declarations(self) -> list[dict]:
        return [defn.to_gemini_schema() for defn in self.definitions()]


def create_default_registry(context: ToolContext) -> ToolRegistry:
    """Create a registry with the chat tools bound to one turn's context."""
    registry = ToolRegistry()
    registry.register(GetWeatherTool(context))
    registry.register(CreateDocumentTool(context))
    registry.register(UpdateDocumentTool(context))
    registry.register(RequestSuggestionsTool(context))
    return registry
