"""Document tools - let the agent create and revise versioned documents shown beside the chat."""

import json
import logging
import re
from typing import Any

from chatbot.core.config import settings
from chatbot.models import Suggestion
from chatbot.models.chat import new_id
from chatbot.services.llm.base import DataChunk
from chatbot.services.prompts import (
    SUGGESTIONS_PROMPT,
    document_prompt,
    update_document_prompt,
)
from chatbot.services.tools.base import BaseTool, ToolDefinition, ToolParameter

logger = logging.getLogger(__name__)

DOCUMENT_KINDS = ["text", "code", "sheet"]

_FENCE_RE = re.compile(r"^```[\w-]*\n(.*?)\n?```$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    match = _FENCE_RE.match(text.strip())
    return match.group(1) if match else text


def _delta_name(kind: str) -> str:
    return {"code": "codeDelta", "sheet": "sheetDelta"}.get(kind, "textDelta")


class CreateDocumentTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="createDocument",
            description=(
                "Create a document for writing or content creation activities. "
                "This tool will generate the contents of the document based on the title and kind."
            ),
            parameters=[
                ToolParameter(name="title", type="string", description="Title of the document"),
                ToolParameter(name="kind", type="string", description="Kind of document", enum=DOCUMENT_KINDS),
            ],
        )

    async def execute(self, **kwargs: Any) -> Any:
        title = kwargs["title"]
        kind = kwargs.get("kind", "text")
        if kind not in DOCUMENT_KINDS:
            kind = "text"
        document_id = new_id()
        write = self.context.write

        await write(DataChunk("kind", kind, transient=True))
        await write(DataChunk("id", document_id, transient=True))
        await write(DataChunk("title", title, transient=True))
        await write(DataChunk("clear", None, transient=True))

        content = await self.context.provider.generate_text(
            model=settings.artifact_model,
            system=document_prompt(kind),
            prompt=title,
        )
        if kind != "text":
            content = strip_code_fence(content)
        await write(DataChunk(_delta_name(kind), content, transient=True))

        self.context.store.save_document(
            id=document_id,
            title=title,
            kind=kind,
            content=content,
            user_id=self.context.principal.id,
        )
        await write(DataChunk("finish", None, transient=True))

        return {
            "id": document_id,
            "title": title,
            "kind": kind,
            "content": "A document was created and is now visible to the user.",
        }


class UpdateDocumentTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="updateDocument",
            description="Update a document with the given description.",
            parameters=[
                ToolParameter(name="id", type="string", description="The ID of the document to update"),
                ToolParameter(name="description", type="string", description="The description of changes that need to be made"),
            ],
        )

    async def execute(self, **kwargs: Any) -> Any:
        document = self.context.store.get_document_by_id(kwargs["id"])
        if not document:
            return {"error": "Document not found"}

        write = self.context.write
        await write(DataChunk("clear", document.title, transient=True))

        content = await self.context.provider.generate_text(
            model=settings.artifact_model,
            system=update_document_prompt(document.content, document.kind),
            prompt=kwargs["description"],
        )
        if document.kind != "text":
            content = strip_code_fence(content)
        await write(DataChunk(_delta_name(document.kind), content, transient=True))

        self.context.store.save_document(
            id=document.id,
            title=document.title,
            kind=document.kind,
            content=content,
            user_id=self.context.principal.id,
        )
        await write(DataChunk("finish", None, transient=True))

        return {
            "id": document.id,
            "title": document.title,
            "kind": document.kind,
            "content": "The document has been updated successfully.",
        }


class RequestSuggestionsTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="requestSuggestions",
            description="Request suggestions for a document.",
            parameters=[
                ToolParameter(name="documentId", type="string", description="The ID of the document to request edits"),
            ],
        )

    async def execute(self, **kwargs: Any) -> Any:
        document = self.context.store.get_document_by_id(kwargs["documentId"])
        if not document or not document.content:
            return {"error": "Document not found"}

        raw = await self.context.provider.generate_text(
            model=settings.artifact_model,
            system=SUGGESTIONS_PROMPT,
            prompt=document.content,
        )
        try:
            proposed = json.loads(strip_code_fence(raw))
        except json.JSONDecodeError:
            logger.warning(f"Suggestions for document {document.id} were not valid JSON")
            proposed = []
        if not isinstance(proposed, list):
            proposed = []

        suggestions = []
        for item in proposed[:5]:
            if not isinstance(item, dict) or "originalSentence" not in item or "suggestedSentence" not in item:
                continue
            suggestion = Suggestion(
                document_id=document.id,
                document_created_at=document.created_at,
                original_text=item["originalSentence"],
                suggested_text=item["suggestedSentence"],
                description=item.get("description"),
                user_id=self.context.principal.id,
            )
            suggestions.append(suggestion)
            await self.context.write(DataChunk("suggestion", suggestion.to_dict(), transient=True))

        if suggestions:
            self.context.store.save_suggestions(suggestions)

        return {
            "id": document.id,
            "title": document.title,
            "kind": document.kind,
            "message": "Suggestions have been added to the document",
        }
