"""Google Gemini LLM provider."""

import base64
import logging
import mimetypes
import uuid
from typing import Any, AsyncIterator

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from chatbot.core.config import settings
from chatbot.core.errors import UpstreamModelError
from chatbot.core.sandbox import SandboxError, resolve_upload_path
from chatbot.services.llm.base import (
    BaseLLMProvider,
    Chunk,
    FinishChunk,
    ReasoningDelta,
    TextDelta,
    ToolCallChunk,
)

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/api/uploads/"


def _signature_metadata(signature: bytes | None) -> dict | None:
    if not signature:
        return None
    return {"google": {"thoughtSignature": base64.b64encode(signature).decode("ascii")}}


def _signature_of(part: dict) -> bytes | None:
    encoded = ((part.get("callProviderMetadata") or {}).get("google") or {}).get("thoughtSignature")
    return base64.b64decode(encoded) if encoded else None


def tool_name_of(part: dict) -> str | None:
    """Return the tool name of a ``tool-<name>`` UI part, else None."""
    part_type = part.get("type", "")
    if part_type.startswith("tool-"):
        return part_type.removeprefix("tool-")
    return None


def _file_part(part: dict) -> types.Part | None:
    url = part.get("url", "")
    mime_type = part.get("mediaType") or mimetypes.guess_type(url)[0] or "application/octet-stream"

    if url.startswith(UPLOAD_URL_PREFIX):
        try:
            path = resolve_upload_path(url.removeprefix(UPLOAD_URL_PREFIX))
        except SandboxError:
            logger.warning(f"Skipping attachment outside uploads: {url}")
            return None
        if not path.is_file():
            logger.warning(f"Skipping missing attachment: {url}")
            return None
        return types.Part.from_bytes(data=path.read_bytes(), mime_type=mime_type)

    return types.Part.from_uri(file_uri=url, mime_type=mime_type)


def _assistant_contents(parts: list[dict]) -> list[types.Content]:
    """Split an assistant message into alternating model / function-response turns."""
    contents: list[types.Content] = []
    model_parts: list[types.Part] = []
    responses: list[types.Part] = []

    def flush():
        if model_parts:
            contents.append(types.Content(role="model", parts=list(model_parts)))
            model_parts.clear()
        if responses:
            contents.append(types.Content(role="user", parts=list(responses)))
            responses.clear()

    for part in parts:
        name = tool_name_of(part)
        if name:
            state = part.get("state")
            if state == "output-available":
                result: dict[str, Any] = {"result": part.get("output")}
            elif state == "output-denied":
                result = {"error": "The user denied this tool call."}
            elif state == "output-error":
                result = {"error": part.get("errorText", "Tool execution failed.")}
            else:
                # Still waiting on input or approval; nothing to send yet.
                continue
            call_id = part.get("toolCallId")
            model_parts.append(types.Part(
                function_call=types.FunctionCall(id=call_id, name=name, args=part.get("input") or {}),
                thought_signature=_signature_of(part),
            ))
            responses.append(types.Part(function_response=types.FunctionResponse(
                id=call_id, name=name, response=result,
            )))
        elif part.get("type") == "text" and part.get("text"):
            if responses:
                flush()
            model_parts.append(types.Part(text=part["text"]))

    flush()
    return contents


def to_gemini_contents(messages: list[dict]) -> list[types.Content]:
    """Convert UI-format messages (role + typed parts) into Gemini contents."""
    contents: list[types.Content] = []
    for message in messages:
        parts = message.get("parts") or []
        if message.get("role") == "assistant":
            contents.extend(_assistant_contents(parts))
            continue

        user_parts: list[types.Part] = []
        for part in parts:
            if part.get("type") == "text" and part.get("text"):
                user_parts.append(types.Part(text=part["text"]))
            elif part.get("type") == "file":
                file_part = _file_part(part)
                if file_part:
                    user_parts.append(file_part)
        if user_parts:
            contents.append(types.Content(role="user", parts=user_parts))
    return contents


class GeminiProvider(BaseLLMProvider):
    def __init__(self, api_key: str | None = None):
        self._api_key = api_key if api_key is not None else settings.gemini_api_key
        self._client: genai.Client | None = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def stream(
        self,
        model: str,
        system: str,
        messages: list[dict],
        tools: list[dict] | None = None,
        thinking_budget: int | None = None,
    ) -> AsyncIterator[Chunk]:
        config = types.GenerateContentConfig(
            system_instruction=system,
            tools=[types.Tool(function_declarations=tools)] if tools else None,
            thinking_config=(
                types.ThinkingConfig(thinking_budget=thinking_budget, include_thoughts=True)
                if thinking_budget
                else None
            ),
        )
        contents = to_gemini_contents(messages)

        text_id = str(uuid.uuid4())
        reasoning_id = str(uuid.uuid4())
        called_tools = False

        try:
            response = await self.client.aio.models.generate_content_stream(
                model=model,
                contents=contents,
                config=config,
            )
            async for chunk in response:
                if not chunk.candidates:
                    continue
                content = chunk.candidates[0].content
                if not content or not content.parts:
                    continue
                for part in content.parts:
                    if part.function_call:
                        called_tools = True
                        fc = part.function_call
                        yield ToolCallChunk(
                            tool_call_id=fc.id or str(uuid.uuid4()),
                            tool_name=fc.name,
                            input=dict(fc.args) if fc.args else {},
                            provider_metadata=_signature_metadata(part.thought_signature),
                        )
                    elif part.text:
                        if part.thought:
                            yield ReasoningDelta(id=reasoning_id, delta=part.text)
                        else:
                            yield TextDelta(id=text_id, delta=part.text)
        except genai_errors.APIError as e:
            logger.warning(f"Gemini streaming call failed: {e}")
            raise UpstreamModelError() from e

        yield FinishChunk(finish_reason="tool-calls" if called_tools else "stop")

    async def generate_text(self, model: str, system: str, prompt: str) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(system_instruction=system),
            )
        except genai_errors.APIError as e:
            logger.warning(f"Gemini call failed: {e}")
            raise UpstreamModelError() from e
        return response.text or ""
