"""Tests for the Gemini adapter: message conversion and stream translation."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from chatbot.core.config import settings
from chatbot.core.errors import UpstreamModelError
from chatbot.services.llm import get_llm_provider
from chatbot.services.llm.base import FinishChunk, ReasoningDelta, TextDelta, ToolCallChunk
from chatbot.services.llm.gemini import GeminiProvider, to_gemini_contents
from chatbot.services.messages import MessageAssembler
from chatbot.services.tools.base import ToolDefinition, ToolParameter


def _collect(provider, **kwargs):
    async def run():
        return [chunk async for chunk in provider.stream(model="gemini-2.5-flash", system="sys", messages=[], **kwargs)]

    return asyncio.run(run())


def _response(*parts):
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def _provider_streaming(*responses):
    async def stream():
        for response in responses:
            yield response

    provider = GeminiProvider(api_key="test-key")
    provider._client = MagicMock()
    provider._client.aio.models.generate_content_stream = AsyncMock(return_value=stream())
    return provider


# --- Message conversion ---


def test_user_and_assistant_text():
    contents = to_gemini_contents([
        {"id": "1", "role": "user", "parts": [{"type": "text", "text": "Hi"}]},
        {"id": "2", "role": "assistant", "parts": [{"type": "text", "text": "Hello"}]},
    ])
    assert [c.role for c in contents] == ["user", "model"]
    assert contents[0].parts[0].text == "Hi"
    assert contents[1].parts[0].text == "Hello"


def test_tool_part_becomes_call_and_response():
    contents = to_gemini_contents([
        {"id": "1", "role": "user", "parts": [{"type": "text", "text": "Weather?"}]},
        {
            "id": "2",
            "role": "assistant",
            "parts": [
                {
                    "type": "tool-getWeather",
                    "toolCallId": "call-1",
                    "state": "output-available",
                    "input": {"latitude": 1, "longitude": 2},
                    "output": {"temp": 20},
                },
                {"type": "text", "text": "It is 20 degrees."},
            ],
        },
    ])

    assert [c.role for c in contents] == ["user", "model", "user", "model"]
    call = contents[1].parts[0].function_call
    assert call.name == "getWeather"
    assert call.args == {"latitude": 1, "longitude": 2}
    response = contents[2].parts[0].function_response
    assert response.id == "call-1"
    assert response.response == {"result": {"temp": 20}}
    assert contents[3].parts[0].text == "It is 20 degrees."


def test_denied_tool_part_reports_denial():
    contents = to_gemini_contents([
        {
            "id": "2",
            "role": "assistant",
            "parts": [{"type": "tool-getWeather", "toolCallId": "call-1", "state": "output-denied", "input": {}}],
        },
    ])
    assert "error" in contents[1].parts[0].function_response.response


def test_pending_tool_part_skipped():
    contents = to_gemini_contents([
        {
            "id": "2",
            "role": "assistant",
            "parts": [{"type": "tool-getWeather", "toolCallId": "call-1", "state": "approval-requested", "input": {}}],
        },
    ])
    assert contents == []


def test_uploaded_file_inlined(tmp_path):
    (tmp_path / "cat.png").write_bytes(b"png-bytes")
    with patch.object(settings, "uploads_dir", tmp_path):
        contents = to_gemini_contents([
            {
                "id": "1",
                "role": "user",
                "parts": [
                    {"type": "file", "url": "/api/uploads/cat.png", "mediaType": "image/png"},
                    {"type": "text", "text": "What is this?"},
                ],
            },
        ])

    [content] = contents
    assert content.parts[0].inline_data.data == b"png-bytes"
    assert content.parts[0].inline_data.mime_type == "image/png"
    assert content.parts[1].text == "What is this?"


def test_missing_upload_skipped(tmp_path):
    with patch.object(settings, "uploads_dir", tmp_path):
        contents = to_gemini_contents([
            {"id": "1", "role": "user", "parts": [{"type": "file", "url": "/api/uploads/gone.png"}]},
        ])
    assert contents == []


def test_tool_definition_schema():
    schema = ToolDefinition(
        name="createDocument",
        description="Create a document",
        parameters=[
            ToolParameter(name="title", type="string", description="Title"),
            ToolParameter(name="kind", type="string", description="Kind", enum=["text", "code"]),
            ToolParameter(name="notes", type="string", description="Notes", required=False),
        ],
    ).to_gemini_schema()

    assert schema["name"] == "createDocument"
    assert schema["parameters"]["required"] == ["title", "kind"]
    assert schema["parameters"]["properties"]["kind"]["enum"] == ["text", "code"]


# --- Streaming ---


def test_stream_text_and_reasoning():
    provider = _provider_streaming(
        _response(types.Part(text="Let me think", thought=True)),
        _response(types.Part(text="Hel")),
        _response(types.Part(text="lo")),
    )
    chunks = _collect(provider, thinking_budget=1000)

    assert isinstance(chunks[0], ReasoningDelta)
    assert [c.delta for c in chunks if isinstance(c, TextDelta)] == ["Hel", "lo"]
    assert len({c.id for c in chunks if isinstance(c, TextDelta)}) == 1
    assert chunks[-1] == FinishChunk("stop")

    config = provider._client.aio.models.generate_content_stream.call_args.kwargs["config"]
    assert config.thinking_config.thinking_budget == 1000
    assert config.tools is None


def test_stream_reports_tool_calls():
    provider = _provider_streaming(
        _response(types.Part(function_call=types.FunctionCall(id="call-1", name="getWeather", args={"latitude": 1}))),
    )
    chunks = _collect(provider, tools=[{"name": "getWeather", "description": "Weather"}])

    assert chunks[0] == ToolCallChunk("call-1", "getWeather", {"latitude": 1})
    assert chunks[-1] == FinishChunk("tool-calls")


def test_stream_wraps_api_errors():
    provider = GeminiProvider(api_key="test-key")
    provider._client = MagicMock()
    provider._client.aio.models.generate_content_stream = AsyncMock(
        side_effect=genai_errors.APIError(503, {"error": {"message": "overloaded", "status": "UNAVAILABLE"}})
    )

    with pytest.raises(UpstreamModelError) as exc:
        _collect(provider)
    assert exc.value.code == "offline:chat"


def test_thought_signature_survives_round_trip():
    provider = _provider_streaming(
        _response(types.Part(
            function_call=types.FunctionCall(id="call-1", name="getWeather", args={"latitude": 1}),
            thought_signature=b"sig",
        )),
    )
    chunks = _collect(provider, tools=[{"name": "getWeather", "description": "Weather"}])
    assert chunks[0].provider_metadata == {"google": {"thoughtSignature": "c2ln"}}
    assert chunks[0].to_dict()["providerMetadata"] == chunks[0].provider_metadata

    assembler = MessageAssembler("a-1")
    assembler.apply(chunks[0])
    [part] = assembler.parts
    part["state"] = "output-available"
    part["output"] = {"temp": 20}

    contents = to_gemini_contents([{"id": "1", "role": "user", "parts": [{"type": "text", "text": "Weather?"}]}, assembler.message])
    call_part = contents[1].parts[0]
    assert call_part.function_call.name == "getWeather"
    assert call_part.thought_signature == b"sig"


def test_unsigned_tool_call_has_no_metadata():
    provider = _provider_streaming(
        _response(types.Part(function_call=types.FunctionCall(id="call-1", name="getWeather", args={}))),
    )
    [call, _] = _collect(provider)
    assert call.provider_metadata is None
    assert "providerMetadata" not in call.to_dict()


# --- Provider selection ---


def test_get_llm_provider_uses_configured_key():
    with patch.object(settings, "gemini_api_key", "configured-key"):
        provider = get_llm_provider()
    assert isinstance(provider, GeminiProvider)
    assert provider._api_key == "configured-key"


def test_get_llm_provider_warns_without_key(caplog):
    with patch.object(settings, "gemini_api_key", ""):
        provider = get_llm_provider("Gemini")
    assert isinstance(provider, GeminiProvider)
    assert "CHATBOT_GEMINI_API_KEY is not set" in caplog.text


def test_get_llm_provider_rejects_unknown_name():
    with pytest.raises(ValueError, match="Unknown LLM provider: openai"):
        get_llm_provider("openai")
