"""Tests for the provider adapters and translation helpers."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from codesense.adapters.gemini import GeminiAdapter
from codesense.adapters.openai import OpenAIAdapter
from codesense.adapters.transform import (
    from_gemini_schema,
    parse_arguments,
    serialize_result,
    to_gemini_schema,
    tool_call_id,
)
from codesense.errors import (
    AuthenticationError,
    ConversationStateError,
    ProviderError,
    TransportError,
)
from codesense.models import FunctionCall, ModelRequest, ToolResultPart, Turn
from codesense.tools import create_project_tools

try:
    import anthropic

    _has_anthropic = True
except ImportError:
    _has_anthropic = False


def _sample_request() -> ModelRequest:
    return ModelRequest(
        system_instruction="You are helpful.",
        history=[
            Turn.user("read both"),
            Turn.calls(
                [
                    FunctionCall(name="readFile", args={"file_path": "a.txt"}),
                    FunctionCall(name="readFile", args={"file_path": "b.txt"}),
                ]
            ),
            Turn.results(
                [
                    ToolResultPart(name="readFile", response={"result": {"contents": "A"}}),
                    ToolResultPart(name="readFile", response={"error": "missing"}),
                ]
            ),
            Turn.model("Done."),
        ],
    )


_OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def _openai_status_error(cls: type, status: int) -> Exception:
    request = httpx.Request("POST", _OPENAI_URL)
    response = httpx.Response(status, request=request)
    return cls("rejected", response=response, body=None)


# ---------------------------------------------------------------------------
# Translation helpers
# ---------------------------------------------------------------------------


class TestTransform:
    """Tests for the schema and payload helpers."""

    def test_schema_round_trip(self) -> None:
        schema = {
            "type": "object",
            "description": "Args",
            "properties": {
                "path": {"type": "string", "description": "A path"},
                "mode": {"type": "string", "enum": ["r", "w"]},
                "lines": {"type": "array", "items": {"type": "integer"}},
            },
            "required": ["path"],
        }

        assert from_gemini_schema(to_gemini_schema(schema)) == schema

    def test_every_tool_schema_converts(self, tmp_path) -> None:
        for tool in create_project_tools(str(tmp_path)).list_tools():
            converted = to_gemini_schema(tool.parameters)
            assert converted.type == types.Type.OBJECT

    def test_unknown_schema_type(self) -> None:
        with pytest.raises(ValueError, match="Unsupported schema type"):
            to_gemini_schema({"type": "tuple"})

    def test_tool_call_id_is_positional(self) -> None:
        assert tool_call_id(3, 0) == "call_3_0"
        assert tool_call_id(3, 1) != tool_call_id(4, 1)

    def test_serialize_result(self) -> None:
        assert json.loads(serialize_result({"result": {"ok": True}})) == {"result": {"ok": True}}

    def test_parse_arguments(self) -> None:
        assert parse_arguments(None) == {}
        assert parse_arguments("") == {}
        assert parse_arguments('{"a": 1}') == {"a": 1}
        assert parse_arguments({"a": 1}) == {"a": 1}

    def test_parse_arguments_rejects_invalid_json(self) -> None:
        with pytest.raises(ConversationStateError):
            parse_arguments("{not json")

    def test_parse_arguments_rejects_non_object(self) -> None:
        with pytest.raises(ConversationStateError, match="JSON object"):
            parse_arguments("[1, 2]")


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


class TestGeminiAdapter:
    """Tests for GeminiAdapter."""

    def _adapter(self, response: types.GenerateContentResponse | None = None) -> GeminiAdapter:
        client = MagicMock()
        client.aio.models.generate_content = AsyncMock(return_value=response)
        return GeminiAdapter(client=client)

    def test_default_model(self) -> None:
        assert self._adapter().model == "gemini-2.5-flash"

    def test_to_content_maps_parts(self) -> None:
        request = _sample_request()

        contents = [GeminiAdapter._to_content(t) for t in request.history]

        assert [c.role for c in contents] == ["user", "model", "user", "model"]
        assert contents[0].parts[0].text == "read both"
        assert [p.function_call.name for p in contents[1].parts] == ["readFile", "readFile"]
        assert contents[1].parts[1].function_call.args == {"file_path": "b.txt"}
        assert contents[2].parts[1].function_response.response == {"error": "missing"}

    @pytest.mark.asyncio
    async def test_generate_sends_history_and_tools(self, tmp_path) -> None:
        response = types.GenerateContentResponse(
            candidates=[
                types.Candidate(
                    content=types.Content(role="model", parts=[types.Part(text="Hi")])
                )
            ]
        )
        adapter = self._adapter(response)
        request = _sample_request()
        request.tools = create_project_tools(str(tmp_path)).list_tools()

        result = await adapter.generate(request)

        assert result.text == "Hi"
        kwargs = adapter.client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash"
        assert len(kwargs["contents"]) == 4
        config = kwargs["config"]
        assert config.system_instruction == "You are helpful."
        declarations = config.tools[0].function_declarations
        assert [d.name for d in declarations][0] == "listDirectory"

    def test_parse_function_calls_take_priority(self) -> None:
        response = types.GenerateContentResponse(
            candidates=[
                types.Candidate(
                    content=types.Content(
                        role="model",
                        parts=[
                            types.Part(text="Let me look."),
                            types.Part(
                                function_call=types.FunctionCall(
                                    name="listDirectory", args={"directory": "."}
                                )
                            ),
                        ],
                    )
                )
            ]
        )

        result = GeminiAdapter._parse_response(response)

        assert result.text == ""
        assert result.function_calls == [
            FunctionCall(name="listDirectory", args={"directory": "."})
        ]

    def test_parse_skips_thought_parts(self) -> None:
        response = types.GenerateContentResponse(
            candidates=[
                types.Candidate(
                    content=types.Content(
                        role="model",
                        parts=[
                            types.Part(text="pondering", thought=True),
                            types.Part(text="Answer"),
                        ],
                    )
                )
            ]
        )

        assert GeminiAdapter._parse_response(response).text == "Answer"

    def test_parse_empty_response(self) -> None:
        result = GeminiAdapter._parse_response(types.GenerateContentResponse(candidates=[]))

        assert result.text == ""
        assert result.function_calls == []

    @pytest.mark.asyncio
    async def test_bad_request_is_state_error(self) -> None:
        adapter = self._adapter()
        adapter.client.aio.models.generate_content.side_effect = genai_errors.ClientError(
            400,
            {
                "error": {
                    "code": 400,
                    "message": "function call turn must come after a user turn",
                    "status": "INVALID_ARGUMENT",
                }
            },
        )

        with pytest.raises(ConversationStateError, match="function call turn"):
            await adapter.generate(_sample_request())

    def test_bad_api_key_is_auth_error(self) -> None:
        exc = genai_errors.ClientError(
            400,
            {"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}},
        )

        assert isinstance(GeminiAdapter(client=MagicMock()).classify_error(exc), AuthenticationError)

    def test_forbidden_is_auth_error(self) -> None:
        exc = genai_errors.ClientError(
            403, {"error": {"code": 403, "message": "denied", "status": "PERMISSION_DENIED"}}
        )

        error = GeminiAdapter(client=MagicMock()).classify_error(exc)

        assert error.kind == "auth"

    def test_server_error_is_provider_error(self) -> None:
        exc = genai_errors.ServerError(
            503, {"error": {"code": 503, "message": "overloaded", "status": "UNAVAILABLE"}}
        )

        error = GeminiAdapter(client=MagicMock()).classify_error(exc)

        assert type(error) is ProviderError


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


class TestOpenAIAdapter:
    """Tests for OpenAIAdapter."""

    def _adapter(self) -> OpenAIAdapter:
        client = MagicMock()
        client.chat.completions.create = AsyncMock()
        return OpenAIAdapter(client=client)

    def test_build_messages_flattens_turns(self) -> None:
        messages = OpenAIAdapter._build_messages(_sample_request())

        assert [m["role"] for m in messages] == [
            "system",
            "user",
            "assistant",
            "tool",
            "tool",
            "assistant",
        ]
        calls = messages[2]["tool_calls"]
        assert [c["id"] for c in calls] == ["call_1_0", "call_1_1"]
        assert json.loads(calls[1]["function"]["arguments"]) == {"file_path": "b.txt"}
        assert messages[2]["content"] is None
        assert [m["tool_call_id"] for m in messages[3:5]] == ["call_1_0", "call_1_1"]
        assert json.loads(messages[4]["content"]) == {"error": "missing"}

    def test_parse_tool_calls(self) -> None:
        tool_call = MagicMock()
        tool_call.function.name = "readFile"
        tool_call.function.arguments = '{"file_path": "x.py"}'
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.tool_calls = [tool_call]

        result = OpenAIAdapter._parse_response(response)

        assert result.function_calls == [FunctionCall(name="readFile", args={"file_path": "x.py"})]

    def test_parse_text(self) -> None:
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.tool_calls = None
        response.choices[0].message.content = "Hello"

        assert OpenAIAdapter._parse_response(response).text == "Hello"

    def test_parse_no_choices(self) -> None:
        response = MagicMock()
        response.choices = []

        assert OpenAIAdapter._parse_response(response).text == ""

    @pytest.mark.asyncio
    async def test_invalid_arguments_are_state_error(self) -> None:
        tool_call = MagicMock()
        tool_call.function.name = "readFile"
        tool_call.function.arguments = "{broken"
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.tool_calls = [tool_call]
        adapter = self._adapter()
        adapter.client.chat.completions.create.return_value = response

        with pytest.raises(ConversationStateError):
            await adapter.generate(_sample_request())

    @pytest.mark.asyncio
    async def test_generate_request_kwargs(self, tmp_path) -> None:
        response = MagicMock()
        response.choices = []
        adapter = self._adapter()
        adapter.client.chat.completions.create.return_value = response
        request = _sample_request()
        request.tools = create_project_tools(str(tmp_path)).list_tools()

        await adapter.generate(request)

        kwargs = adapter.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["tool_choice"] == "auto"
        assert "temperature" not in kwargs
        assert kwargs["tools"][0]["function"]["name"] == "listDirectory"

    def test_classify_errors(self) -> None:
        adapter = self._adapter()
        request = httpx.Request("POST", _OPENAI_URL)

        assert isinstance(
            adapter.classify_error(_openai_status_error(openai.BadRequestError, 400)),
            ConversationStateError,
        )
        assert isinstance(
            adapter.classify_error(_openai_status_error(openai.AuthenticationError, 401)),
            AuthenticationError,
        )
        assert isinstance(
            adapter.classify_error(openai.APIConnectionError(request=request)),
            TransportError,
        )
        assert type(
            adapter.classify_error(_openai_status_error(openai.InternalServerError, 500))
        ) is ProviderError


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


@pytest.mark.skipif(not _has_anthropic, reason="anthropic not installed")
class TestAnthropicAdapter:
    """Tests for AnthropicAdapter."""

    def test_build_messages_uses_content_blocks(self) -> None:
        from codesense.adapters.anthropic import AnthropicAdapter

        messages = AnthropicAdapter._build_messages(_sample_request())

        assert [m["role"] for m in messages] == ["user", "assistant", "user", "assistant"]
        uses = messages[1]["content"]
        assert [b["type"] for b in uses] == ["tool_use", "tool_use"]
        assert [b["id"] for b in uses] == ["call_1_0", "call_1_1"]
        results = messages[2]["content"]
        assert [b["tool_use_id"] for b in results] == ["call_1_0", "call_1_1"]
        assert [b["is_error"] for b in results] == [False, True]

    @pytest.mark.asyncio
    async def test_generate_parses_tool_use(self) -> None:
        from codesense.adapters.anthropic import AnthropicAdapter

        block = MagicMock()
        block.type = "tool_use"
        block.name = "readFile"
        block.input = {"file_path": "a.txt"}
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=MagicMock(content=[block]))
        adapter = AnthropicAdapter(client=client)

        result = await adapter.generate(_sample_request())

        assert result.function_calls == [FunctionCall(name="readFile", args={"file_path": "a.txt"})]
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "You are helpful."

    def test_classify_connection_error(self) -> None:
        from codesense.adapters.anthropic import AnthropicAdapter

        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        exc = anthropic.APIConnectionError(request=request)

        assert isinstance(AnthropicAdapter(client=MagicMock()).classify_error(exc), TransportError)


# ---------------------------------------------------------------------------
# Base behavior
# ---------------------------------------------------------------------------


class TestBaseClassification:
    """Tests for the shared error classification."""

    def test_transport_errors_are_network(self) -> None:
        adapter = OpenAIAdapter(client=MagicMock())
        exc = httpx.ConnectError("refused")

        error = adapter.classify_error(exc)

        assert isinstance(error, TransportError)
        assert error.kind == "network"

    def test_timeout_is_network(self) -> None:
        adapter = OpenAIAdapter(client=MagicMock())

        assert adapter.classify_error(TimeoutError()).kind == "network"

    def test_other_errors_are_provider(self) -> None:
        adapter = OpenAIAdapter(client=MagicMock())

        assert adapter.classify_error(KeyError("x")).kind == "provider"
