"""
Google Gemini adapter.

Gemini accepts the structured multi-part conversation natively: turns
become ``types.Content`` values and tool calls/results travel as
``function_call``/``function_response`` parts.
"""

from __future__ import annotations

from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from codesense.adapters.base import LLMAdapter
from codesense.adapters.transform import to_gemini_schema
from codesense.errors import AgentError, AuthenticationError, ConversationStateError, ProviderError
from codesense.models import (
    FunctionCall,
    ModelRequest,
    ModelResponse,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    Turn,
)
from codesense.tools.registry import ToolDefinition


class GeminiAdapter(LLMAdapter):
    """
    Gemini adapter built on the google-genai SDK.

    Example:
        from google import genai
        from codesense.adapters import GeminiAdapter

        adapter = GeminiAdapter(client=genai.Client(api_key="..."))
        response = await adapter.generate(request)
    """

    name = "gemini"
    default_model = "gemini-2.5-flash"

    def __init__(
        self,
        client: genai.Client | None = None,
        api_key: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(model=model, temperature=temperature, max_tokens=max_tokens)
        self.client = client or genai.Client(api_key=api_key)

    async def _generate(self, request: ModelRequest) -> ModelResponse:
        config = types.GenerateContentConfig(
            system_instruction=request.system_instruction or None,
            tools=self._build_tools(request.tools),
            temperature=self.temperature,
            max_output_tokens=self.max_tokens,
        )
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[self._to_content(turn) for turn in request.history],
            config=config,
        )
        return self._parse_response(response)

    @staticmethod
    def _build_tools(tools: list[ToolDefinition]) -> list[types.Tool] | None:
        """Convert tool descriptors to a single Gemini tool of declarations."""
        if not tools:
            return None
        declarations = [
            types.FunctionDeclaration(
                name=tool.name,
                description=tool.description,
                parameters=to_gemini_schema(tool.parameters),
            )
            for tool in tools
        ]
        return [types.Tool(function_declarations=declarations)]

    @staticmethod
    def _to_content(turn: Turn) -> types.Content:
        parts: list[types.Part] = []
        for part in turn.parts:
            if isinstance(part, TextPart):
                parts.append(types.Part(text=part.text))
            elif isinstance(part, ToolCallPart):
                parts.append(
                    types.Part(function_call=types.FunctionCall(name=part.name, args=dict(part.args)))
                )
            elif isinstance(part, ToolResultPart):
                parts.append(
                    types.Part(
                        function_response=types.FunctionResponse(
                            name=part.name, response=dict(part.response)
                        )
                    )
                )
        return types.Content(role=turn.role, parts=parts)

    @staticmethod
    def _parse_response(response: types.GenerateContentResponse) -> ModelResponse:
        candidates = response.candidates or []
        content = candidates[0].content if candidates else None
        parts = (content.parts if content is not None else None) or []

        calls: list[FunctionCall] = []
        texts: list[str] = []
        for part in parts:
            if part.function_call is not None:
                calls.append(
                    FunctionCall(
                        name=part.function_call.name or "",
                        args=dict(part.function_call.args or {}),
                    )
                )
            elif part.text and not part.thought:
                texts.append(part.text)

        if calls:
            return ModelResponse(function_calls=calls)
        return ModelResponse(text="".join(texts))

    def classify_error(self, exc: Exception) -> AgentError:
        if isinstance(exc, genai_errors.ClientError):
            message = _error_message(exc)
            if exc.code in (401, 403) or "API key" in message:
                return AuthenticationError(message)
            if exc.code == 400:
                return ConversationStateError(message)
            return ProviderError(message)
        if isinstance(exc, genai_errors.APIError):
            return ProviderError(_error_message(exc))
        return super().classify_error(exc)


def _error_message(exc: genai_errors.APIError) -> str:
    message: Any = getattr(exc, "message", None)
    return str(message or exc)
