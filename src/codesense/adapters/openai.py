"""
OpenAI adapter.

Flattens the structured conversation into chat-completions messages:
one system message, one assistant message per tool-call turn carrying
every call, and one ``tool`` message per result.
"""

from __future__ import annotations

import json
from typing import Any, TypedDict

import httpx

try:
    import openai
    from openai import AsyncOpenAI
except ImportError:
    raise ImportError(
        "OpenAI adapter requires the 'openai' package. "
        "Install with: pip install openai"
    )

from codesense.adapters.base import LLMAdapter
from codesense.adapters.transform import parse_arguments, serialize_result, tool_call_id
from codesense.errors import (
    AgentError,
    AuthenticationError,
    ConversationStateError,
    ProviderError,
    TransportError,
)
from codesense.models import FunctionCall, ModelRequest, ModelResponse
from codesense.tools.registry import ToolDefinition


class OpenAIFunction(TypedDict):
    """OpenAI function definition."""

    name: str
    description: str
    parameters: dict[str, Any]


class OpenAITool(TypedDict):
    """OpenAI tool definition."""

    type: str
    function: OpenAIFunction


class OpenAIAdapter(LLMAdapter):
    """
    OpenAI chat-completions adapter.

    Example:
        from openai import AsyncOpenAI
        from codesense.adapters import OpenAIAdapter

        adapter = OpenAIAdapter(client=AsyncOpenAI())
        response = await adapter.generate(request)
    """

    name = "openai"
    default_model = "gpt-4o"

    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(model=model, temperature=temperature, max_tokens=max_tokens)
        if client is None:
            http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(300.0, connect=30.0),
            )
            client = AsyncOpenAI(api_key=api_key, base_url=base_url, http_client=http_client)
        self.client = client

    @staticmethod
    def _get_openai_tools(tools: list[ToolDefinition]) -> list[OpenAITool]:
        """Convert tool descriptors to OpenAI format."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in tools
        ]

    @staticmethod
    def _build_messages(request: ModelRequest) -> list[dict[str, Any]]:
        """Flatten turns into chat messages. Call ids are derived from position."""
        messages: list[dict[str, Any]] = []
        if request.system_instruction:
            messages.append({"role": "system", "content": request.system_instruction})

        for index, turn in enumerate(request.history):
            if turn.has_tool_calls:
                messages.append(
                    {
                        "role": "assistant",
                        "content": turn.text or None,
                        "tool_calls": [
                            {
                                "id": tool_call_id(index, position),
                                "type": "function",
                                "function": {
                                    "name": call.name,
                                    "arguments": json.dumps(call.args),
                                },
                            }
                            for position, call in enumerate(turn.tool_calls)
                        ],
                    }
                )
            elif turn.has_tool_results:
                # Results answer the call turn immediately before this one
                for position, result in enumerate(turn.tool_results):
                    messages.append(
                        {
                            "role": "tool",
                            "tool_call_id": tool_call_id(index - 1, position),
                            "content": serialize_result(result.response),
                        }
                    )
                if turn.text:
                    messages.append({"role": "user", "content": turn.text})
            else:
                role = "assistant" if turn.role == "model" else "user"
                messages.append({"role": role, "content": turn.text})
        return messages

    async def _generate(self, request: ModelRequest) -> ModelResponse:
        request_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": self._build_messages(request),
            "max_tokens": self.max_tokens,
        }
        if self.temperature is not None:
            request_kwargs["temperature"] = self.temperature
        if request.tools:
            request_kwargs["tools"] = self._get_openai_tools(request.tools)
            request_kwargs["tool_choice"] = "auto"

        response = await self.client.chat.completions.create(**request_kwargs)
        return self._parse_response(response)

    @staticmethod
    def _parse_response(response: Any) -> ModelResponse:
        if not response.choices:
            return ModelResponse()
        message = response.choices[0].message

        if message.tool_calls:
            return ModelResponse(
                function_calls=[
                    FunctionCall(
                        name=tc.function.name,
                        args=parse_arguments(tc.function.arguments),
                    )
                    for tc in message.tool_calls
                ]
            )
        return ModelResponse(text=message.content or "")

    def classify_error(self, exc: Exception) -> AgentError:
        if isinstance(exc, openai.BadRequestError):
            return ConversationStateError(str(exc))
        if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
            return AuthenticationError(str(exc))
        if isinstance(exc, openai.APIConnectionError):
            return TransportError(f"Network error: {exc}")
        if isinstance(exc, openai.APIError):
            return ProviderError(str(exc))
        return super().classify_error(exc)

