"""
Anthropic adapter.

Requires the 'anthropic' extra: pip install codesense[anthropic]
"""

from __future__ import annotations

from typing import Any, TypedDict

try:
    import anthropic
    from anthropic import AsyncAnthropic
except ImportError:
    raise ImportError(
        "Anthropic adapter requires the 'anthropic' package. "
        "Install with: pip install codesense[anthropic]"
    )

from codesense.adapters.base import LLMAdapter
from codesense.adapters.transform import serialize_result, tool_call_id
from codesense.errors import (
    AgentError,
    AuthenticationError,
    ConversationStateError,
    ProviderError,
    TransportError,
)
from codesense.models import FunctionCall, ModelRequest, ModelResponse, TextPart
from codesense.tools.registry import ToolDefinition


class AnthropicTool(TypedDict):
    """Anthropic tool definition."""

    name: str
    description: str
    input_schema: dict[str, Any]


class AnthropicAdapter(LLMAdapter):
    """
    Anthropic Messages API adapter.

    Example:
        from anthropic import AsyncAnthropic
        from codesense.adapters.anthropic import AnthropicAdapter

        adapter = AnthropicAdapter(client=AsyncAnthropic())
        response = await adapter.generate(request)
    """

    name = "anthropic"
    default_model = "claude-3-5-sonnet-20241022"

    def __init__(
        self,
        client: AsyncAnthropic | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int = 4096,
    ) -> None:
        super().__init__(model=model, temperature=temperature, max_tokens=max_tokens)
        self.client = client or AsyncAnthropic(api_key=api_key, base_url=base_url)

    @staticmethod
    def _get_anthropic_tools(tools: list[ToolDefinition]) -> list[AnthropicTool]:
        """Convert tool descriptors to Anthropic format."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }
            for tool in tools
        ]

    @staticmethod
    def _build_messages(request: ModelRequest) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        for index, turn in enumerate(request.history):
            role = "assistant" if turn.role == "model" else "user"
            blocks: list[dict[str, Any]] = []
            position = 0
            for part in turn.parts:
                if isinstance(part, TextPart):
                    if part.text:
                        blocks.append({"type": "text", "text": part.text})
                    continue
                if turn.has_tool_calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": tool_call_id(index, position),
                            "name": part.name,
                            "input": dict(part.args),
                        }
                    )
                else:
                    blocks.append(
                        {
                            "type": "tool_result",
                            "tool_use_id": tool_call_id(index - 1, position),
                            "content": serialize_result(part.response),
                            "is_error": part.is_error,
                        }
                    )
                position += 1
            messages.append({"role": role, "content": blocks})
        return messages

    async def _generate(self, request: ModelRequest) -> ModelResponse:
        request_kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": self._build_messages(request),
        }
        if request.system_instruction:
            request_kwargs["system"] = request.system_instruction
        if self.temperature is not None:
            request_kwargs["temperature"] = self.temperature
        if request.tools:
            request_kwargs["tools"] = self._get_anthropic_tools(request.tools)

        response = await self.client.messages.create(**request_kwargs)

        calls: list[FunctionCall] = []
        texts: list[str] = []
        for block in response.content:
            if block.type == "tool_use":
                calls.append(FunctionCall(name=block.name, args=dict(block.input or {})))
            elif block.type == "text":
                texts.append(block.text)

        if calls:
            return ModelResponse(function_calls=calls)
        return ModelResponse(text="".join(texts))

    def classify_error(self, exc: Exception) -> AgentError:
        if isinstance(exc, anthropic.BadRequestError):
            return ConversationStateError(str(exc))
        if isinstance(exc, (anthropic.AuthenticationError, anthropic.PermissionDeniedError)):
            return AuthenticationError(str(exc))
        if isinstance(exc, anthropic.APIConnectionError):
            return TransportError(f"Network error: {exc}")
        if isinstance(exc, anthropic.APIError):
            return ProviderError(str(exc))
        return super().classify_error(exc)
