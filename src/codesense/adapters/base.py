"""
Base LLM adapter interface.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

import httpx

from codesense.errors import AgentError, ProviderError, TransportError
from codesense.logging import get_logger
from codesense.models import ModelRequest, ModelResponse

logger = get_logger("adapters")


class LLMAdapter(ABC):
    """
    Abstract base class for LLM provider adapters.

    An adapter turns the provider-neutral ``ModelRequest`` (system
    instruction, turn history, tool descriptors) into one backend call and
    normalizes the reply into a ``ModelResponse``. Provider exceptions are
    translated into the codesense error taxonomy before they leave the
    adapter.

    Example implementation for a custom provider:

        class MyAdapter(LLMAdapter):
            name = "mine"
            default_model = "my-model-1"

            async def _generate(self, request: ModelRequest) -> ModelResponse:
                reply = await self.client.complete(...)
                return ModelResponse(text=reply.text)
    """

    name: str = "base"
    default_model: str = ""

    def __init__(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int = 4096,
    ) -> None:
        self.model = model or self.default_model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def generate(self, request: ModelRequest) -> ModelResponse:
        """
        Send one request to the provider.

        Raises:
            ConversationStateError: The provider rejected turn ordering.
            TransportError: The provider could not be reached.
            AuthenticationError: The credentials were rejected.
            ProviderError: Any other provider failure.
        """
        try:
            return await self._generate(request)
        except AgentError:
            raise
        except Exception as e:
            error = self.classify_error(e)
            logger.warning("%s request failed (%s): %s", self.name, error.kind, e)
            raise error from e

    @abstractmethod
    async def _generate(self, request: ModelRequest) -> ModelResponse:
        """Perform the backend call. Exceptions are classified by ``generate``."""

    def classify_error(self, exc: Exception) -> AgentError:
        """Map a provider exception to the error taxonomy."""
        if isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError, asyncio.TimeoutError)):
            return TransportError(f"Network error: {exc}")
        return ProviderError(str(exc) or type(exc).__name__)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"
