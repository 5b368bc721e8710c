"""
Error taxonomy for the agent runtime.

Every error carries a ``kind`` tag. Hosts choose a remedy from the tag
(retry, reconfigure credentials, reset the conversation) and never from
the message text.
"""

from __future__ import annotations

from typing import Any


class AgentError(Exception):
    """Base class for all codesense errors."""

    kind: str = "internal"


class ToolExecutionError(AgentError):
    """Raised inside a tool; always converted to an error-shaped result."""

    kind = "tool"

    def to_result(self) -> dict[str, Any]:
        return {"success": False, "error": str(self)}


class ConversationStateError(AgentError):
    """The provider rejected the turn ordering or the tool-call arguments."""

    kind = "state"


class TransportError(AgentError):
    """Network or connectivity failure while talking to the provider."""

    kind = "network"


class ConfigurationError(AgentError):
    """Unsupported backend or invalid configuration. Not retryable."""

    kind = "config"


class ProviderError(AgentError):
    """Any other provider-side failure (rate limits, server errors, ...)."""

    kind = "provider"


class AuthenticationError(ProviderError):
    """The provider rejected the API key."""

    kind = "auth"


class AgentAbortedError(AgentError):
    """Raised when the session is cancelled via ``abort()``."""

    kind = "aborted"
