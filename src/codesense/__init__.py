"""
codesense - an LLM agent that reviews, fixes and builds code in a local project.

The model drives a small set of project tools (list, read, write and
delete files, create directories, run shell commands) through a
multi-turn tool-calling conversation. Gemini, OpenAI and Anthropic
backends are supported.

Example:
    from codesense import AgentCallbacks, SessionPool

    pool = SessionPool()
    await pool.submit(
        "main",
        "Why does the login test fail?",
        "./my-app",
        AgentCallbacks(on_text=print),
    )
"""

from codesense.adapters.base import LLMAdapter
from codesense.adapters.registry import AdapterFactory, AdapterRegistry, default_registry
from codesense.agent import AgentResult, AgentSession, LoopState, OperatingMode
from codesense.config import AgentConfig
from codesense.errors import (
    AgentAbortedError,
    AgentError,
    AuthenticationError,
    ConfigurationError,
    ConversationStateError,
    ProviderError,
    ToolExecutionError,
    TransportError,
)
from codesense.events import (
    AgentCallbacks,
    DoneEvent,
    ErrorEvent,
    EventBus,
    TextEvent,
    ToolCallEvent,
    ToolResultEvent,
)
from codesense.gate import InteractionGate, looks_like_question
from codesense.history import sanitize_history, trim_history
from codesense.logging import get_logger, setup_logging
from codesense.models import (
    ConversationRecord,
    FunctionCall,
    ModelRequest,
    ModelResponse,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    Turn,
)
from codesense.sessions import SessionPool
from codesense.tools import ToolDefinition, ToolRegistry, create_project_tools

__version__ = "0.1.0"

__all__ = [
    # Agent
    "AgentSession",
    "AgentResult",
    "AgentConfig",
    "LoopState",
    "OperatingMode",
    "SessionPool",
    "InteractionGate",
    "looks_like_question",
    # Models
    "Turn",
    "TextPart",
    "ToolCallPart",
    "ToolResultPart",
    "FunctionCall",
    "ModelRequest",
    "ModelResponse",
    "ConversationRecord",
    "sanitize_history",
    "trim_history",
    # Tools
    "ToolDefinition",
    "ToolRegistry",
    "create_project_tools",
    # Adapters
    "LLMAdapter",
    "AdapterRegistry",
    "AdapterFactory",
    "default_registry",
    # Events
    "EventBus",
    "AgentCallbacks",
    "TextEvent",
    "ToolCallEvent",
    "ToolResultEvent",
    "DoneEvent",
    "ErrorEvent",
    # Errors
    "AgentError",
    "AgentAbortedError",
    "AuthenticationError",
    "ConfigurationError",
    "ConversationStateError",
    "ProviderError",
    "ToolExecutionError",
    "TransportError",
    # Logging
    "setup_logging",
    "get_logger",
]
