"""
Conversation data model shared by the agent loop, the sanitizer and the
provider adapters.

A conversation is an ordered list of ``Turn`` values. Each turn has a role
(``user`` or ``model``) and a tuple of parts. Tool calls and tool results
are correlated by position: the n-th result part of a user turn answers
the n-th call part of the model turn right before it.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from codesense.tools.registry import ToolDefinition

USER = "user"
MODEL = "model"
ROLES = (USER, MODEL)


@dataclass(frozen=True)
class TextPart:
    """Plain text content."""

    text: str


@dataclass(frozen=True)
class ToolCallPart:
    """A model-issued request to invoke a named tool."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResultPart:
    """The outcome of a tool call: ``{"result": ...}`` or ``{"error": ...}``."""

    name: str
    response: dict[str, Any] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return "error" in self.response


Part = Union[TextPart, ToolCallPart, ToolResultPart]


@dataclass(frozen=True)
class Turn:
    """One role-tagged message unit in the conversation history."""

    role: str
    parts: tuple[Part, ...] = ()

    @classmethod
    def user(cls, text: str) -> Turn:
        return cls(role=USER, parts=(TextPart(text),))

    @classmethod
    def model(cls, text: str) -> Turn:
        return cls(role=MODEL, parts=(TextPart(text),))

    @classmethod
    def calls(cls, calls: list[FunctionCall]) -> Turn:
        return cls(
            role=MODEL,
            parts=tuple(ToolCallPart(name=c.name, args=dict(c.args)) for c in calls),
        )

    @classmethod
    def results(cls, results: list[ToolResultPart]) -> Turn:
        return cls(role=USER, parts=tuple(results))

    @property
    def is_valid(self) -> bool:
        return self.role in ROLES and bool(self.parts)

    @property
    def has_tool_calls(self) -> bool:
        return self.role == MODEL and any(isinstance(p, ToolCallPart) for p in self.parts)

    @property
    def has_tool_results(self) -> bool:
        return self.role == USER and any(isinstance(p, ToolResultPart) for p in self.parts)

    @property
    def tool_calls(self) -> list[ToolCallPart]:
        return [p for p in self.parts if isinstance(p, ToolCallPart)]

    @property
    def tool_results(self) -> list[ToolResultPart]:
        return [p for p in self.parts if isinstance(p, ToolResultPart)]

    @property
    def text(self) -> str:
        return "\n".join(p.text for p in self.parts if isinstance(p, TextPart))


@dataclass
class FunctionCall:
    """A tool call in the normalized provider response."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelResponse:
    """
    Normalized result of one provider completion.

    Exactly one of ``text`` or ``function_calls`` is meaningful: when the
    model asked for tools, the text is irrelevant.
    """

    text: str = ""
    function_calls: list[FunctionCall] = field(default_factory=list)


@dataclass
class ModelRequest:
    """A single logical request handed to a provider adapter."""

    system_instruction: str
    history: list[Turn]
    tools: list[ToolDefinition] = field(default_factory=list)


@dataclass
class ConversationRecord:
    """
    Minimal conversation entity persisted by the host.

    The agent core only produces message text for it and never reads it back.
    """

    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    title: str = "New Chat"
    timestamp: float = field(default_factory=time.time)
    messages: list[dict[str, str]] = field(default_factory=list)

    def add_message(self, text: str, sender: str) -> None:
        if not self.messages and sender == "user":
            self.title = text[:50]
        self.messages.append({"text": text, "sender": sender})
        self.timestamp = time.time()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "timestamp": self.timestamp,
            "messages": [dict(m) for m in self.messages],
        }
