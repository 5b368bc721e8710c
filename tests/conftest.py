"""Shared pytest fixtures for codesense tests."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Union

import pytest

from codesense.adapters.base import LLMAdapter
from codesense.models import FunctionCall, ModelRequest, ModelResponse

# A scripted step: a canned response, an exception to raise, or a coroutine
# function that receives the request (used to block mid-call).
ScriptStep = Union[ModelResponse, BaseException, Callable[[ModelRequest], Awaitable[ModelResponse]]]


class ScriptedAdapter(LLMAdapter):
    """Adapter that replays a fixed script and records every request."""

    name = "scripted"
    default_model = "scripted-1"

    def __init__(self, script: list[ScriptStep] | None = None) -> None:
        super().__init__()
        self.script = list(script or [])
        self.requests: list[ModelRequest] = []

    async def _generate(self, request: ModelRequest) -> ModelResponse:
        self.requests.append(request)
        if not self.script:
            return ModelResponse(text="Done.")
        step = self.script.pop(0)
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return await step(request)
        return step


def text_reply(text: str) -> ModelResponse:
    return ModelResponse(text=text)


def call_reply(*calls: tuple[str, dict[str, Any]]) -> ModelResponse:
    return ModelResponse(function_calls=[FunctionCall(name=n, args=a) for n, a in calls])


@pytest.fixture
def scripted() -> type[ScriptedAdapter]:
    """The scripted adapter class."""
    return ScriptedAdapter


@pytest.fixture
def text() -> Callable[[str], ModelResponse]:
    """Build a text-only model response."""
    return text_reply


@pytest.fixture
def calls() -> Callable[..., ModelResponse]:
    """Build a tool-call model response from (name, args) pairs."""
    return call_reply


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small project tree with source, docs and ignored folders."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("print('hi')\n")
    (tmp_path / "src" / "util.js").write_text("module.exports = {};\n")
    (tmp_path / "README.md").write_text("# Demo\n")
    (tmp_path / "logo.png").write_bytes(b"\x89PNG")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "index.js").write_text("x")
    (tmp_path / "dist").mkdir()
    (tmp_path / "dist" / "bundle.js").write_text("x")
    return tmp_path
