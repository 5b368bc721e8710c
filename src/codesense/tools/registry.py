"""Tool registry for the project-manipulation tools."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from codesense.errors import ToolExecutionError
from codesense.logging import get_logger

logger = get_logger("tools.registry")


@dataclass(frozen=True)
class ToolDefinition:
    """Standard tool definition for LLM function calling."""

    name: str
    description: str
    parameters: dict[str, Any]
    handler: Any = None  # async callable(args) -> dict
    destructive: bool = False

    @property
    def required(self) -> list[str]:
        return list(self.parameters.get("required", []))


class BaseTool(ABC):
    """Base class for built-in tools."""

    destructive: bool = False

    def __init__(self, cwd: str | None = None) -> None:
        self.cwd = cwd or "."

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]: ...

    @abstractmethod
    async def execute(self, args: dict[str, Any]) -> dict[str, Any]: ...

    async def run(self, args: dict[str, Any]) -> dict[str, Any]:
        """Execute the tool, turning expected failures into an error result."""
        try:
            return await self.execute(args)
        except ToolExecutionError as e:
            logger.warning("%s failed: %s", self.name, e)
            return e.to_result()

    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters,
            handler=self.run,
            destructive=self.destructive,
        )

    def _resolve_path(self, file_path: str) -> Path:
        """Resolve a file path, making it absolute if needed."""
        p = Path(file_path).expanduser()
        if p.is_absolute():
            return p
        return Path(self.cwd) / p

    def _require(self, args: dict[str, Any], key: str) -> str:
        value = args.get(key)
        if not isinstance(value, str) or not value:
            raise ToolExecutionError(f"{key} is required")
        return value


class ToolRegistry:
    """The tools one session may call, keyed by the name the model uses."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def register(self, tool: ToolDefinition) -> None:
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def destructive_names(self) -> list[str]:
        """Names of tools that modify the project."""
        return [t.name for t in self._tools.values() if t.destructive]

    async def execute(self, name: str, args: dict[str, Any]) -> dict[str, Any]:
        """
        Invoke a tool by name.

        Unknown tools produce an error result. Exceptions other than
        ``ToolExecutionError`` propagate to the caller.
        """
        tool = self._tools.get(name)
        if tool is None or tool.handler is None:
            return {"error": f"Unknown tool: {name}"}
        return await tool.handler(dict(args or {}))
