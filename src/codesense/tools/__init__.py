"""Project-manipulation tools exposed to the model."""
from __future__ import annotations

from codesense.tools.create_directory import CreateDirectoryTool
from codesense.tools.delete_file import DeleteFileTool
from codesense.tools.list_directory import ListDirectoryTool
from codesense.tools.read_file import ReadFileTool
from codesense.tools.registry import BaseTool, ToolDefinition, ToolRegistry
from codesense.tools.run_command import RunCommandTool
from codesense.tools.write_file import ModifiedNotifier, WriteFileTool

__all__ = [
    "BaseTool",
    "ToolRegistry",
    "ToolDefinition",
    "ListDirectoryTool",
    "ReadFileTool",
    "WriteFileTool",
    "DeleteFileTool",
    "CreateDirectoryTool",
    "RunCommandTool",
    "ModifiedNotifier",
    "create_project_tools",
]


def create_project_tools(
    cwd: str | None = None,
    notify_modified: ModifiedNotifier | None = None,
    command_timeout: float = 120.0,
) -> ToolRegistry:
    """Create a registry holding the six project tools bound to ``cwd``."""
    registry = ToolRegistry()
    tools: list[BaseTool] = [
        ListDirectoryTool(cwd),
        ReadFileTool(cwd),
        WriteFileTool(cwd, notify_modified=notify_modified),
        DeleteFileTool(cwd),
        CreateDirectoryTool(cwd),
        RunCommandTool(cwd, timeout=command_timeout),
    ]
    for tool in tools:
        registry.register(tool.definition())
    return registry
