"""listDirectory tool - recursively enumerate project source files."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from codesense.logging import get_logger
from codesense.tools.registry import BaseTool

logger = get_logger("tools.list_directory")

# Only files with these extensions are reported
SOURCE_EXTENSIONS = frozenset({
    ".js", ".jsx", ".ts", ".tsx", ".html", ".css", ".json", ".md",
    ".py", ".toml", ".yaml", ".yml", ".txt",
})

# Paths whose relative form contains any of these substrings are skipped
SKIP_SUBSTRINGS = ("node_modules", "dist", "build", ".git", "__pycache__", ".venv")


class ListDirectoryTool(BaseTool):
    """Recursively list source files under a directory."""

    @property
    def name(self) -> str:
        return "listDirectory"

    @property
    def description(self) -> str:
        return (
            "Lists all source files in a directory, recursively. "
            "Dependency, build and version-control folders are skipped."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "directory": {
                    "type": "string",
                    "description": "Directory path to scan",
                },
            },
            "required": ["directory"],
        }

    async def execute(self, args: dict[str, Any]) -> dict[str, Any]:
        directory = args.get("directory") or "."
        root = self._resolve_path(directory)

        files: list[str] = []
        self._scan(root, root, files)
        logger.info("Found %d files in %s", len(files), root)
        return {"files": files}

    def _scan(self, root: Path, current: Path, files: list[str]) -> None:
        try:
            entries = sorted(os.scandir(current), key=lambda e: e.name)
        except OSError as e:
            logger.warning("Error scanning directory %s: %s", current, e)
            return

        for entry in entries:
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()
            if any(s in relative for s in SKIP_SUBSTRINGS):
                continue
            try:
                if entry.is_dir():
                    self._scan(root, full_path, files)
                elif entry.is_file() and full_path.suffix in SOURCE_EXTENSIONS:
                    files.append(str(full_path))
            except OSError as e:
                logger.warning("Skipping %s: %s", full_path, e)
