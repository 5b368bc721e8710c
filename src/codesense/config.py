"""
Configuration for the agent loop.

Settings can be built programmatically, loaded from a YAML file, or
read from the environment (a ``.env`` file in the working directory is
loaded automatically).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from codesense.errors import ConfigurationError

load_dotenv()

# Provider-specific environment variables holding the API key, in lookup order
_API_KEY_ENV: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "openai": ("OPENAI_API_KEY",),
    "anthropic": ("ANTHROPIC_API_KEY",),
}


@dataclass
class AgentConfig:
    """
    Configuration for an agent session.

    Example YAML:
        provider: openai
        model: gpt-4o
        max_turns: 15
        max_history: 20
        destructive_tools:
          - writeFile
          - deleteFile
    """

    # LLM settings
    provider: str = "gemini"  # Backend name or alias
    model: str | None = None  # None = adapter default
    api_key: str | None = None
    base_url: str | None = None
    temperature: float | None = None
    max_tokens: int = 4096

    # Loop behavior
    max_turns: int = 15  # Provider cycles per run
    max_history: int = 20  # Turns retained between cycles
    max_state_retries: int = 2  # Reseeds allowed per run
    command_timeout: float = 120.0  # runTerminalCommand timeout (seconds)

    # Tools gated in dry-run mode
    destructive_tools: tuple[str, ...] = field(
        default_factory=lambda: ("writeFile", "deleteFile")
    )

    system_prompt: str | None = None  # Overrides the built-in instruction

    def __post_init__(self) -> None:
        self.destructive_tools = tuple(self.destructive_tools)
        self.validate()

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if any setting is out of range."""
        if not isinstance(self.provider, str) or not self.provider.strip():
            raise ConfigurationError("provider must be a non-empty string")
        for name in ("max_turns", "max_history", "max_tokens"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        if not isinstance(self.max_state_retries, int) or self.max_state_retries < 0:
            raise ConfigurationError(
                f"max_state_retries must be a non-negative integer, got {self.max_state_retries!r}"
            )
        if not isinstance(self.command_timeout, (int, float)) or self.command_timeout <= 0:
            raise ConfigurationError(
                f"command_timeout must be positive, got {self.command_timeout!r}"
            )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentConfig:
        """Create config from a dictionary. Unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: Path | str) -> AgentConfig:
        """Load config from a YAML file."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        return cls.from_dict(data or {})

    @classmethod
    def from_yaml_string(cls, content: str) -> AgentConfig:
        """Load config from a YAML string."""
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}") from e
        return cls.from_dict(data or {})

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        return {
            "provider": self.provider,
            "model": self.model,
            "api_key": self.api_key,
            "base_url": self.base_url,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "max_turns": self.max_turns,
            "max_history": self.max_history,
            "max_state_retries": self.max_state_retries,
            "command_timeout": self.command_timeout,
            "destructive_tools": list(self.destructive_tools),
            "system_prompt": self.system_prompt,
        }

    @classmethod
    def from_env(cls, **overrides: Any) -> AgentConfig:
        """Create config from environment variables."""
        provider = overrides.pop("provider", None) or os.environ.get(
            "CODESENSE_PROVIDER", "gemini"
        )
        values: dict[str, Any] = {
            "provider": provider,
            "model": os.environ.get("CODESENSE_MODEL"),
            "api_key": api_key_from_env(provider),
            "base_url": os.environ.get("CODESENSE_BASE_URL"),
        }
        values.update(overrides)
        return cls(**values)


def api_key_from_env(provider: str) -> str | None:
    """Look up the API key for ``provider``, falling back to ``CODESENSE_API_KEY``."""
    lowered = provider.lower()
    for backend, names in _API_KEY_ENV.items():
        if backend in lowered:
            for name in names:
                value = os.environ.get(name)
                if value:
                    return value
    return os.environ.get("CODESENSE_API_KEY")
