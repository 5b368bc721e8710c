"""
Adapter registry: resolve a provider name to a backend and build adapters.

Example:
    from codesense.adapters.registry import default_registry

    registry = default_registry()
    registry.resolve("Google Gemini")  # -> "gemini"
    adapter = registry.create("gpt-4o", config)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from codesense.errors import AgentError, ConfigurationError
from codesense.logging import get_logger

if TYPE_CHECKING:
    from codesense.adapters.base import LLMAdapter
    from codesense.config import AgentConfig

logger = get_logger("adapters.registry")

# Type for adapter factory functions: (config) -> LLMAdapter
AdapterFactory = Callable[["AgentConfig"], "LLMAdapter"]


class _AdapterEntry:
    """Internal entry holding a factory and the names that select it."""

    __slots__ = ("name", "factory", "aliases", "source")

    def __init__(
        self,
        name: str,
        factory: AdapterFactory | None = None,
        aliases: tuple[str, ...] = (),
        source: str = "",
    ) -> None:
        self.name = name
        self.factory = factory
        self.aliases = aliases
        self.source = source

    @property
    def implemented(self) -> bool:
        return self.factory is not None

    def matches(self, provider: str) -> bool:
        return any(key in provider for key in (self.name, *self.aliases))


class AdapterRegistry:
    """
    A registry of LLM backends.

    Each ``create()`` call runs the factory again, so every session gets its
    own adapter instance. Provider strings are matched case-insensitively,
    first by exact name, then by name or alias substring.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _AdapterEntry] = {}

    def register_factory(
        self,
        name: str,
        factory: AdapterFactory,
        aliases: Iterable[str] = (),
        source: str = "",
    ) -> None:
        """
        Register an adapter factory.

        Args:
            name: Canonical backend name (e.g., "openai")
            factory: Callable that builds an LLMAdapter from an AgentConfig
            aliases: Extra substrings that select this backend
            source: Who registered it

        Raises:
            ValueError: If name is empty
        """
        if not name:
            raise ValueError("Adapter name must not be empty")

        key = name.lower()
        if key in self._entries:
            logger.debug("Overriding adapter factory: %s", key)

        self._entries[key] = _AdapterEntry(
            name=key,
            factory=factory,
            aliases=tuple(a.lower() for a in aliases),
            source=source,
        )
        logger.debug("Registered adapter factory: %s (source=%s)", key, source or "manual")

    def register(
        self,
        name: str,
        adapter: LLMAdapter,
        aliases: Iterable[str] = (),
        source: str = "",
    ) -> None:
        """Register a prebuilt adapter instance; ``create()`` returns it as-is."""
        self.register_factory(name, lambda _config: adapter, aliases=aliases, source=source)

    def mark_unimplemented(self, name: str, aliases: Iterable[str] = ()) -> None:
        """Reserve a provider name that resolves but cannot be created yet."""
        key = name.lower()
        self._entries[key] = _AdapterEntry(
            name=key, aliases=tuple(a.lower() for a in aliases)
        )

    def resolve(self, provider: str) -> str:
        """
        Resolve a provider string to a registered backend name.

        Raises:
            ConfigurationError: If nothing matches
        """
        lowered = (provider or "").strip().lower()
        if lowered in self._entries:
            return lowered
        for entry in self._entries.values():
            if lowered and entry.matches(lowered):
                return entry.name
        available = ", ".join(self._entries) or "(none)"
        raise ConfigurationError(
            f"Unsupported provider: {provider!r}. Available: {available}"
        )

    def create(self, provider: str, config: AgentConfig) -> LLMAdapter:
        """
        Build a fresh adapter for ``provider``.

        Raises:
            ConfigurationError: Unknown or unimplemented provider, or the
                backend could not be constructed (missing SDK or credentials)
        """
        name = self.resolve(provider)
        entry = self._entries[name]
        if entry.factory is None:
            raise ConfigurationError(f"{name} provider not yet implemented")

        logger.debug("Creating adapter '%s'", name)
        try:
            return entry.factory(config)
        except AgentError:
            raise
        except Exception as e:
            raise ConfigurationError(f"Could not create {name} adapter: {e}") from e

    def unregister(self, name: str) -> bool:
        """Remove a registered backend. Returns False if not found."""
        if self._entries.pop(name.lower(), None) is None:
            return False
        logger.debug("Unregistered adapter: %s", name)
        return True

    def has(self, name: str) -> bool:
        """Check if a backend is registered under ``name``."""
        return name.lower() in self._entries

    def is_implemented(self, name: str) -> bool:
        entry = self._entries.get(name.lower())
        return entry is not None and entry.implemented

    def list_adapters(self) -> list[str]:
        """List all registered backend names."""
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __repr__(self) -> str:
        return f"AdapterRegistry([{', '.join(self._entries)}])"


# ---------------------------------------------------------------------------
# Built-in backends
# ---------------------------------------------------------------------------


def _create_gemini(config: AgentConfig) -> LLMAdapter:
    from codesense.adapters.gemini import GeminiAdapter

    return GeminiAdapter(
        api_key=config.api_key,
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def _create_openai(config: AgentConfig) -> LLMAdapter:
    from codesense.adapters.openai import OpenAIAdapter

    return OpenAIAdapter(
        api_key=config.api_key,
        base_url=config.base_url,
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def _create_anthropic(config: AgentConfig) -> LLMAdapter:
    from codesense.adapters.anthropic import AnthropicAdapter

    return AnthropicAdapter(
        api_key=config.api_key,
        base_url=config.base_url,
        model=config.model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )


def default_registry() -> AdapterRegistry:
    """Registry with the built-in backends (groq is reserved, not implemented)."""
    registry = AdapterRegistry()
    registry.register_factory("gemini", _create_gemini, aliases=("google",), source="builtin")
    registry.register_factory("openai", _create_openai, aliases=("gpt",), source="builtin")
    registry.register_factory(
        "anthropic", _create_anthropic, aliases=("claude",), source="builtin"
    )
    registry.mark_unimplemented("groq", aliases=("llama",))
    return registry
