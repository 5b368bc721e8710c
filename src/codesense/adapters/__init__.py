"""
LLM provider adapters.

The OpenAI and Gemini adapters are imported eagerly; the Anthropic adapter
needs the optional 'anthropic' extra and is imported from
``codesense.adapters.anthropic`` on demand.
"""

from codesense.adapters.base import LLMAdapter
from codesense.adapters.gemini import GeminiAdapter
from codesense.adapters.openai import OpenAIAdapter
from codesense.adapters.registry import AdapterFactory, AdapterRegistry, default_registry

__all__ = [
    "LLMAdapter",
    "GeminiAdapter",
    "OpenAIAdapter",
    "AdapterRegistry",
    "AdapterFactory",
    "default_registry",
]
