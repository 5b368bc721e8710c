"""Cross-provider translation utilities: schemas, call ids, tool payloads."""
from __future__ import annotations

import json
from typing import Any

from google.genai import types

from codesense.errors import ConversationStateError

# JSON-schema primitive kinds <-> Gemini schema types
_JSON_TO_GEMINI: dict[str, types.Type] = {
    "string": types.Type.STRING,
    "number": types.Type.NUMBER,
    "integer": types.Type.INTEGER,
    "boolean": types.Type.BOOLEAN,
    "object": types.Type.OBJECT,
    "array": types.Type.ARRAY,
}
_GEMINI_TO_JSON: dict[str, str] = {t.value: name for name, t in _JSON_TO_GEMINI.items()}


def to_gemini_schema(schema: dict[str, Any]) -> types.Schema:
    """Convert a JSON-schema dict into a Gemini ``types.Schema``."""
    kind = str(schema.get("type", "object")).lower()
    if kind not in _JSON_TO_GEMINI:
        raise ValueError(f"Unsupported schema type: {kind}")

    kwargs: dict[str, Any] = {"type": _JSON_TO_GEMINI[kind]}
    if schema.get("description"):
        kwargs["description"] = schema["description"]
    if schema.get("enum"):
        kwargs["enum"] = [str(v) for v in schema["enum"]]
    if "properties" in schema:
        kwargs["properties"] = {
            key: to_gemini_schema(value) for key, value in schema["properties"].items()
        }
    if schema.get("required"):
        kwargs["required"] = list(schema["required"])
    if "items" in schema:
        kwargs["items"] = to_gemini_schema(schema["items"])
    return types.Schema(**kwargs)


def from_gemini_schema(schema: types.Schema) -> dict[str, Any]:
    """Convert a Gemini ``types.Schema`` back into a JSON-schema dict."""
    raw = schema.type.value if isinstance(schema.type, types.Type) else str(schema.type)
    result: dict[str, Any] = {"type": _GEMINI_TO_JSON[raw.upper()]}
    if schema.description:
        result["description"] = schema.description
    if schema.enum:
        result["enum"] = list(schema.enum)
    if schema.properties is not None:
        result["properties"] = {
            key: from_gemini_schema(value) for key, value in schema.properties.items()
        }
    if schema.required:
        result["required"] = list(schema.required)
    if schema.items is not None:
        result["items"] = from_gemini_schema(schema.items)
    return result


def tool_call_id(turn_index: int, position: int) -> str:
    """Synthesize a stable id for the ``position``-th call of a model turn."""
    return f"call_{turn_index}_{position}"


def serialize_result(response: dict[str, Any]) -> str:
    """Serialize a tool response part for text-only tool result channels."""
    return json.dumps(response, ensure_ascii=False, default=str)


def parse_arguments(raw: str | dict[str, Any] | None) -> dict[str, Any]:
    """
    Decode tool-call arguments returned as JSON text.

    Malformed arguments mean the conversation can no longer be replayed,
    so they surface as a conversation-state error.
    """
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return dict(raw)
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConversationStateError(f"Invalid tool call arguments: {e}") from e
    if not isinstance(value, dict):
        raise ConversationStateError("Tool call arguments must be a JSON object")
    return value
