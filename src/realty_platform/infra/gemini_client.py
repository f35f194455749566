"""Gemini model factory and message adapters for the AI closer agents."""

import copy

import google.generativeai as genai
from pydantic import BaseModel

from realty_platform.app.config import get_settings

# Pydantic emits these JSON Schema keys but Gemini's response_schema rejects them
_UNSUPPORTED_KEYS = {
    "$defs", "definitions", "title", "default", "examples",
    "additionalProperties", "maximum", "minimum", "exclusiveMaximum",
    "exclusiveMinimum", "maxLength", "minLength", "pattern",
    "maxItems", "minItems", "uniqueItems",
}

# Conversation roles stored on sessions -> Gemini chat roles
_ROLE_MAP = {"user": "user", "assistant": "model"}


def response_schema_for(model_cls: type[BaseModel]) -> dict:
    """Build a Gemini-compatible response schema from a Pydantic model.

    Uses the camelCase aliases (the shape the prompt asks for), inlines
    ``$ref`` definitions, collapses ``anyOf: [X, null]`` into a nullable X
    and strips the keys Gemini does not accept.
    """
    schema = copy.deepcopy(model_cls.model_json_schema(by_alias=True))
    defs = schema.pop("$defs", None) or {}

    def _resolve(node):
        if isinstance(node, list):
            return [_resolve(item) for item in node]
        if not isinstance(node, dict):
            return node
        if "$ref" in node:
            ref_name = node["$ref"].rsplit("/", 1)[-1]
            if ref_name in defs:
                return _resolve(copy.deepcopy(defs[ref_name]))
            return node
        if "anyOf" in node:
            variants = [v for v in node["anyOf"] if v.get("type") != "null"]
            if len(variants) == 1:
                resolved = _resolve(variants[0])
                resolved["nullable"] = True
                return resolved
        cleaned = {}
        for key, value in node.items():
            if key in _UNSUPPORTED_KEYS:
                continue
            if key == "properties":
                cleaned[key] = {name: _resolve(prop) for name, prop in value.items()}
            else:
                cleaned[key] = _resolve(value)
        return cleaned

    return _resolve(schema)


def to_gemini_history(turns: list[dict]) -> list[dict]:
    """Convert ``[{role, content}]`` turns into Gemini ``[{role, parts}]`` messages."""
    return [
        {"role": _ROLE_MAP.get(turn.get("role"), "user"), "parts": [turn.get("content", "")]}
        for turn in turns
    ]


def get_model(
    model_name: str | None = None,
    temperature: float = 0.7,
    json_mode: bool = False,
    response_schema: dict | None = None,
    system_instruction: str | None = None,
):
    """Return a configured Gemini GenerativeModel instance.

    Args:
        model_name: Gemini model identifier. Defaults to ``settings.gemini_model``.
        temperature: Generation temperature (0.0-2.0).
        json_mode: If True, constrain output to valid JSON.
        response_schema: Optional JSON Schema dict for structured output.
        system_instruction: Optional system-level instruction.
    """
    settings = get_settings()
    genai.configure(api_key=settings.gemini_api_key)

    generation_config = {"temperature": temperature}
    if json_mode:
        generation_config["response_mime_type"] = "application/json"
        if response_schema:
            generation_config["response_schema"] = response_schema

    return genai.GenerativeModel(
        model_name=model_name or settings.gemini_model,
        generation_config=generation_config,
        system_instruction=system_instruction,
    )
