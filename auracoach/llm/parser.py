"""Structured response parsing for generative model output.

Model output is untrusted free text. It may be bare JSON or JSON wrapped in a
markdown code fence (optionally tagged ``json``). Every stage that talks to
the generative backend goes through ``parse_structured`` so no other module
needs its own extraction regex.
"""

import json
import re
from typing import Any, TypeVar, overload

from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_PREVIEW_CHARS = 200


class StructuredParseError(ValueError):
    """Raised when model output does not contain parseable JSON."""

    def __init__(self, message: str, raw_text: str):
        self.raw_text = raw_text
        super().__init__(message)


class StructuredSchemaError(StructuredParseError):
    """Raised when model output is valid JSON but has the wrong shape."""


def _preview(text: str) -> str:
    return text[:_PREVIEW_CHARS]


def extract_json_text(raw_text: str, context: str) -> str:
    """Pull the JSON candidate out of raw model output.

    Order: a fenced block wins; otherwise the trimmed text is used only if it
    looks like a bare object.

    Raises:
        StructuredParseError: If no JSON candidate is present
    """
    trimmed = raw_text.strip()
    fenced = _FENCED_BLOCK.search(trimmed)
    if fenced:
        return fenced.group(1).strip()
    if trimmed.startswith("{") and trimmed.endswith("}"):
        return trimmed
    raise StructuredParseError(
        f"No valid JSON found in {context} response. Raw content: {_preview(raw_text)}...",
        raw_text,
    )


@overload
def parse_structured(raw_text: str, context: str) -> dict[str, Any]: ...


@overload
def parse_structured(raw_text: str, context: str, schema: type[T]) -> T: ...


def parse_structured(raw_text: str, context: str, schema: type[T] | None = None) -> dict[str, Any] | T:
    """Parse raw model output into a JSON object, optionally validated by a schema.

    Args:
        raw_text: Raw text returned by the generative backend
        context: Short label of the calling stage, used in error messages
        schema: Optional pydantic model the object must satisfy

    Returns:
        The parsed JSON object, or a validated ``schema`` instance

    Raises:
        StructuredParseError: If the text holds no parseable JSON object
        StructuredSchemaError: If the JSON does not satisfy ``schema``
    """
    json_text = extract_json_text(raw_text, context)

    try:
        parsed = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise StructuredParseError(
            f"Failed to parse JSON in {context}: {e.msg}. Raw: {_preview(json_text)}...",
            raw_text,
        ) from e

    if not isinstance(parsed, dict):
        raise StructuredParseError(
            f"Expected a JSON object in {context}, got {type(parsed).__name__}. Raw: {_preview(json_text)}...",
            raw_text,
        )

    if schema is None:
        return parsed

    try:
        return schema.model_validate(parsed)
    except ValidationError as e:
        raise StructuredSchemaError(
            f"{context} response does not match {schema.__name__}: {e.error_count()} error(s). Raw: {_preview(json_text)}...",
            raw_text,
        ) from e
