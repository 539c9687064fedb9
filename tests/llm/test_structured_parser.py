"""Tests for structured parsing of generative model output."""

import pytest
from pydantic import BaseModel

from auracoach.llm.parser import (
    StructuredParseError,
    StructuredSchemaError,
    extract_json_text,
    parse_structured,
)


class Verdict(BaseModel):
    label: str
    score: float


def test_bare_object_is_parsed():
    assert parse_structured('  {"label": "ok", "score": 0.4}\n', "test") == {"label": "ok", "score": 0.4}


def test_fenced_block_wins_over_surrounding_text():
    raw = 'Sure! Here is the result:\n```json\n{"label": "fenced", "score": 1}\n```\nLet me know.'
    assert parse_structured(raw, "test") == {"label": "fenced", "score": 1}


def test_untagged_fence_is_accepted():
    raw = '```\n{"label": "plain", "score": 2}\n```'
    assert extract_json_text(raw, "test") == '{"label": "plain", "score": 2}'


def test_prose_without_json_raises_parse_error():
    with pytest.raises(StructuredParseError) as exc_info:
        parse_structured("I think you should rest today.", "diagnostic")
    assert "diagnostic" in str(exc_info.value)
    assert "I think you should rest today." in str(exc_info.value)
    assert exc_info.value.raw_text == "I think you should rest today."


def test_malformed_json_raises_parse_error():
    with pytest.raises(StructuredParseError):
        parse_structured('{"label": "ok", "score": }', "test")


def test_json_array_is_rejected():
    with pytest.raises(StructuredParseError):
        parse_structured('```json\n[1, 2, 3]\n```', "test")


def test_schema_validation_returns_model():
    result = parse_structured('{"label": "ok", "score": "0.5"}', "test", Verdict)
    assert isinstance(result, Verdict)
    assert result.score == 0.5


def test_schema_mismatch_raises_schema_error():
    """A schema error is still a parse error, so callers catching parse errors see it."""
    with pytest.raises(StructuredSchemaError) as exc_info:
        parse_structured('{"label": "ok"}', "guardrail", Verdict)
    assert isinstance(exc_info.value, StructuredParseError)
    assert "Verdict" in str(exc_info.value)
