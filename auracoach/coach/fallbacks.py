"""Fallback policy for generative stages.

Each stage operation declares one ``FallbackPolicy``: a table from failure
kind to a factory producing a schema-valid fallback value. Stages never
write their own catch-all handlers around backend calls.
"""

from collections.abc import Awaitable, Callable, Mapping
from enum import StrEnum
from typing import Any, Generic, TypeVar

from loguru import logger

from auracoach.llm.parser import StructuredParseError, StructuredSchemaError

T = TypeVar("T")


class FailureKind(StrEnum):
    TIMEOUT = "timeout"
    BACKEND = "backend"
    PARSE = "parse"
    SCHEMA = "schema"


def classify_failure(error: BaseException) -> FailureKind:
    """Map an exception raised while producing a stage result to a failure kind.

    Provider errors and anything unrecognised count as backend failures.
    """
    if isinstance(error, TimeoutError):
        return FailureKind.TIMEOUT
    # schema errors subclass parse errors
    if isinstance(error, StructuredSchemaError):
        return FailureKind.SCHEMA
    if isinstance(error, StructuredParseError):
        return FailureKind.PARSE
    return FailureKind.BACKEND


class FallbackPolicy(Generic[T]):
    def __init__(self, stage: str, table: Mapping[FailureKind, Callable[..., T]]):
        missing = set(FailureKind) - set(table)
        if missing:
            raise ValueError(f"Fallback policy for {stage} has no entry for: {', '.join(sorted(missing))}")
        self.stage = stage
        self.table = dict(table)

    @classmethod
    def uniform(cls, stage: str, factory: Callable[..., T]) -> "FallbackPolicy[T]":
        return cls(stage, {kind: factory for kind in FailureKind})

    def resolve(self, error: Exception, **context: Any) -> T:
        kind = classify_failure(error)
        logger.warning(
            "Stage fallback used",
            stage=self.stage,
            failure_kind=kind.value,
            error_type=type(error).__name__,
            error=str(error)[:300],
        )
        return self.table[kind](**context)

    async def run(self, call: Awaitable[T], **context: Any) -> T:
        """Await ``call``; on failure return the fallback built from ``context``."""
        try:
            return await call
        except Exception as e:
            return self.resolve(e, **context)
