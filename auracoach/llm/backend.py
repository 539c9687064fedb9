"""Generative text backend.

The coaching stages depend only on the narrow ``GenerativeBackend`` shape:
system prompt plus chat turns in, text out. Which provider and model serve
the call is configuration.
"""

import asyncio
from dataclasses import dataclass
from typing import Literal, Protocol, TypeVar

from loguru import logger
from pydantic import BaseModel
from pydantic_ai import Agent
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.settings import ModelSettings

from auracoach.llm.model import get_model
from auracoach.llm.parser import parse_structured

T = TypeVar("T", bound=BaseModel)


class GenerativeBackendError(RuntimeError):
    """Raised when the provider call itself fails."""


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["user", "assistant"]
    content: str


@dataclass(frozen=True)
class CompletionOptions:
    temperature: float
    max_tokens: int
    model: str


class GenerativeBackend(Protocol):
    async def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        options: CompletionOptions,
    ) -> str: ...


def _to_history(system_prompt: str, turns: list[ChatMessage]) -> list[ModelMessage]:
    """Convert earlier turns to pydantic_ai message history.

    pydantic_ai skips the agent system prompt when history is supplied, so
    the system prompt is carried by the first request in the history.
    """
    history: list[ModelMessage] = []
    for index, turn in enumerate(turns):
        if turn.role == "user":
            parts = [UserPromptPart(content=turn.content)]
            if index == 0:
                parts.insert(0, SystemPromptPart(content=system_prompt))
            history.append(ModelRequest(parts=parts))
        else:
            if index == 0:
                history.append(ModelRequest(parts=[SystemPromptPart(content=system_prompt)]))
            history.append(ModelResponse(parts=[TextPart(content=turn.content)]))
    return history


class PydanticAIBackend:
    """Backend built on pydantic_ai agents with plain text output."""

    def __init__(self, provider: str = "openai", api_key: str | None = None) -> None:
        self.provider = provider
        self._api_key = api_key

    async def complete(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        options: CompletionOptions,
    ) -> str:
        """Run one completion.

        Args:
            system_prompt: Instructions for the model
            messages: Conversation turns, the last one must come from the user
            options: Sampling options and model name

        Returns:
            Raw model text

        Raises:
            ValueError: If the last message is not a user turn
            GenerativeBackendError: If the provider call fails
        """
        if not messages or messages[-1].role != "user":
            raise ValueError("The last message passed to the backend must be a user turn")

        *earlier, current = messages

        try:
            agent = Agent(
                model=get_model(self.provider, options.model, self._api_key),
                system_prompt=system_prompt,
                output_type=str,
            )
            result = await agent.run(
                current.content,
                message_history=_to_history(system_prompt, earlier) or None,
                model_settings=ModelSettings(temperature=options.temperature, max_tokens=options.max_tokens),
            )
        except (asyncio.CancelledError, TimeoutError):
            raise
        except Exception as e:
            logger.error(
                "Generative backend call failed",
                model=options.model,
                error_type=type(e).__name__,
            )
            raise GenerativeBackendError(f"Generative backend call failed: {type(e).__name__}: {e}") from e

        return result.output


async def complete_structured(
    backend: GenerativeBackend,
    *,
    system_prompt: str,
    messages: list[ChatMessage],
    options: CompletionOptions,
    schema: type[T],
    context: str,
    timeout: float,
) -> T:
    """Call the backend with a timeout and parse the reply into ``schema``.

    Raises:
        TimeoutError: If the backend does not answer within ``timeout`` seconds
        GenerativeBackendError: If the provider call fails
        StructuredParseError: If the reply holds no parseable JSON
        StructuredSchemaError: If the JSON does not match ``schema``
    """
    logger.debug(
        f"LLM call: {context}",
        model=options.model,
        turns=len(messages),
        timeout=timeout,
    )
    raw = await asyncio.wait_for(backend.complete(system_prompt, messages, options), timeout=timeout)
    return parse_structured(raw, context, schema)
