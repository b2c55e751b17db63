from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from escape_room.core.context import RenderedContext


@dataclass(frozen=True, slots=True)
class JsonSchema:
    """Minimal JSON Schema wrapper for OpenAI-style structured outputs."""

    name: str
    schema: dict[str, Any]
    strict: bool = True


@dataclass(frozen=True, slots=True)
class AgentReply:
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


class Agent(Protocol):
    """One request/response exchange with a language model. No retries, no timeouts."""

    name: str

    async def complete(
        self,
        *,
        prompt: str,
        ctx: RenderedContext,
        structured_output: JsonSchema | None = None,
    ) -> AgentReply:  # pragma: no cover
        ...
