from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from autogen import ConversableAgent

from escape_room.agents.autogen_config import llm_config_from_env
from escape_room.agents.base import AgentReply, JsonSchema
from escape_room.core.context import RenderedContext


logger = logging.getLogger(__name__)


def _extract_last_content(messages: object) -> str:
    """Extract the last message content from AG2 chat history."""

    if not isinstance(messages, list):
        return ""

    for msg in reversed(messages):
        if isinstance(msg, dict):
            content = msg.get("content")
            if isinstance(content, str) and content.strip():
                return content.strip()
    return ""


@dataclass(slots=True)
class Ag2ChatAgent:
    """AG2 agent wrapper using the documented `autogen` API.

    Context rendering is ours (RenderedContext); transport and model config
    are AG2's. Environment variables supported:
    - OPENAI_API_KEY (optional if OPENAI_BASE_URL is set)
    - OPENAI_BASE_URL (for OpenAI-compatible servers like Ollama, e.g. http://127.0.0.1:11434/v1)
    """

    name: str
    model: str
    temperature: float = 0.2
    max_tokens: int | None = None

    async def complete(
        self,
        *,
        prompt: str,
        ctx: RenderedContext,
        structured_output: JsonSchema | None = None,
    ) -> AgentReply:
        llm_config = llm_config_from_env(model=self.model, temperature=self.temperature, max_tokens=self.max_tokens)

        agent = ConversableAgent(
            name=self.name,
            system_message=ctx.system_prompt,
            llm_config=llm_config,
            human_input_mode="NEVER",
        )

        # AG2 forwards unknown kwargs through to the OpenAI client.
        extra: dict[str, Any] = {}
        if structured_output is not None:
            extra["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": structured_output.name,
                    "schema": structured_output.schema,
                    "strict": structured_output.strict,
                },
            }

        logger.debug("agent %s -> model %s (structured=%s)", self.name, self.model, structured_output is not None)
        result = agent.run(message=prompt, max_turns=1, **extra)
        result.process()

        text = _extract_last_content(list(result.messages))
        if not text:
            summary = result.summary
            if isinstance(summary, str):
                text = summary.strip()

        return AgentReply(content=text, metadata={"model": self.model, "structured": structured_output is not None})
