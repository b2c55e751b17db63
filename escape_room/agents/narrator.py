from __future__ import annotations

import json

from escape_room.agents.base import Agent, JsonSchema
from escape_room.api.models import GameState
from escape_room.assets.registry import Scenario
from escape_room.core.context import BaseAgentContext, WorldContext, compose_context
from escape_room.core.game_state_text import state_summary_text
from escape_room.errors import NarrativeGenerationError
from escape_room.prompts import load_prompt


NARRATIVE_FALLBACK = "Nothing seems to happen."


NARRATIVE_SCHEMA = JsonSchema(
    name="narrative",
    schema={
        "type": "object",
        "properties": {
            "narrative": {
                "type": "string",
                "description": "Two or three sentences of third-person prose.",
                "minLength": 1,
                "maxLength": 2000,
            }
        },
        "required": ["narrative"],
        "additionalProperties": False,
    },
    strict=True,
)


def _narrative_prompt(*, state: GameState, scenario: Scenario, user_input: str) -> str:
    return "\n".join(
        [
            "# Current game state",
            state_summary_text(state, scenario),
            "",
            "# The player's last action",
            f'"{user_input}"',
            "",
            "# Describe what happens next.",
        ]
    )


def extract_narrative(text: str) -> str:
    """Structured JSON when the model honoured the schema, otherwise the raw text."""

    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            narrative = parsed.get("narrative")
            if isinstance(narrative, str) and narrative.strip():
                return narrative.strip()
    except json.JSONDecodeError:
        pass
    return text.strip()


async def generate_narrative(*, agent: Agent, state: GameState, scenario: Scenario, user_input: str) -> str:
    ctx = compose_context(
        base=BaseAgentContext(system_prompt=load_prompt("narrator.txt")),
        world=WorldContext(title="Scenario", body=scenario.title),
    )
    prompt = _narrative_prompt(state=state, scenario=scenario, user_input=user_input)

    try:
        reply = await agent.complete(prompt=prompt, ctx=ctx, structured_output=NARRATIVE_SCHEMA)
    except Exception as e:
        raise NarrativeGenerationError(f"Narrator unavailable: {e}") from e

    return extract_narrative(reply.content) or NARRATIVE_FALLBACK
