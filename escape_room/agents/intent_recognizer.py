from __future__ import annotations

import json
import re

from escape_room.agents.base import Agent, JsonSchema
from escape_room.api.models import ActionName, GameState, Intent, Item
from escape_room.assets.registry import Scenario, resolve_item_id
from escape_room.core.context import BaseAgentContext, PlayerContext, RenderedContext, WorldContext, compose_context
from escape_room.core.engine import ROOM_TARGETS
from escape_room.core.game_state_text import catalog_items, item_catalog_text
from escape_room.errors import IntentRecognitionError
from escape_room.prompts import load_prompt


# Verbs the recognizer tends to produce outside the closed action set.
ACTION_SYNONYMS: dict[str, ActionName] = {
    "use": ActionName.unlock,
    "enter": ActionName.unlock,
    "examine": ActionName.look,
    "inspect": ActionName.look,
    "get": ActionName.take,
    "inv": ActionName.inventory,
}

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


INTENT_SCHEMA = JsonSchema(
    name="intent",
    schema={
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "action": {"type": "string", "enum": [a.value for a in ActionName]},
            "object": {"type": "string"},
            "secondaryObject": {"type": ["string", "null"]},
        },
        "required": ["action", "object", "secondaryObject"],
    },
    strict=True,
)


def strip_code_fences(s: str) -> str:
    s = s.strip()
    m = _FENCE.match(s)
    return m.group(1).strip() if m else s


def _parse_action(raw: object) -> ActionName:
    if not isinstance(raw, str):
        return ActionName.unknown
    key = raw.strip().casefold()
    if key in ACTION_SYNONYMS:
        return ACTION_SYNONYMS[key]
    try:
        return ActionName(key)
    except ValueError:
        return ActionName.unknown


def _resolve_reference(raw: object, *, items: dict[str, Item]) -> str:
    if not isinstance(raw, str):
        return ""
    text = raw.strip()
    if text.casefold() in ROOM_TARGETS:
        return "room"
    # Unresolved strings pass through verbatim: they may be codes.
    return resolve_item_id(items, text) or text


def parse_intent(text: str, *, items: dict[str, Item]) -> Intent:
    """Parse the recognizer's reply into an Intent.

    Expected strict JSON object:
        {"action": "...", "object": "...", "secondaryObject": "..." | null}
    `target`/`secondary_object` spellings are accepted too. Non-JSON output is
    rejected; unknown actions become `unknown` rather than an error.
    """

    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise IntentRecognitionError(f"Invalid JSON from intent recognizer: {e}") from e

    if not isinstance(data, dict):
        raise IntentRecognitionError("Expected a JSON object from intent recognizer")

    obj = data.get("object")
    if obj is None:
        obj = data.get("target")
    secondary = data.get("secondaryObject")
    if secondary is None:
        secondary = data.get("secondary_object")

    resolved_secondary = _resolve_reference(secondary, items=items) or None
    return Intent(
        action=_parse_action(data.get("action")),
        target=_resolve_reference(obj, items=items),
        secondary=resolved_secondary,
    )


def intent_context(*, state: GameState, scenario: Scenario) -> RenderedContext:
    return compose_context(
        base=BaseAgentContext(system_prompt=load_prompt("intent_recognizer.txt")),
        world=WorldContext(title="Item catalog", body=item_catalog_text(state, scenario)),
        player=PlayerContext(abilities=tuple(state.player.abilities)),
    )


async def recognize_intent(*, agent: Agent, user_input: str, state: GameState, scenario: Scenario) -> Intent:
    """Ask the recognizer for one Intent. Any failure aborts the turn."""

    ctx = intent_context(state=state, scenario=scenario)
    try:
        reply = await agent.complete(prompt=user_input, ctx=ctx, structured_output=INTENT_SCHEMA)
    except Exception as e:
        raise IntentRecognitionError(f"Intent recognizer unavailable: {e}") from e

    if not reply.content.strip():
        raise IntentRecognitionError("Intent recognizer returned an empty response")
    return parse_intent(reply.content, items=catalog_items(state))
