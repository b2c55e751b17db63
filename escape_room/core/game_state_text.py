from __future__ import annotations

from escape_room.api.models import GameState, Item
from escape_room.assets.registry import Scenario
from escape_room.core.engine import visible_item_ids


def catalog_items(state: GameState) -> dict[str, Item]:
    """Items the recognizer may refer to: everything not hidden, in any location."""

    return {item_id: item for item_id, item in state.items.items() if not item.hidden}


def item_catalog_text(state: GameState, scenario: Scenario) -> str:
    """LLM-friendly catalog: one line per addressable item, template order.

    Never includes descriptions or clue text, only what the player could name.
    """

    items = catalog_items(state)
    lines: list[str] = []
    for item_id in scenario.item_order:
        item = items.get(item_id)
        if item is None:
            continue
        line = f"- id: {item.id} | name: {item.name}"
        if item.aliases:
            line += f" | aliases: {', '.join(item.aliases)}"
        if item.concept:
            line += f" | concept: {item.concept}"
        lines.append(line)
    return "\n".join(lines)


def _names(state: GameState, ids: list[str]) -> str:
    return ", ".join(state.items[i].name for i in ids) if ids else "none"


def state_summary_text(state: GameState, scenario: Scenario) -> str:
    """Post-transition summary handed to the narrator."""

    lines = [
        f"Current room: {state.room_description}",
        f"Visible items: {_names(state, visible_item_ids(state, scenario))}",
        f"Inventory: {_names(state, state.inventory)}",
        f"Result of the last action: {state.last_message or 'none'}",
    ]
    return "\n".join(lines)
