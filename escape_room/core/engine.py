"""State transition engine.

`apply_intent(state=..., intent=..., scenario=...)` is a pure function: it
clones the input, mutates only the clone, and returns it with exactly one
outcome message. No clock, randomness or I/O, so identical input always gives
an identical result.

Every resolved dimension is one-way: locked -> unlocked, available -> taken,
hidden -> revealed, undiscovered -> discovered, in_progress -> escaped.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from escape_room.api.models import ActionName, GameState, Intent, Item
from escape_room.assets.registry import HintCondition, HintStep, Scenario
from escape_room.errors import UnknownIntentError
from escape_room.fsm import EscapeFSM


ROOM_TARGETS = frozenset({"room", "around"})

MSG_LOOK_PROMPT = "What would you like to look at?"
MSG_TAKE_PROMPT = "What would you like to pick up?"
MSG_OPEN_PROMPT = "What would you like to open?"
MSG_UNLOCK_PROMPT = "What would you like to unlock, or which code do you enter?"
MSG_NOTHING_INSIDE = "There is nothing inside."
MSG_INVENTORY_EMPTY = "Your pockets are empty."
MSG_WRONG_CODE = "The code is wrong."
MSG_RIDDLE_UNSOLVED = (
    "That code seems right, but there is still a riddle you have not solved. Look around the room some more."
)
MSG_UNKNOWN_ACTION = "You are not sure how to do that."


@dataclass(frozen=True, slots=True)
class Transition:
    state: GameState
    message: str
    # True only on the turn that set the terminal flag.
    escaped_now: bool = False


Handler = Callable[[GameState, Intent, Scenario], str]


def apply_intent(*, state: GameState, intent: Intent, scenario: Scenario) -> Transition:
    new_state = state.clone()
    new_state.last_message = None

    try:
        handler = _handler_for(intent.action)
    except UnknownIntentError:
        handler = _handle_unknown

    message = handler(new_state, intent, scenario)
    new_state.last_message = message
    return Transition(
        state=new_state,
        message=message,
        escaped_now=new_state.is_escaped and not state.is_escaped,
    )


def _handler_for(action: ActionName) -> Handler:
    handlers: dict[ActionName, Handler] = {
        ActionName.look: _handle_look,
        ActionName.take: _handle_take,
        ActionName.open: _handle_open,
        ActionName.unlock: _handle_unlock,
        ActionName.inventory: _handle_inventory,
        ActionName.hint: _handle_hint,
    }
    handler = handlers.get(action)
    if handler is None:
        raise UnknownIntentError(f"No handler for action: {action}")
    return handler


def find_item(state: GameState, item_id: str | None) -> Item | None:
    """Look up an item the player can currently address.

    Hidden items behave as absent until something reveals them.
    """

    key = (item_id or "").strip()
    if not key:
        return None
    item = state.items.get(key)
    if item is None or item.hidden:
        return None
    return item


def visible_item_ids(state: GameState, scenario: Scenario) -> list[str]:
    """Items lying around in the room (not taken, not hidden), in template order."""

    out: list[str] = []
    for item_id in scenario.item_order:
        item = state.items.get(item_id)
        if item is not None and not item.is_taken and not item.hidden:
            out.append(item_id)
    return out


def _handle_look(state: GameState, intent: Intent, scenario: Scenario) -> str:
    target = intent.target.strip()
    if target.casefold() in ROOM_TARGETS:
        description = state.room_description
        names = [state.items[i].name for i in visible_item_ids(state, scenario)]
        if names:
            description += f"\n\nAround you, you notice: {', '.join(names)}."
        return description

    item = find_item(state, target)
    if item is None:
        return MSG_LOOK_PROMPT

    description = item.description
    if item.clue is not None and not item.is_locked:
        item.clue.discovered = True
        description += f"\n{item.clue.content}"
    return description


def _handle_take(state: GameState, intent: Intent, scenario: Scenario) -> str:
    item = find_item(state, intent.target)
    if item is None:
        return MSG_TAKE_PROMPT
    if item.pickup is None:
        return f"The {item.name} cannot be taken."
    if item.pickup.taken:
        return f"You already have the {item.name}."

    item.pickup.taken = True
    state.inventory.append(item.id)
    return f"You take the {item.name}. It is now in your inventory."


def _handle_open(state: GameState, intent: Intent, scenario: Scenario) -> str:
    if not intent.target.strip():
        return MSG_OPEN_PROMPT
    item = find_item(state, intent.target)
    if item is None:
        return f"There is no '{intent.target.strip()}' here to open."
    if item.is_locked:
        return f"The {item.name} is locked."

    if item.container is not None and item.container.contains:
        # Single-slot reveal: only the first contained item.
        inner = state.items[item.container.contains[0]]
        if inner.is_taken:
            return f"The {item.name} is empty now."
        inner.hidden = False
        return f"You open the {item.name} and find {inner.name}."

    if item.clue is not None:
        item.clue.discovered = True
        return f"You open the {item.name}.\n{item.clue.content}"

    return MSG_NOTHING_INSIDE


def _handle_unlock(state: GameState, intent: Intent, scenario: Scenario) -> str:
    if (intent.secondary or "").strip():
        return _unlock_with_tool(state, intent, scenario)
    return _unlock_with_code(state, intent, scenario)


def _unlock_with_tool(state: GameState, intent: Intent, scenario: Scenario) -> str:
    target = find_item(state, intent.secondary)
    if target is None:
        wanted = (intent.secondary or "").strip()
        return f"There is no '{wanted}' here to unlock."

    tool = find_item(state, intent.target)
    if tool is None or tool.id not in state.inventory:
        name = tool.name if tool is not None else intent.target.strip()
        return f"You are not holding the {name}."

    if tool.tool is None or tool.tool.unlocks != target.id:
        return f"The {tool.name} does not fit the {target.name}."
    lock = target.lock
    if lock is None or not lock.locked:
        return f"The {target.name} is already unlocked."

    if target.id == scenario.rules.terminal_item:
        return _release_terminal(state, scenario)

    lock.locked = False
    return f"You unlock the {target.name} with the {tool.name}."


def _unlock_with_code(state: GameState, intent: Intent, scenario: Scenario) -> str:
    code = intent.target.strip()
    if not code:
        return MSG_UNLOCK_PROMPT

    rules = scenario.rules
    terminal = state.items[rules.terminal_item]

    # An item name rather than a code.
    named = find_item(state, code)
    if named is not None:
        if not named.is_locked:
            return f"The {named.name} is already unlocked."
        if named.id == terminal.id:
            return f"The {named.name} asks for a code."
        return f"You will need something to unlock the {named.name} with."

    if not terminal.is_locked:
        return f"The {terminal.name} is already open."
    if rules.unlock_code is None or code != rules.unlock_code:
        return MSG_WRONG_CODE
    return _release_terminal(state, scenario)


def _release_terminal(state: GameState, scenario: Scenario) -> str:
    rules = scenario.rules
    for item_id in rules.required_clues:
        clue = state.items[item_id].clue
        if clue is None or not clue.discovered:
            return MSG_RIDDLE_UNSOLVED

    lock = state.items[rules.terminal_item].lock
    if lock is not None:
        lock.locked = False

    fsm = EscapeFSM(state)
    fsm.escape()
    fsm.sync_phase_to_model()
    return rules.win_message


def _handle_inventory(state: GameState, intent: Intent, scenario: Scenario) -> str:
    if not state.inventory:
        return MSG_INVENTORY_EMPTY
    names = [state.items[i].name for i in state.inventory]
    return f"You are carrying: {', '.join(names)}."


def hint_condition_met(state: GameState, step: HintStep) -> bool:
    item = state.items.get(step.item)
    if item is None:
        return False
    if step.condition == HintCondition.clue_discovered:
        return item.clue is not None and item.clue.discovered
    if step.condition == HintCondition.item_taken:
        return item.is_taken
    if step.condition == HintCondition.item_unlocked:
        return not item.is_locked
    if step.condition == HintCondition.item_revealed:
        return not item.hidden
    return False


def _handle_hint(state: GameState, intent: Intent, scenario: Scenario) -> str:
    for step in scenario.rules.hints:
        if not hint_condition_met(state, step):
            return step.message
    return scenario.rules.final_hint


def _handle_unknown(state: GameState, intent: Intent, scenario: Scenario) -> str:
    return MSG_UNKNOWN_ACTION
