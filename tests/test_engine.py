from __future__ import annotations

import pytest

from escape_room.api.models import ActionName, GameState, Intent
from escape_room.assets.registry import Scenario
from escape_room.core import engine
from escape_room.core.engine import Transition, apply_intent, visible_item_ids
from escape_room.core.integrity import canonical_encoding
from escape_room.turn_processing.validators import assert_monotonic


def _do(state: GameState, scenario: Scenario, action: str, target: str = "", secondary: str | None = None) -> Transition:
    intent = Intent(action=ActionName(action), target=target, secondary=secondary)
    t = apply_intent(state=state, intent=intent, scenario=scenario)
    assert_monotonic(before=state, after=t.state)
    return t


def _play(state: GameState, scenario: Scenario, steps: list[tuple]) -> GameState:
    for step in steps:
        state = _do(state, scenario, *step).state
    return state


# --- look ---


def test_look_room_lists_visible_items_on_fresh_game(curator: Scenario) -> None:
    state = curator.initial_state()
    t = _do(state, curator, "look", "room")

    assert t.message.startswith(state.room_description)
    assert t.message.endswith(
        "Around you, you notice: digital wall safe, six paintings on the wall, memo on the desk, "
        "poetry collection 'Songs of the Animals', picture book 'Counting Animals', writing desk, study bookshelf."
    )
    assert t.state.is_escaped is False
    assert t.state.last_message == t.message


def test_look_around_is_the_room(curator: Scenario) -> None:
    state = curator.initial_state()
    assert _do(state, curator, "look", "around").message == _do(state, curator, "look", "room").message


def test_look_room_skips_taken_and_hidden_items(locked_study: Scenario) -> None:
    state = locked_study.initial_state()
    state = _play(state, locked_study, [("open", "rug"), ("take", "small_key")])
    msg = _do(state, locked_study, "look", "room").message

    assert "small brass key" not in msg
    assert "leather diary" not in msg
    assert "faded rug" in msg


def test_look_item_discovers_clue(curator: Scenario) -> None:
    state = curator.initial_state()
    t = _do(state, curator, "look", "paintings")

    paintings = t.state.items["paintings"]
    assert paintings.clue is not None
    assert t.message == f"{paintings.description}\n{paintings.clue.content}"
    assert paintings.clue.discovered is True
    assert state.items["paintings"].clue.discovered is False  # type: ignore[union-attr]


def test_look_without_target_prompts(curator: Scenario) -> None:
    t = _do(curator.initial_state(), curator, "look")
    assert t.message == engine.MSG_LOOK_PROMPT


def test_look_hidden_item_is_absent(locked_study: Scenario) -> None:
    t = _do(locked_study.initial_state(), locked_study, "look", "small_key")
    assert t.message == engine.MSG_LOOK_PROMPT


# --- take ---


def test_take_non_takeable_leaves_inventory_unchanged(curator: Scenario) -> None:
    state = curator.initial_state()
    t = _do(state, curator, "take", "desk")

    assert t.message == "The writing desk cannot be taken."
    assert t.state.inventory == []


def test_take_then_take_again(curator: Scenario) -> None:
    state = curator.initial_state()
    t1 = _do(state, curator, "take", "desk_memo")
    assert t1.message == "You take the memo on the desk. It is now in your inventory."
    assert t1.state.inventory == ["desk_memo"]
    assert t1.state.items["desk_memo"].is_taken

    t2 = _do(t1.state, curator, "take", "desk_memo")
    assert t2.message == "You already have the memo on the desk."
    assert t2.state.inventory == ["desk_memo"]


def test_take_hidden_item_is_absent(locked_study: Scenario) -> None:
    t = _do(locked_study.initial_state(), locked_study, "take", "small_key")
    assert t.message == engine.MSG_TAKE_PROMPT
    assert t.state.inventory == []


def test_inventory_keeps_acquisition_order(locked_study: Scenario) -> None:
    state = _play(
        locked_study.initial_state(),
        locked_study,
        [
            ("open", "rug"),
            ("take", "small_key"),
            ("unlock", "small_key", "drawer"),
            ("open", "drawer"),
            ("take", "diary"),
        ],
    )
    assert state.inventory == ["small_key", "diary"]
    assert _do(state, locked_study, "inventory").message == "You are carrying: small brass key, leather diary."


def test_inventory_empty(curator: Scenario) -> None:
    assert _do(curator.initial_state(), curator, "inventory").message == engine.MSG_INVENTORY_EMPTY


# --- open ---


def test_open_locked_item(curator: Scenario) -> None:
    assert _do(curator.initial_state(), curator, "open", "safe").message == "The digital wall safe is locked."


def test_open_unknown_item(curator: Scenario) -> None:
    assert _do(curator.initial_state(), curator, "open", "fridge").message == "There is no 'fridge' here to open."


def test_open_plain_item_has_nothing_inside(curator: Scenario) -> None:
    assert _do(curator.initial_state(), curator, "open", "desk").message == engine.MSG_NOTHING_INSIDE


def test_open_clue_holder_discovers_clue(locked_study: Scenario) -> None:
    t = _do(locked_study.initial_state(), locked_study, "open", "book")
    book = t.state.items["book"]
    assert book.clue is not None and book.clue.discovered
    assert t.message == f"You open the old almanac.\n{book.clue.content}"


def test_open_container_reveals_first_item_until_taken(locked_study: Scenario) -> None:
    state = locked_study.initial_state()
    t = _do(state, locked_study, "open", "rug")
    assert t.message == "You open the faded rug and find small brass key."
    assert t.state.items["small_key"].hidden is False
    assert state.items["small_key"].hidden is True

    again = _do(t.state, locked_study, "open", "rug")
    assert again.message == "You open the faded rug and find small brass key."

    taken = _do(again.state, locked_study, "take", "small_key")
    assert _do(taken.state, locked_study, "open", "rug").message == "The faded rug is empty now."


# --- unlock ---


def test_unlock_tool_mismatch_keeps_target_locked(locked_study: Scenario) -> None:
    state = _play(locked_study.initial_state(), locked_study, [("open", "rug"), ("take", "small_key")])
    t = _do(state, locked_study, "unlock", "small_key", "safe")

    assert t.message == "The small brass key does not fit the steel door safe."
    assert t.state.items["safe"].is_locked


def test_unlock_tool_must_be_held(locked_study: Scenario) -> None:
    state = _do(locked_study.initial_state(), locked_study, "open", "rug").state
    t = _do(state, locked_study, "unlock", "small_key", "drawer")

    assert t.message == "You are not holding the small brass key."
    assert t.state.items["drawer"].is_locked


def test_unlock_tool_unknown_target(locked_study: Scenario) -> None:
    t = _do(locked_study.initial_state(), locked_study, "unlock", "small_key", "window")
    assert t.message == "There is no 'window' here to unlock."


def test_unlock_with_tool_then_already_unlocked(locked_study: Scenario) -> None:
    state = _play(locked_study.initial_state(), locked_study, [("open", "rug"), ("take", "small_key")])
    t = _do(state, locked_study, "unlock", "small_key", "drawer")
    assert t.message == "You unlock the desk drawer with the small brass key."
    assert not t.state.items["drawer"].is_locked

    t2 = _do(t.state, locked_study, "unlock", "small_key", "drawer")
    assert t2.message == "The desk drawer is already unlocked."


def test_unlock_named_item_without_tool(locked_study: Scenario) -> None:
    t = _do(locked_study.initial_state(), locked_study, "unlock", "drawer")
    assert t.message == "You will need something to unlock the desk drawer with."


def test_unlock_terminal_by_name_asks_for_code(curator: Scenario) -> None:
    t = _do(curator.initial_state(), curator, "unlock", "safe")
    assert t.message == "The digital wall safe asks for a code."


def test_unlock_without_code_prompts(curator: Scenario) -> None:
    assert _do(curator.initial_state(), curator, "unlock", "  ").message == engine.MSG_UNLOCK_PROMPT


def test_wrong_code(curator: Scenario) -> None:
    t = _do(curator.initial_state(), curator, "unlock", "1234")
    assert t.message == engine.MSG_WRONG_CODE
    assert t.state.items["safe"].is_locked


def test_code_gated_on_required_clues(curator: Scenario) -> None:
    state = curator.initial_state()
    t = _do(state, curator, "unlock", "4128")
    assert t.message == engine.MSG_RIDDLE_UNSOLVED
    assert t.state.items["safe"].is_locked
    assert t.state.is_escaped is False
    assert t.escaped_now is False

    # Only one of the two required clues.
    state = _do(t.state, curator, "look", "desk_memo").state
    assert _do(state, curator, "unlock", "4128").message == engine.MSG_RIDDLE_UNSOLVED

    state = _do(state, curator, "look", "animal_songs_poem").state
    won = _do(state, curator, "unlock", "4128")
    assert won.message == curator.rules.win_message
    assert not won.state.items["safe"].is_locked
    assert won.state.is_escaped is True
    assert won.escaped_now is True


def test_terminal_stays_open_after_escape(curator: Scenario) -> None:
    state = _play(
        curator.initial_state(),
        curator,
        [("look", "desk_memo"), ("look", "animal_songs_poem"), ("unlock", "4128")],
    )
    t = _do(state, curator, "unlock", "4128")
    assert t.message == "The digital wall safe is already open."
    assert t.state.is_escaped is True
    assert t.escaped_now is False


# --- hint / unknown ---


def test_hint_ladder_follows_progress(curator: Scenario) -> None:
    hints = curator.rules.hints
    state = curator.initial_state()
    assert _do(state, curator, "hint").message == hints[0].message

    state = _do(state, curator, "look", "paintings").state
    assert _do(state, curator, "hint").message == hints[1].message

    state = _do(state, curator, "look", "desk_memo").state
    assert _do(state, curator, "hint").message == hints[2].message

    state = _do(state, curator, "look", "animal_songs_poem").state
    assert _do(state, curator, "hint").message == curator.rules.final_hint


def test_unknown_action_keeps_state(curator: Scenario) -> None:
    state = curator.initial_state()
    t = _do(state, curator, "unknown", "dance")

    assert t.message == engine.MSG_UNKNOWN_ACTION
    assert t.state.items == state.items
    assert t.state.inventory == state.inventory


def test_missing_handler_is_absorbed(monkeypatch: pytest.MonkeyPatch, curator: Scenario) -> None:
    def _no_handlers(action: ActionName):
        raise engine.UnknownIntentError(action)

    monkeypatch.setattr(engine, "_handler_for", _no_handlers)
    t = _do(curator.initial_state(), curator, "look", "room")
    assert t.message == engine.MSG_UNKNOWN_ACTION


# --- properties ---


@pytest.mark.parametrize(
    ("action", "target", "secondary"),
    [
        ("look", "room", None),
        ("look", "paintings", None),
        ("take", "desk_memo", None),
        ("open", "desk", None),
        ("unlock", "4128", None),
        ("hint", "", None),
    ],
)
def test_transition_is_deterministic(curator: Scenario, action: str, target: str, secondary: str | None) -> None:
    state = curator.initial_state()
    a = _do(state, curator, action, target, secondary)
    b = _do(state, curator, action, target, secondary)

    assert a.message == b.message
    assert canonical_encoding(a.state) == canonical_encoding(b.state)


def test_result_never_aliases_input(locked_study: Scenario) -> None:
    state = _play(locked_study.initial_state(), locked_study, [("open", "rug")])
    before = canonical_encoding(state)

    t = _do(state, locked_study, "take", "small_key")
    t.state.inventory.append("book")
    t.state.items["drawer"].lock.locked = False  # type: ignore[union-attr]
    t.state.items["rug"].container.contains.clear()  # type: ignore[union-attr]
    t.state.items["book"].clue.discovered = True  # type: ignore[union-attr]
    t.state.player.abilities.append("flight")

    assert canonical_encoding(state) == before


def test_visible_items_follow_template_order(locked_study: Scenario) -> None:
    state = _do(locked_study.initial_state(), locked_study, "open", "rug").state
    assert visible_item_ids(state, locked_study) == ["safe", "desk", "drawer", "rug", "small_key", "book"]


# --- full playthroughs ---


def test_locked_study_playthrough_with_hints(locked_study: Scenario) -> None:
    steps: list[tuple] = [
        ("open", "rug"),
        ("take", "small_key"),
        ("unlock", "small_key", "drawer"),
        ("open", "drawer"),
        ("look", "diary"),
        ("open", "book"),
    ]
    state = locked_study.initial_state()
    for i, step in enumerate(steps):
        assert _do(state, locked_study, "hint").message == locked_study.rules.hints[i].message
        state = _do(state, locked_study, *step).state
    assert _do(state, locked_study, "hint").message == locked_study.rules.final_hint

    won = _do(state, locked_study, "unlock", "0451")
    assert won.message == locked_study.rules.win_message
    assert won.state.is_escaped
    assert won.state.inventory == ["small_key"]


def test_curator_playthrough(curator: Scenario) -> None:
    state = _play(
        curator.initial_state(),
        curator,
        [
            ("look", "room"),
            ("look", "paintings"),
            ("take", "desk_memo"),
            ("look", "desk_memo"),
            ("look", "animal_songs_poem"),
            ("look", "animal_counting_book"),
        ],
    )
    assert _do(state, curator, "unlock", "0000").message == engine.MSG_WRONG_CODE
    won = _do(state, curator, "unlock", " 4128 ")
    assert won.state.is_escaped


def test_item_references_ignore_surrounding_whitespace(locked_study: Scenario) -> None:
    state = locked_study.initial_state()
    opened = _do(state, locked_study, "open", " rug ")
    assert opened.message == "You open the faded rug and find small brass key."

    taken = _do(opened.state, locked_study, "take", "small_key\n")
    assert taken.state.inventory == ["small_key"]

    unlocked = _do(taken.state, locked_study, "unlock", " small_key", "drawer ")
    assert unlocked.message == "You unlock the desk drawer with the small brass key."

    assert _do(state, locked_study, "open", "  fridge ").message == "There is no 'fridge' here to open."
    # A blank secondary object is the code form.
    blank = _do(state, locked_study, "unlock", "small_key", "   ")
    assert blank.message == _do(state, locked_study, "unlock", "small_key").message
