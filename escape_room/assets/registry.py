from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from escape_room.api.models import GameState, Item, PlayerState
from escape_room.errors import StateValidationError


def _norm_key(s: str) -> str:
    return re.sub(r"\s+", " ", s).strip().casefold()


class AssetLoadError(RuntimeError):
    pass


class HintCondition(StrEnum):
    clue_discovered = "clue_discovered"
    item_taken = "item_taken"
    item_unlocked = "item_unlocked"
    item_revealed = "item_revealed"


class HintStep(BaseModel):
    """One rung of the hint ladder: shown while `condition` on `item` is unmet."""

    model_config = ConfigDict(extra="forbid")

    condition: HintCondition
    item: str
    message: str


class ScenarioRules(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # The single item whose unlocking ends the game.
    terminal_item: str
    unlock_code: str | None = None
    # Items whose clue must be discovered before the terminal item opens.
    required_clues: list[str] = Field(default_factory=list)
    win_message: str
    hints: list[HintStep] = Field(default_factory=list)
    final_hint: str


class ScenarioFile(BaseModel):
    """On-disk shape of `assets/scenarios/<scenario_id>.json`."""

    model_config = ConfigDict(extra="forbid")

    scenario_id: str
    title: str
    room_description: str
    abilities: list[str] = Field(default_factory=list)
    starting_inventory: list[str] = Field(default_factory=list)
    # Template order; also the order in which visible items are listed.
    items: list[Item]
    rules: ScenarioRules


@dataclass(frozen=True, slots=True)
class Scenario:
    """Immutable World Template plus the server-side rules that go with it.

    The template state is never handed out directly; `initial_state()` returns
    an independent clone for every new session.
    """

    scenario_id: str
    title: str
    rules: ScenarioRules
    item_order: tuple[str, ...]
    _template: GameState

    @staticmethod
    def from_file(data: ScenarioFile) -> "Scenario":
        _validate_scenario(data)
        template = GameState(
            scenario_id=data.scenario_id,
            items={item.id: item.clone() for item in data.items},
            inventory=list(data.starting_inventory),
            room_description=data.room_description,
            last_message=None,
            is_escaped=False,
            player=PlayerState(abilities=list(data.abilities)),
        )
        return Scenario(
            scenario_id=data.scenario_id,
            title=data.title,
            rules=data.rules.model_copy(deep=True),
            item_order=tuple(item.id for item in data.items),
            _template=template,
        )

    def initial_state(self) -> GameState:
        return self._template.clone()


def _validate_scenario(data: ScenarioFile) -> None:
    sid = data.scenario_id
    by_id: dict[str, Item] = {}
    for item in data.items:
        if item.id in by_id:
            raise AssetLoadError(f"[{sid}] Duplicate item id: {item.id}")
        by_id[item.id] = item

    for item in data.items:
        if item.tool is not None and item.tool.unlocks not in by_id:
            raise AssetLoadError(f"[{sid}] Tool '{item.id}' unlocks unknown item '{item.tool.unlocks}'")
        if item.container is not None:
            for child in item.container.contains:
                if child not in by_id:
                    raise AssetLoadError(f"[{sid}] Container '{item.id}' holds unknown item '{child}'")
        if item.is_taken and item.id not in data.starting_inventory:
            raise AssetLoadError(f"[{sid}] Item '{item.id}' is taken but not in the starting inventory")

    seen: set[str] = set()
    for item_id in data.starting_inventory:
        item = by_id.get(item_id)
        if item is None or not item.is_taken:
            raise AssetLoadError(f"[{sid}] Starting inventory item '{item_id}' must exist, be takeable and taken")
        if item_id in seen:
            raise AssetLoadError(f"[{sid}] Duplicate starting inventory item '{item_id}'")
        seen.add(item_id)

    rules = data.rules
    terminal = by_id.get(rules.terminal_item)
    if terminal is None or terminal.lock is None:
        raise AssetLoadError(f"[{sid}] Terminal item '{rules.terminal_item}' must exist and be lockable")
    for item_id in rules.required_clues:
        item = by_id.get(item_id)
        if item is None or item.clue is None:
            raise AssetLoadError(f"[{sid}] Required clue item '{item_id}' must exist and carry a clue")
    for step in rules.hints:
        if step.item not in by_id:
            raise AssetLoadError(f"[{sid}] Hint refers to unknown item '{step.item}'")
    if rules.unlock_code is not None and rules.unlock_code in by_id:
        raise AssetLoadError(f"[{sid}] Unlock code must not collide with an item id")


@dataclass(frozen=True, slots=True)
class ScenarioRegistry:
    by_id: dict[str, Scenario]
    default_id: str

    def get(self, scenario_id: str) -> Scenario | None:
        return self.by_id.get(scenario_id)

    def require(self, scenario_id: str | None = None) -> Scenario:
        sid = scenario_id or self.default_id
        scenario = self.by_id.get(sid)
        if scenario is None:
            raise StateValidationError(f"Unknown scenario: {sid}")
        return scenario

    def all_scenarios(self) -> tuple[Scenario, ...]:
        return tuple(self.by_id[k] for k in sorted(self.by_id))


def load_scenario_file(path: Path) -> Scenario:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise AssetLoadError(f"Scenario file not found: {path}") from e

    try:
        data = ScenarioFile.model_validate_json(raw)
    except ValidationError as e:
        raise AssetLoadError(f"Invalid scenario file {path}: {e}") from e

    if data.scenario_id != path.stem:
        raise AssetLoadError(f"Scenario id '{data.scenario_id}' does not match file name {path.name}")
    return Scenario.from_file(data)


def load_scenarios(*, root: Path, default_id: str) -> ScenarioRegistry:
    scenarios_dir = root / "assets" / "scenarios"
    paths = sorted(scenarios_dir.glob("*.json"))
    if not paths:
        raise AssetLoadError(f"No scenario files found in {scenarios_dir}")

    by_id = {p.stem: load_scenario_file(p) for p in paths}
    if default_id not in by_id:
        raise AssetLoadError(f"Default scenario '{default_id}' not found in {scenarios_dir}")
    return ScenarioRegistry(by_id=by_id, default_id=default_id)


def resolve_item_id(items: dict[str, Item], text: str) -> str | None:
    """Resolve free text to an item id by id, display name or alias.

    Matching ignores case and repeated whitespace. Returns None when nothing matches.
    """

    key = _norm_key(text)
    if not key:
        return None
    for item in items.values():
        if _norm_key(item.id) == key or _norm_key(item.name) == key:
            return item.id
    for item in items.values():
        if any(_norm_key(alias) == key for alias in item.aliases):
            return item.id
    return None
