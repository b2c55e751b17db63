from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from escape_room.api.models import GameState
from escape_room.assets.registry import Scenario
from escape_room.errors import InternalError, StateValidationError


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators besides the state itself."""

    scenario: Scenario
    template: GameState


class StateValidator(ABC):
    """A small, composable structural check on an incoming state."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class ScenarioMatchValidator(StateValidator):
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.scenario_id != ctx.scenario.scenario_id:
            raise StateValidationError(f"State belongs to scenario '{state.scenario_id}'")


@dataclass(frozen=True, slots=True)
class ItemSetValidator(StateValidator):
    """The item map must hold exactly the template's items, with unchanged capabilities."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        expected = set(ctx.template.items)
        actual = set(state.items)
        if actual != expected:
            missing = ",".join(sorted(expected - actual))
            extra = ",".join(sorted(actual - expected))
            raise StateValidationError(f"Item set differs from scenario (missing: {missing or '-'}, extra: {extra or '-'})")

        for item_id, item in state.items.items():
            base = ctx.template.items[item_id]
            shape = (item.lock is None, item.pickup is None, item.tool is None, item.container is None, item.clue is None)
            base_shape = (base.lock is None, base.pickup is None, base.tool is None, base.container is None, base.clue is None)
            if shape != base_shape:
                raise StateValidationError(f"Item '{item_id}' capabilities differ from scenario")


@dataclass(frozen=True, slots=True)
class InventoryValidator(StateValidator):
    """Inventory holds each taken item exactly once and nothing else."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if len(set(state.inventory)) != len(state.inventory):
            raise StateValidationError("Inventory contains duplicates")
        for item_id in state.inventory:
            item = state.items.get(item_id)
            if item is None:
                raise StateValidationError(f"Inventory refers to unknown item '{item_id}'")
            if not item.is_taken:
                raise StateValidationError(f"Inventory item '{item_id}' is not marked taken")
        for item_id, item in state.items.items():
            if item.is_taken and item_id not in state.inventory:
                raise StateValidationError(f"Taken item '{item_id}' is missing from inventory")


@dataclass(frozen=True, slots=True)
class ReferenceValidator(StateValidator):
    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        for item_id, item in state.items.items():
            if item.tool is not None and item.tool.unlocks not in state.items:
                raise StateValidationError(f"Tool '{item_id}' unlocks unknown item '{item.tool.unlocks}'")
            if item.container is not None:
                for child in item.container.contains:
                    if child not in state.items:
                        raise StateValidationError(f"Container '{item_id}' holds unknown item '{child}'")


@dataclass(frozen=True, slots=True)
class TerminalValidator(StateValidator):
    """An escaped game must have its terminal item unlocked."""

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        if state.is_escaped and state.items[ctx.scenario.rules.terminal_item].is_locked:
            raise StateValidationError("Escaped state with the terminal item still locked")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[StateValidator, ...]

    def validate(self, *, ctx: ValidationContext, state: GameState) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, state=state)


# Order matters: later validators assume the item set already matches.
DEFAULT_STATE_PIPELINE = ValidatorPipeline(
    validators=(
        ScenarioMatchValidator(),
        ItemSetValidator(),
        InventoryValidator(),
        ReferenceValidator(),
        TerminalValidator(),
    )
)


def _resolved_flags(state: GameState) -> set[tuple[str, str]]:
    flags: set[tuple[str, str]] = set()
    for item_id, item in state.items.items():
        if item.lock is not None and not item.lock.locked:
            flags.add((item_id, "unlocked"))
        if item.is_taken:
            flags.add((item_id, "taken"))
        if not item.hidden:
            flags.add((item_id, "revealed"))
        if item.clue is not None and item.clue.discovered:
            flags.add((item_id, "discovered"))
    if state.is_escaped:
        flags.add(("", "escaped"))
    return flags


def assert_monotonic(*, before: GameState, after: GameState) -> None:
    """Fail closed if a transition reverted any resolved flag."""

    reverted = _resolved_flags(before) - _resolved_flags(after)
    if reverted:
        detail = ", ".join(f"{item_id or 'game'}:{flag}" for item_id, flag in sorted(reverted))
        raise InternalError(f"Transition reverted resolved flags: {detail}")
