from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActionName(StrEnum):
    look = "look"
    take = "take"
    open = "open"
    unlock = "unlock"
    inventory = "inventory"
    hint = "hint"
    unknown = "unknown"


class Clue(BaseModel):
    model_config = ConfigDict(extra="forbid")

    content: str
    discovered: bool = False

    def clone(self) -> Clue:
        return Clue(content=self.content, discovered=self.discovered)


class Lock(BaseModel):
    model_config = ConfigDict(extra="forbid")

    locked: bool = True

    def clone(self) -> Lock:
        return Lock(locked=self.locked)


class Pickup(BaseModel):
    """Present only on takeable items."""

    model_config = ConfigDict(extra="forbid")

    taken: bool = False

    def clone(self) -> Pickup:
        return Pickup(taken=self.taken)


class Tool(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Item id this tool unlocks.
    unlocks: str

    def clone(self) -> Tool:
        return Tool(unlocks=self.unlocks)


class Container(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Ordered item ids; opening reveals the first one.
    contains: list[str] = Field(default_factory=list)

    def clone(self) -> Container:
        return Container(contains=list(self.contains))


class Item(BaseModel):
    """An addressable world entity.

    Capabilities are optional sub-records rather than loose flags, so a
    non-takeable item simply has no `pickup` and can never be "taken".
    """

    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    name: str
    aliases: list[str] = Field(default_factory=list)
    # Short semantic hint for the intent recognizer's fuzzy matching.
    concept: str | None = None
    description: str

    hidden: bool = False
    lock: Lock | None = None
    pickup: Pickup | None = None
    tool: Tool | None = None
    container: Container | None = None
    clue: Clue | None = None

    @property
    def is_locked(self) -> bool:
        return self.lock is not None and self.lock.locked

    @property
    def is_takeable(self) -> bool:
        return self.pickup is not None

    @property
    def is_taken(self) -> bool:
        return self.pickup is not None and self.pickup.taken

    def clone(self) -> Item:
        return Item(
            id=self.id,
            name=self.name,
            aliases=list(self.aliases),
            concept=self.concept,
            description=self.description,
            hidden=self.hidden,
            lock=self.lock.clone() if self.lock else None,
            pickup=self.pickup.clone() if self.pickup else None,
            tool=self.tool.clone() if self.tool else None,
            container=self.container.clone() if self.container else None,
            clue=self.clue.clone() if self.clue else None,
        )


class PlayerState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    abilities: list[str] = Field(default_factory=list)

    def clone(self) -> PlayerState:
        return PlayerState(abilities=list(self.abilities))


class GameState(BaseModel):
    """The full world state. Travels with the client between turns."""

    model_config = ConfigDict(extra="forbid")

    scenario_id: str
    items: dict[str, Item]
    # Acquisition order.
    inventory: list[str] = Field(default_factory=list)
    room_description: str
    last_message: str | None = None
    is_escaped: bool = False
    player: PlayerState = Field(default_factory=PlayerState)

    @model_validator(mode="after")
    def _keys_match_item_ids(self) -> GameState:
        for key, item in self.items.items():
            if key != item.id:
                raise ValueError(f"Item key '{key}' does not match item id '{item.id}'")
        return self

    def clone(self) -> GameState:
        return GameState(
            scenario_id=self.scenario_id,
            items={item_id: item.clone() for item_id, item in self.items.items()},
            inventory=list(self.inventory),
            room_description=self.room_description,
            last_message=self.last_message,
            is_escaped=self.is_escaped,
            player=self.player.clone(),
        )


class Intent(BaseModel):
    """Structured (action, object, optional secondary object)."""

    action: ActionName = ActionName.unknown
    # Item id, literal code string, or "room".
    target: str = ""
    # Target of a tool-based unlock.
    secondary: str | None = None


class NewGameRequest(BaseModel):
    scenario_id: str | None = None


class NewGameResponse(BaseModel):
    state: GameState
    narrative: str
    tag: str | None = None


class TurnRequest(BaseModel):
    user_input: str = Field(..., min_length=1, max_length=2000)
    state: GameState
    # Absent only on the very first turn of a session.
    tag: str | None = None


class TurnResponse(BaseModel):
    state: GameState
    narrative: str
    tag: str
    message: str
    intent: Intent


class ScenarioInfo(BaseModel):
    scenario_id: str
    title: str


class ScenarioListResponse(BaseModel):
    scenarios: list[ScenarioInfo]
