from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BaseAgentContext:
    """Role instructions for one collaborator (recognizer or narrator)."""

    system_prompt: str


@dataclass(frozen=True, slots=True)
class WorldContext:
    """What the collaborator may know about the world this turn."""

    title: str
    body: str


@dataclass(frozen=True, slots=True)
class PlayerContext:
    abilities: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class RenderedContext:
    """Final, merged context passed into the LLM agent."""

    system_prompt: str

    def as_messages(self) -> list[dict[str, str]]:
        return [{"role": "system", "content": self.system_prompt}]


def compose_context(*, base: BaseAgentContext, world: WorldContext, player: PlayerContext | None = None) -> RenderedContext:
    parts: list[str] = [base.system_prompt.strip()]

    if world.body.strip():
        parts.append(f"{world.title.upper()}:\n{world.body.strip()}")

    if player is not None and player.abilities:
        parts.append("PLAYER ABILITIES:\n" + "\n".join(f"- {a}" for a in player.abilities))

    system_prompt = "\n\n".join([p for p in parts if p.strip()]).strip()
    return RenderedContext(system_prompt=system_prompt)
