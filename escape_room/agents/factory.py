from __future__ import annotations

from typing import cast

from escape_room.agents.ag2_backend import Ag2ChatAgent
from escape_room.agents.base import Agent


# Matches the sampling the recognizer and narrator were tuned with.
INTENT_TEMPERATURE = 0.1
NARRATOR_TEMPERATURE = 0.7
NARRATOR_MAX_TOKENS = 200


def create_intent_agent(*, model: str) -> Agent:
    return cast(Agent, Ag2ChatAgent(name="intent_recognizer", model=model, temperature=INTENT_TEMPERATURE))


def create_narrator_agent(*, model: str) -> Agent:
    return cast(
        Agent,
        Ag2ChatAgent(
            name="narrator",
            model=model,
            temperature=NARRATOR_TEMPERATURE,
            max_tokens=NARRATOR_MAX_TOKENS,
        ),
    )
