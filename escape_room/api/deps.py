from __future__ import annotations

from escape_room.agents.base import Agent
from escape_room.agents.factory import create_intent_agent, create_narrator_agent
from escape_room.assets.registry import ScenarioRegistry
from escape_room.assets.singleton import get_scenarios
from escape_room.config import get_settings
from escape_room.core.integrity import Keyring
from escape_room.core.integrity import get_keyring as _get_keyring


def get_keyring() -> Keyring:
    return _get_keyring()


def get_scenario_registry() -> ScenarioRegistry:
    return get_scenarios()


def get_intent_agent() -> Agent:
    return create_intent_agent(model=get_settings().intent_model)


def get_narrator_agent() -> Agent:
    return create_narrator_agent(model=get_settings().narrator_model)
