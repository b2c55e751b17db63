from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from fakes import FakeAgent


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs.

    Makes OPENAI_BASE_URL / OPENAI_MODEL available to the live-model tests
    without exporting them in your shell. In CI `.env` is not loaded, so those
    tests stay skipped unless explicitly opted in with
    ESCAPE_ROOM_LOAD_DOTENV_FOR_TESTS=1.
    """

    if os.environ.get("CI") and os.environ.get("ESCAPE_ROOM_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)

    # If using a local OpenAI-compatible endpoint, some clients require a key string.
    if os.environ.get("OPENAI_BASE_URL") and not os.environ.get("OPENAI_API_KEY"):
        os.environ["OPENAI_API_KEY"] = "ollama"


@pytest.fixture(scope="session", autouse=True)
def _init_scenarios() -> None:
    from escape_room.assets.singleton import init_scenarios, reset_scenarios_for_tests

    reset_scenarios_for_tests()
    init_scenarios(project_root=Path(__file__).resolve().parents[1], default_id="curator_study")


@pytest.fixture()
def scenarios():
    from escape_room.assets.singleton import get_scenarios

    return get_scenarios()


@pytest.fixture()
def curator(scenarios):
    return scenarios.require("curator_study")


@pytest.fixture()
def locked_study(scenarios):
    return scenarios.require("locked_study")


@pytest.fixture()
def keyring():
    from escape_room.core.integrity import Keyring

    return Keyring(keys=(b"test-secret-key",))


@pytest.fixture()
def intent_agent() -> FakeAgent:
    return FakeAgent(name="intent")


@pytest.fixture()
def narrator_agent() -> FakeAgent:
    return FakeAgent(name="narrator")


@pytest.fixture()
def client(keyring, intent_agent, narrator_agent) -> Generator:
    """TestClient with the keyring and both collaborators overridden."""

    from fastapi.testclient import TestClient

    from escape_room.api.deps import get_intent_agent, get_keyring, get_narrator_agent
    from escape_room.main import app

    app.dependency_overrides[get_keyring] = lambda: keyring
    app.dependency_overrides[get_intent_agent] = lambda: intent_agent
    app.dependency_overrides[get_narrator_agent] = lambda: narrator_agent
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
