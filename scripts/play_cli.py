"""Play an escape room in the terminal.

Holds the state and integrity tag between turns the way a browser client
would, and drives the turn pipeline in-process with the real AG2 agents.

Usage:
    uv run python scripts/play_cli.py [--scenario locked_study]

Needs OPENAI_API_KEY (or OPENAI_BASE_URL for an OpenAI-compatible server).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from escape_room.agents.factory import create_intent_agent, create_narrator_agent
from escape_room.api.models import TurnRequest
from escape_room.assets.registry import load_scenarios
from escape_room.config import settings_from_env
from escape_room.core.integrity import Keyring
from escape_room.errors import AuthenticationError, IntentRecognitionError, StateValidationError
from escape_room.turn_processing.turns import new_game, play_turn


async def _run(*, scenario_id: str | None) -> None:
    settings = settings_from_env()
    scenarios = load_scenarios(root=Path(__file__).resolve().parents[1], default_id=settings.default_scenario)
    keyring = Keyring(keys=settings.secret_keys)
    intent_agent = create_intent_agent(model=settings.intent_model)
    narrator_agent = create_narrator_agent(model=settings.narrator_model)

    started = new_game(scenarios=scenarios, scenario_id=scenario_id)
    state, tag = started.state, started.tag
    print(started.narrative)

    while not state.is_escaped:
        try:
            line = input("\n> ").strip()
        except EOFError:
            return
        if not line:
            continue
        if line in {"quit", "exit"}:
            return

        try:
            resp = await play_turn(
                request=TurnRequest(user_input=line, state=state, tag=tag),
                scenarios=scenarios,
                keyring=keyring,
                intent_agent=intent_agent,
                narrator_agent=narrator_agent,
            )
        except IntentRecognitionError as e:
            print(f"(could not understand that: {e})")
            continue
        except (AuthenticationError, StateValidationError) as e:
            print(f"(state rejected: {e})")
            return

        state, tag = resp.state, resp.tag
        print(resp.narrative)
        if resp.message and resp.message != resp.narrative:
            print(f"\n[{resp.message}]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Play an escape room in the terminal")
    parser.add_argument("--scenario", default=None, help="Scenario id (default: ESCAPE_ROOM_DEFAULT_SCENARIO)")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    asyncio.run(_run(scenario_id=args.scenario))


if __name__ == "__main__":
    main()
