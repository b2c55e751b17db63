from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from escape_room.agents.base import Agent
from escape_room.api.deps import get_intent_agent, get_keyring, get_narrator_agent, get_scenario_registry
from escape_room.api.models import (
    NewGameRequest,
    NewGameResponse,
    ScenarioInfo,
    ScenarioListResponse,
    TurnRequest,
    TurnResponse,
)
from escape_room.assets.registry import ScenarioRegistry
from escape_room.core.integrity import Keyring
from escape_room.errors import AuthenticationError, IntentRecognitionError, InternalError, StateValidationError
from escape_room.turn_processing.turns import new_game, play_turn

router = APIRouter()


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/scenarios", response_model=ScenarioListResponse)
async def list_scenarios_route(scenarios: ScenarioRegistry = Depends(get_scenario_registry)) -> ScenarioListResponse:
    return ScenarioListResponse(
        scenarios=[ScenarioInfo(scenario_id=s.scenario_id, title=s.title) for s in scenarios.all_scenarios()]
    )


@router.post("/game", response_model=NewGameResponse, status_code=status.HTTP_201_CREATED)
async def new_game_route(
    payload: NewGameRequest,
    scenarios: ScenarioRegistry = Depends(get_scenario_registry),
) -> NewGameResponse:
    try:
        return new_game(scenarios=scenarios, scenario_id=payload.scenario_id)
    except StateValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@router.post("/game/turn", response_model=TurnResponse)
async def turn_route(
    payload: TurnRequest,
    scenarios: ScenarioRegistry = Depends(get_scenario_registry),
    keyring: Keyring = Depends(get_keyring),
    intent_agent: Agent = Depends(get_intent_agent),
    narrator_agent: Agent = Depends(get_narrator_agent),
) -> TurnResponse:
    try:
        return await play_turn(
            request=payload,
            scenarios=scenarios,
            keyring=keyring,
            intent_agent=intent_agent,
            narrator_agent=narrator_agent,
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)) from e
    except StateValidationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    except IntentRecognitionError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e)) from e
    except InternalError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)) from e
