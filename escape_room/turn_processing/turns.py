from __future__ import annotations

import logging

from escape_room.agents.base import Agent
from escape_room.agents.intent_recognizer import recognize_intent
from escape_room.agents.narrator import NARRATIVE_FALLBACK, generate_narrative
from escape_room.api.models import NewGameResponse, TurnRequest, TurnResponse
from escape_room.assets.registry import ScenarioRegistry
from escape_room.core.engine import apply_intent
from escape_room.core.integrity import Keyring, authenticate_state
from escape_room.errors import AuthenticationError, CollaboratorError
from escape_room.turn_processing.validators import DEFAULT_STATE_PIPELINE, ValidationContext, assert_monotonic


logger = logging.getLogger(__name__)


def new_game(*, scenarios: ScenarioRegistry, scenario_id: str | None = None) -> NewGameResponse:
    """Hand out a fresh, untagged copy of the scenario template."""

    scenario = scenarios.require(scenario_id)
    state = scenario.initial_state()
    return NewGameResponse(state=state, narrative=state.room_description, tag=None)


async def play_turn(
    *,
    request: TurnRequest,
    scenarios: ScenarioRegistry,
    keyring: Keyring,
    intent_agent: Agent,
    narrator_agent: Agent,
) -> TurnResponse:
    """Run one turn: authenticate, recognize, transition, narrate, sign.

    Authentication and structural checks run before anything else; a rejected
    state never reaches the recognizer or the engine. A narrator failure still
    returns the new, signed state.
    """

    scenario = scenarios.require(request.state.scenario_id)
    template = scenario.initial_state()

    try:
        authenticate_state(state=request.state, tag=request.tag, keyring=keyring, template=template)
    except AuthenticationError:
        logger.warning("Rejected turn for scenario=%s: integrity check failed", scenario.scenario_id)
        raise

    DEFAULT_STATE_PIPELINE.validate(ctx=ValidationContext(scenario=scenario, template=template), state=request.state)

    try:
        intent = await recognize_intent(
            agent=intent_agent,
            user_input=request.user_input,
            state=request.state,
            scenario=scenario,
        )
    except CollaboratorError as e:
        logger.warning("Intent recognition failed for scenario=%s: %s", scenario.scenario_id, e)
        raise

    transition = apply_intent(state=request.state, intent=intent, scenario=scenario)
    assert_monotonic(before=request.state, after=transition.state)
    new_state = transition.state

    if transition.escaped_now:
        narrative = transition.message
    else:
        try:
            narrative = await generate_narrative(
                agent=narrator_agent,
                state=new_state,
                scenario=scenario,
                user_input=request.user_input,
            )
        except CollaboratorError as e:
            logger.warning("Narrative generation failed for scenario=%s: %s", scenario.scenario_id, e)
            narrative = transition.message or NARRATIVE_FALLBACK

    tag = keyring.sign(new_state)
    logger.info(
        "Turn scenario=%s action=%s target=%s escaped=%s",
        scenario.scenario_id,
        intent.action.value,
        intent.target,
        new_state.is_escaped,
    )
    return TurnResponse(state=new_state, narrative=narrative, tag=tag, message=transition.message, intent=intent)
