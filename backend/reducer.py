"""
Action reducer.

`reduce` applies one player action to a state and returns a new state. It is
pure: no mutation of its input, no randomness, no clock. Time only moves in
`engine.tick`.
"""

import math
from dataclasses import replace

from typing_extensions import assert_never

from actions import AdvanceTick, AutomateRole, DeployAgent, Fire, GameAction, Hire, SetAutomation
from config import AGENT_CONFIGS, CONFIG, SimulationConfig
from state import Agent, EventType, GameEvent, Role, RoleData, SimulationState, find_agent


def reduce(state: SimulationState, action: GameAction, config: SimulationConfig = CONFIG) -> SimulationState:
    """Apply a single action and return the resulting state."""
    if isinstance(action, SetAutomation):
        return _set_automation(state, action)
    if isinstance(action, Hire):
        return _hire(state, action)
    if isinstance(action, Fire):
        return _fire(state, action)
    if isinstance(action, DeployAgent):
        return _deploy_agent(state, action)
    if isinstance(action, AutomateRole):
        return _automate_role(state, action, config)
    if isinstance(action, AdvanceTick):
        # Time advancement belongs to engine.tick
        return state
    assert_never(action)


def _with_event(state: SimulationState, event_type: EventType, message: str) -> SimulationState:
    return replace(state, events=state.events + (GameEvent(tick=state.tick, type=event_type, message=message),))


def _with_role(state: SimulationState, role: Role, data: RoleData) -> SimulationState:
    roles = dict(state.company.roles)
    roles[role] = data
    return replace(state, company=replace(state.company, roles=roles))


def _set_automation(state: SimulationState, action: SetAutomation) -> SimulationState:
    current = state.company.roles[action.role]
    updated = _with_role(state, action.role, replace(current, automation_level=action.level))
    return _with_event(
        updated,
        EventType.INFO,
        f"Set {action.role.value} automation to {action.level * 100:.0f}%",
    )


def _hire(state: SimulationState, action: Hire) -> SimulationState:
    current = state.company.roles[action.role]
    new_headcount = current.headcount + action.count
    updated = _with_role(state, action.role, replace(current, headcount=new_headcount))
    return _with_event(
        updated,
        EventType.SUCCESS,
        f"Hired {action.count} {action.role.value} (now {new_headcount})",
    )


def _fire(state: SimulationState, action: Fire) -> SimulationState:
    current = state.company.roles[action.role]
    fired = min(action.count, current.headcount)
    new_headcount = current.headcount - fired
    updated = _with_role(state, action.role, replace(current, headcount=new_headcount))
    return _with_event(
        updated,
        EventType.WARNING,
        f"Fired {fired} {action.role.value} (now {new_headcount})",
    )


def _deploy_agent(state: SimulationState, action: DeployAgent) -> SimulationState:
    agent_config = AGENT_CONFIGS[action.agent_type.value]
    agents = state.company.agents
    agent = Agent(
        id=f"agent-{state.tick}-{len(agents)}",
        type=action.agent_type,
        deployed_at=state.tick,
    )
    # Deployment is never refused; short cash turns into debt
    new_cash = state.company.cash - agent_config.deployment_cost
    updated = replace(
        state,
        company=replace(state.company, cash=new_cash, agents=agents + (agent,)),
    )

    cost_millions = agent_config.deployment_cost / 1_000_000
    if new_cash < 0:
        return _with_event(
            updated,
            EventType.WARNING,
            f"Deployed {action.agent_type.value} agent {agent.id} for ${cost_millions:,.0f}M. "
            f"Company is now ${-new_cash:,.0f} in debt.",
        )
    return _with_event(
        updated,
        EventType.SUCCESS,
        f"Deployed {action.agent_type.value} agent {agent.id} for ${cost_millions:,.0f}M",
    )


def _automate_role(state: SimulationState, action: AutomateRole, config: SimulationConfig) -> SimulationState:
    role = action.role
    agent = find_agent(state, action.agent_id)
    if agent is None:
        return _with_event(
            state,
            EventType.DANGER,
            f"Cannot automate {role.value}: agent not found ({action.agent_id})",
        )

    specialization = AGENT_CONFIGS[agent.type.value].specialization
    if role.value not in specialization:
        return _with_event(
            state,
            EventType.DANGER,
            f"Agent {agent.id} ({agent.type.value}) cannot automate {role.value}. "
            f"It handles: {', '.join(specialization)}",
        )

    current = state.company.roles[role]
    new_level = min(1.0, current.automation_level + config.automation.automation_step)
    actual_increase = new_level - current.automation_level
    # Small headcounts can round down to no reduction while automation still rises
    reduction = math.floor(current.headcount * actual_increase)
    new_headcount = max(0, current.headcount - reduction)
    removed = current.headcount - new_headcount

    updated = _with_role(state, role, RoleData(headcount=new_headcount, automation_level=new_level))
    return _with_event(
        updated,
        EventType.SUCCESS,
        f"Agent {agent.id} automated {role.value} to {new_level * 100:.0f}% "
        f"(headcount -{removed}, now {new_headcount})",
    )
