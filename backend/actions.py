"""
Player actions.

Actions are the only way to change the company besides advancing time. Each
action is a frozen value that normalizes its own arguments when built, so the
reducer never sees an out-of-range level or a negative count however the
action was constructed.
"""

import math
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Union

from config import CONFIG
from state import AgentType, Role


def _finite(value: Any, name: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"{name} must be a finite number, got {value!r}")
    return number


def _clamp_level(level: Any) -> float:
    return max(0.0, min(1.0, _finite(level, "level")))


def _non_negative_count(count: Any) -> int:
    count = max(0, math.floor(_finite(count, "count")))
    return min(count, CONFIG.actions.max_action_count)


@dataclass(frozen=True)
class SetAutomation:
    type: ClassVar[str] = "SET_AUTOMATION"
    role: Role
    level: float

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "level", _clamp_level(self.level))


@dataclass(frozen=True)
class Hire:
    type: ClassVar[str] = "HIRE"
    role: Role
    count: int

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "count", _non_negative_count(self.count))


@dataclass(frozen=True)
class Fire:
    type: ClassVar[str] = "FIRE"
    role: Role
    count: int

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "count", _non_negative_count(self.count))


@dataclass(frozen=True)
class DeployAgent:
    type: ClassVar[str] = "DEPLOY_AGENT"
    agent_type: AgentType

    def __post_init__(self):
        object.__setattr__(self, "agent_type", AgentType(self.agent_type))


@dataclass(frozen=True)
class AutomateRole:
    type: ClassVar[str] = "AUTOMATE_ROLE"
    role: Role
    agent_id: str

    def __post_init__(self):
        object.__setattr__(self, "role", Role(self.role))
        if not isinstance(self.agent_id, str):
            raise ValueError(f"agent_id must be a string, got {self.agent_id!r}")


@dataclass(frozen=True)
class AdvanceTick:
    type: ClassVar[str] = "ADVANCE_TICK"


GameAction = Union[SetAutomation, Hire, Fire, DeployAgent, AutomateRole, AdvanceTick]


# ---------- Constructors ----------

def set_automation(role: Union[Role, str], level: float) -> SetAutomation:
    return SetAutomation(role=role, level=level)


def hire(role: Union[Role, str], count: float) -> Hire:
    return Hire(role=role, count=count)


def fire(role: Union[Role, str], count: float) -> Fire:
    return Fire(role=role, count=count)


def deploy_agent(agent_type: Union[AgentType, str]) -> DeployAgent:
    return DeployAgent(agent_type=agent_type)


def automate_role(role: Union[Role, str], agent_id: str) -> AutomateRole:
    return AutomateRole(role=role, agent_id=agent_id)


def advance_tick() -> AdvanceTick:
    return AdvanceTick()


# ---------- Wire format ----------

def action_from_dict(payload: Mapping[str, Any]) -> GameAction:
    """
    Build an action from a `{"type": "HIRE", "role": "sales", "count": 5}`
    style mapping (camelCase argument keys, as the UI sends them).

    Raises ValueError for unknown tags, missing arguments or bad values.
    """
    kind = payload.get("type")
    try:
        if kind == SetAutomation.type:
            return set_automation(payload["role"], payload["level"])
        if kind == Hire.type:
            return hire(payload["role"], payload["count"])
        if kind == Fire.type:
            return fire(payload["role"], payload["count"])
        if kind == DeployAgent.type:
            return deploy_agent(payload["agentType"])
        if kind == AutomateRole.type:
            return automate_role(payload["role"], payload["agentId"])
        if kind == AdvanceTick.type:
            return advance_tick()
    except KeyError as exc:
        raise ValueError(f"{kind} action is missing argument {exc.args[0]!r}") from exc
    except TypeError as exc:
        raise ValueError(f"{kind} action has an argument of the wrong type: {exc}") from exc
    raise ValueError(f"Unknown action type: {kind!r}")


def action_to_dict(action: GameAction) -> Dict[str, Any]:
    if isinstance(action, SetAutomation):
        return {"type": action.type, "role": action.role.value, "level": action.level}
    if isinstance(action, (Hire, Fire)):
        return {"type": action.type, "role": action.role.value, "count": action.count}
    if isinstance(action, DeployAgent):
        return {"type": action.type, "agentType": action.agent_type.value}
    if isinstance(action, AutomateRole):
        return {"type": action.type, "role": action.role.value, "agentId": action.agent_id}
    return {"type": action.type}
