"""
Simulation State

Immutable snapshot types for the company simulation. Every engine call takes
one of these and returns a new one; nothing here is ever mutated in place.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from config import CONFIG, SimulationConfig


class Role(str, Enum):
    SUPPORT = "support"
    SALES = "sales"
    ENGINEERING = "engineering"
    LEGAL = "legal"
    COMPLIANCE = "compliance"


class AgentType(str, Enum):
    GENERALIST = "generalist"
    SUPPORT = "support"
    ENGINEER = "engineer"
    COMPLIANCE = "compliance"


class EventType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"
    SUCCESS = "success"


class EndingType(str, Enum):
    WIN = "win"
    LOSE = "lose"


# Fixed iteration order for roles
ROLES: Tuple[Role, ...] = tuple(Role)

# Known ending reasons (the serialized field stays an open string)
REASON_BANKRUPTCY = "bankruptcy"
REASON_DELISTED = "delisted"
REASON_CATASTROPHIC = "catastrophic"
REASON_ONE_PERSON_LEFT = "one_person_left"

DEFAULT_SEED = CONFIG.company.default_seed


@dataclass(frozen=True)
class RoleData:
    headcount: int
    automation_level: float  # 0.0 to 1.0, share of the role's work done by AI


@dataclass(frozen=True)
class Agent:
    id: str
    type: AgentType
    deployed_at: int  # tick of deployment


@dataclass(frozen=True)
class CompanyState:
    ticker: str
    cash: float  # dollars, negative only through agent deployment debt
    burn_rate: float  # dollars per year
    revenue: float  # dollars per year
    stock_price: float  # dollars per share
    market_cap: float  # dollars
    roles: Dict[Role, RoleData]
    agents: Tuple[Agent, ...] = ()


@dataclass(frozen=True)
class HiddenMetrics:
    compliance_risk: float = 0.0
    audit_risk: float = 0.0
    agent_risk: float = 0.0  # risk that AI agents go rogue


@dataclass(frozen=True)
class GameEvent:
    tick: int
    type: EventType
    message: str


@dataclass(frozen=True)
class Ending:
    type: EndingType
    reason: str
    tick: int


@dataclass(frozen=True)
class SimulationState:
    """
    Root snapshot of one simulated week.

    The optional fields arrived after the first share-link release, so states
    restored from older tokens may leave them unset. `extra_fields` holds
    top-level keys this version does not understand; they are written back
    out unchanged on the next encode.
    """

    tick: int  # week number
    seed: str  # RNG seed, fixed at creation
    company: CompanyState
    hidden: HiddenMetrics
    events: Tuple[GameEvent, ...] = ()
    ending: Optional[Ending] = None
    bankrupt_ticks: Optional[int] = None
    delisted: Optional[bool] = None
    catastrophic_failure: Optional[bool] = None
    last_headcount: Optional[int] = None  # total headcount after the previous tick
    extra_fields: Dict[str, Any] = field(default_factory=dict)


def create_initial_state(seed: Optional[str] = None, config: SimulationConfig = CONFIG) -> SimulationState:
    """Create the week-0 state for a new game."""
    if seed is None:
        seed = config.company.default_seed
    try:
        seed.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValueError(f"seed must be valid Unicode text: {seed!r}") from exc

    roles = {
        role: RoleData(headcount=config.company.initial_headcount[role.value], automation_level=0.0)
        for role in ROLES
    }
    company = CompanyState(
        ticker=config.company.ticker,
        cash=config.company.initial_cash,
        burn_rate=0.0,  # calculated on first tick
        revenue=0.0,  # calculated on first tick
        stock_price=config.company.initial_stock_price,
        market_cap=config.company.initial_market_cap,
        roles=roles,
        agents=(),
    )
    return SimulationState(
        tick=0,
        seed=seed,
        company=company,
        hidden=HiddenMetrics(),
        events=(GameEvent(tick=0, type=EventType.INFO, message=config.company.welcome_message),),
        last_headcount=sum(data.headcount for data in roles.values()),
    )


def total_headcount(state: SimulationState) -> int:
    """Headcount summed across all roles."""
    return sum(data.headcount for data in state.company.roles.values())


def role_headcount(state: SimulationState, role: Role) -> int:
    return state.company.roles[Role(role)].headcount


def find_agent(state: SimulationState, agent_id: str) -> Optional[Agent]:
    for agent in state.company.agents:
        if agent.id == agent_id:
            return agent
    return None
