"""
Tick Engine

Advances the company by one week. Each call recomputes finances, the stock
price, hidden risk, stochastic incidents, the bankruptcy counter and the
ending, in that order.

All randomness comes from a SeededRNG rebuilt from the root seed and the tick
index, so a (seed, action sequence) pair always replays to the same states.
The RNG draw order below is part of the save format: changing it changes
every shared game.
"""

import logging
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

import numpy as np

from config import AGENT_CONFIGS, CONFIG, ROLE_CONFIGS, SimulationConfig
from rng import SeededRNG
from state import (
    REASON_BANKRUPTCY,
    REASON_CATASTROPHIC,
    REASON_DELISTED,
    REASON_ONE_PERSON_LEFT,
    ROLES,
    Ending,
    EndingType,
    EventType,
    GameEvent,
    HiddenMetrics,
    Role,
    SimulationState,
    total_headcount,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RiskRoll:
    """Outcome of the weekly incident rolls."""
    events: Tuple[GameEvent, ...]
    delisted: bool
    catastrophic_failure: bool


def tick_rng(state: SimulationState) -> SeededRNG:
    """The generator for the step that starts at `state.tick`."""
    return SeededRNG(f"{state.seed}-tick-{state.tick}")


def tick(state: SimulationState, config: SimulationConfig = CONFIG) -> SimulationState:
    """Advance the simulation by one week."""
    rng = tick_rng(state)
    next_tick = state.tick + 1
    new_events: List[GameEvent] = []

    # Financials
    burn_rate, revenue = calculate_financials(state, config)
    weekly_net = (revenue - burn_rate) / config.time.ticks_per_year
    new_cash = max(0.0, state.company.cash + weekly_net)

    if new_cash == 0 and state.company.cash > 0:
        new_events.append(GameEvent(
            tick=next_tick,
            type=EventType.DANGER,
            message="BANKRUPT! Company has run out of cash.",
        ))

    # Market
    headcount = total_headcount(state)
    stock_price = calculate_stock_price(new_cash, revenue, headcount, rng, config)
    market_cap = stock_price * config.market.shares_outstanding

    # Hidden risk
    hidden = calculate_risks(state, rng, config)

    # Incidents
    roll = roll_risk_events(next_tick, hidden, rng, config)
    new_events.extend(roll.events)
    delisted = True if roll.delisted else state.delisted
    catastrophic_failure = True if roll.catastrophic_failure else state.catastrophic_failure

    # Weekly headcount status
    if state.last_headcount is not None and headcount != state.last_headcount:
        change = headcount - state.last_headcount
        direction = "increased" if change > 0 else "decreased"
        new_events.append(GameEvent(
            tick=next_tick,
            type=EventType.INFO,
            message=f"Week {next_tick}: Headcount {direction} by {abs(change)}",
        ))

    # Bankruptcy counter
    bankrupt_ticks = (state.bankrupt_ticks or 0) + 1 if new_cash <= 0 else 0

    updated = replace(
        state,
        tick=next_tick,
        company=replace(
            state.company,
            cash=new_cash,
            burn_rate=burn_rate,
            revenue=revenue,
            stock_price=stock_price,
            market_cap=market_cap,
        ),
        hidden=hidden,
        bankrupt_ticks=bankrupt_ticks,
        delisted=delisted,
        catastrophic_failure=catastrophic_failure,
        last_headcount=headcount,
    )

    ending = updated.ending
    if ending is None:
        ending = detect_ending(updated, config)
        if ending is not None:
            logger.debug(f"Seed {state.seed!r} reached {ending.type.value}/{ending.reason} at week {ending.tick}")
            new_events.append(_ending_event(ending))

    return replace(updated, ending=ending, events=state.events + tuple(new_events))


def calculate_financials(state: SimulationState, config: SimulationConfig = CONFIG) -> Tuple[float, float]:
    """
    Annual burn rate and revenue for the current roster.

    Automation discounts labor cost (up to `automation_cost_discount`) and,
    for sales only, boosts revenue (up to `automation_revenue_boost`). Every
    deployed agent adds its fixed annual cost to burn.
    """
    roles = state.company.roles
    headcounts = np.array([roles[role].headcount for role in ROLES], dtype=np.float64)
    automation = np.array([roles[role].automation_level for role in ROLES], dtype=np.float64)
    costs = np.array([ROLE_CONFIGS[role.value].annual_cost_per_employee for role in ROLES], dtype=np.float64)
    revenues = np.array([ROLE_CONFIGS[role.value].revenue_per_employee for role in ROLES], dtype=np.float64)
    revenue_mask = np.array([role is Role.SALES for role in ROLES])

    labor_burn = costs * headcounts * (1.0 - automation * config.finance.automation_cost_discount)
    sales_revenue = revenues * headcounts * (1.0 + automation * config.finance.automation_revenue_boost)

    agent_burn = sum(AGENT_CONFIGS[agent.type.value].annual_cost for agent in state.company.agents)
    burn_rate = float(labor_burn.sum()) + agent_burn
    revenue = float(sales_revenue[revenue_mask].sum())
    return burn_rate, revenue


def calculate_stock_price(
    cash: float,
    revenue: float,
    headcount: int,
    rng: SeededRNG,
    config: SimulationConfig = CONFIG,
) -> float:
    """Price from cash and revenue per employee, with a symmetric random walk."""
    market = config.market
    cash_per_employee = cash / headcount if headcount > 0 else 0.0
    revenue_per_employee = revenue / headcount if headcount > 0 else 0.0

    base_price = (
        cash_per_employee / market.cash_per_employee_divisor
        + revenue_per_employee / market.revenue_per_employee_divisor
    ) * market.price_weight
    volatility = rng.next_float(-market.volatility, market.volatility)
    return max(market.min_stock_price, base_price * (1 + volatility))


def calculate_risks(state: SimulationState, rng: SeededRNG, config: SimulationConfig = CONFIG) -> HiddenMetrics:
    """
    Hidden risk scalars, each clamped to [0, 1].

    Compliance and audit risk climb as the compliance and legal teams shrink
    below the reference headcount and as those roles are automated. Agent
    risk follows the square of average automation plus the average
    unreliability of deployed agents.
    """
    risk = config.risk
    roles = state.company.roles

    def team_risk(role: Role) -> float:
        data = roles[role]
        base = 1 - data.headcount / risk.reference_headcount
        from_automation = data.automation_level * risk.automation_risk_weight
        jitter = rng.next_float(-risk.role_risk_jitter, risk.role_risk_jitter)
        return float(np.clip(base + from_automation + jitter, 0.0, 1.0))

    compliance_risk = team_risk(Role.COMPLIANCE)
    audit_risk = team_risk(Role.LEGAL)

    automation = np.array([roles[role].automation_level for role in ROLES], dtype=np.float64)
    avg_automation = float(automation.mean())

    agents = state.company.agents
    if agents:
        unreliability = np.array([1 - AGENT_CONFIGS[agent.type.value].reliability for agent in agents])
        avg_unreliability = float(unreliability.mean())
    else:
        avg_unreliability = 0.0

    jitter = rng.next_float(-risk.agent_risk_jitter, risk.agent_risk_jitter)
    agent_risk = float(np.clip(
        avg_automation * avg_automation + avg_unreliability * risk.unreliability_weight + jitter,
        0.0,
        1.0,
    ))

    return HiddenMetrics(compliance_risk=compliance_risk, audit_risk=audit_risk, agent_risk=agent_risk)


def roll_risk_events(
    tick_index: int,
    hidden: HiddenMetrics,
    rng: SeededRNG,
    config: SimulationConfig = CONFIG,
) -> RiskRoll:
    """
    Roll the three weekly incident slots: compliance, audit, agent.

    Each slot consumes exactly one draw whichever branch it takes, so the
    stream position after this call never depends on the risk values.
    """
    rates = config.events
    events: List[GameEvent] = []
    delisted = False
    catastrophic_failure = False

    if rng.chance(hidden.compliance_risk * rates.compliance_event_rate):
        events.append(GameEvent(
            tick=tick_index,
            type=EventType.WARNING,
            message="Compliance issue detected. Regulatory scrutiny increased.",
        ))

    if (hidden.compliance_risk > rates.delisting_risk_threshold
            and hidden.audit_risk > rates.delisting_risk_threshold):
        if rng.chance(rates.delisting_chance):
            delisted = True
            events.append(GameEvent(
                tick=tick_index,
                type=EventType.DANGER,
                message="DELISTED! Regulators found critical compliance and audit failures.",
            ))
    elif rng.chance(hidden.audit_risk * rates.audit_event_rate):
        events.append(GameEvent(
            tick=tick_index,
            type=EventType.WARNING,
            message="Legal audit triggered. Additional oversight required.",
        ))

    if hidden.agent_risk > rates.catastrophe_risk_threshold:
        if rng.chance(rates.catastrophe_chance):
            catastrophic_failure = True
            events.append(GameEvent(
                tick=tick_index,
                type=EventType.DANGER,
                message="CATASTROPHIC AI FAILURE! Autonomous agents have taken down core operations.",
            ))
    elif rng.chance(hidden.agent_risk * rates.anomaly_event_rate):
        events.append(GameEvent(
            tick=tick_index,
            type=EventType.DANGER,
            message="AI agent anomaly detected. System behavior under review.",
        ))

    return RiskRoll(events=tuple(events), delisted=delisted, catastrophic_failure=catastrophic_failure)


def detect_ending(state: SimulationState, config: SimulationConfig = CONFIG) -> Optional[Ending]:
    """
    Ending for a freshly ticked state, or None if the game goes on.

    An ending that is already set is returned untouched.
    """
    if state.ending is not None:
        return state.ending

    if (state.bankrupt_ticks or 0) >= config.endings.bankruptcy_weeks:
        return Ending(type=EndingType.LOSE, reason=REASON_BANKRUPTCY, tick=state.tick)
    if state.delisted:
        return Ending(type=EndingType.LOSE, reason=REASON_DELISTED, tick=state.tick)
    if state.catastrophic_failure:
        return Ending(type=EndingType.LOSE, reason=REASON_CATASTROPHIC, tick=state.tick)
    if total_headcount(state) == config.endings.win_headcount and state.company.cash > 0:
        return Ending(type=EndingType.WIN, reason=REASON_ONE_PERSON_LEFT, tick=state.tick)
    return None


_ENDING_MESSAGES = {
    REASON_BANKRUPTCY: "GAME OVER: the company stayed out of cash for too long and has been liquidated.",
    REASON_DELISTED: "GAME OVER: the company has been delisted.",
    REASON_CATASTROPHIC: "GAME OVER: the board dissolved the company after a catastrophic AI incident.",
    REASON_ONE_PERSON_LEFT: "VICTORY: one person left. Peak efficiency achieved.",
}


def _ending_event(ending: Ending) -> GameEvent:
    event_type = EventType.SUCCESS if ending.type is EndingType.WIN else EventType.DANGER
    message = _ENDING_MESSAGES.get(ending.reason, f"Game over: {ending.reason}")
    return GameEvent(tick=ending.tick, type=event_type, message=message)
