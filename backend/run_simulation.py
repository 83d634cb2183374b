"""
Play a scripted One Person Left game from the command line.

Runs one of a few fixed strategies for a number of weeks, printing a report
every few weeks and a final summary with a share token that restores the
final state. Useful for balance checks: the same seed and strategy always
produce the same game.
"""

import argparse
import time
from typing import Callable, Dict, Optional

from actions import automate_role, deploy_agent, fire, set_automation
from config import AGENT_CONFIGS
from session import GameSession
from state import ROLES, AgentType, Role, SimulationState, total_headcount

Strategy = Callable[[GameSession], None]


def hold_strategy(session: GameSession) -> None:
    """Do nothing; watch the burn."""


def layoffs_strategy(session: GameSession) -> None:
    """Cut 10% of every role each week, keep at least one salesperson."""
    state = session.state
    for role in ROLES:
        headcount = state.company.roles[role].headcount
        keep = 1 if role is Role.SALES else 0
        cut = max(1, headcount // 10) if headcount > keep else 0
        cut = min(cut, headcount - keep)
        if cut > 0:
            session.dispatch(fire(role, cut))


def automate_strategy(session: GameSession) -> None:
    """Deploy one agent of each type up front, then automate everything they can."""
    state = session.state
    if not state.company.agents:
        for agent_type in AgentType:
            session.dispatch(deploy_agent(agent_type))
        session.dispatch(set_automation(Role.SUPPORT, 0.2))

    for agent in session.state.company.agents:
        for role in AGENT_CONFIGS[agent.type.value].specialization:
            if session.state.company.roles[Role(role)].automation_level < 1.0:
                session.dispatch(automate_role(role, agent.id))


STRATEGIES: Dict[str, Strategy] = {
    "hold": hold_strategy,
    "layoffs": layoffs_strategy,
    "automate": automate_strategy,
}


def print_report(state: SimulationState) -> None:
    company = state.company
    print(f"Week {state.tick:4d} | "
          f"Cash ${company.cash / 1e9:8.2f}B | "
          f"Burn ${company.burn_rate / 1e9:6.2f}B/yr | "
          f"Revenue ${company.revenue / 1e9:6.2f}B/yr | "
          f"Stock ${company.stock_price:8.2f} | "
          f"Headcount {total_headcount(state):6d} | "
          f"Risk C/A/AI {state.hidden.compliance_risk:.2f}/"
          f"{state.hidden.audit_risk:.2f}/{state.hidden.agent_risk:.2f}")


def main(
    seed: Optional[str] = None,
    strategy: str = "hold",
    num_weeks: int = 104,
    report_every: int = 4,
    token: Optional[str] = None,
    show_events: int = 10,
) -> SimulationState:
    print("=" * 80)
    print(f"ONE PERSON LEFT ({strategy} strategy, {num_weeks} weeks)")
    print("=" * 80)
    print()

    session = GameSession(seed)
    if token:
        if session.load_token(token):
            print(f"Restored shared game at week {session.state.tick} (seed {session.seed!r})")
        else:
            print("Share token rejected, starting a fresh game")
    print(f"Seed: {session.seed!r}")
    print()

    play = STRATEGIES[strategy]
    start_time = time.time()
    for _ in range(num_weeks):
        if session.state.ending is not None:
            break
        play(session)
        session.advance(1)
        if session.state.tick % report_every == 0:
            print_report(session.state)
    elapsed = time.time() - start_time

    state = session.state
    print()
    print("=" * 80)
    print("SUMMARY")
    print("=" * 80)
    print_report(state)
    if state.ending is not None:
        print(f"Ending: {state.ending.type.value.upper()} ({state.ending.reason}) at week {state.ending.tick}")
    else:
        print("Ending: none yet")
    print(f"Agents deployed: {len(state.company.agents)}")
    print(f"Events logged: {len(state.events)}")
    print(f"Simulation time: {elapsed:.2f} seconds")
    print()

    if show_events > 0:
        print(f"LAST {show_events} EVENTS:")
        for event in state.events[-show_events:]:
            print(f"  [week {event.tick:4d}] {event.type.value:7s} {event.message}")
        print()

    print("SHARE TOKEN:")
    print(f"  {session.share_token()}")
    print()
    return state


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a scripted One Person Left game.")
    parser.add_argument("--seed", type=str, default=None, help="RNG seed (default: the built-in seed)")
    parser.add_argument("--strategy", choices=sorted(STRATEGIES), default="hold", help="Scripted player strategy")
    parser.add_argument("--weeks", type=int, default=104, help="Number of weeks to play")
    parser.add_argument("--report-every", type=int, default=4, help="Report interval (weeks)")
    parser.add_argument("--token", type=str, default=None, help="Share token to resume from")
    parser.add_argument("--events", type=int, default=10, help="How many recent events to print")
    args = parser.parse_args()

    main(
        seed=args.seed,
        strategy=args.strategy,
        num_weeks=args.weeks,
        report_every=max(1, args.report_every),
        token=args.token,
        show_events=args.events,
    )
