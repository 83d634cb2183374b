"""
Game session.

The one place that holds mutable state: the current SimulationState for a
single player. Engine functions stay pure; the session feeds each result
into the next call, one at a time, in the order the player issued them.
"""

import logging
from typing import Any, Dict, List, Optional

from actions import AdvanceTick, GameAction, action_from_dict, action_to_dict
from config import CONFIG, SimulationConfig
from engine import tick
from reducer import reduce
from share import decode_state, encode_state, state_to_dict
from state import SimulationState, create_initial_state, total_headcount

logger = logging.getLogger(__name__)


class GameSession:
    def __init__(self, seed: Optional[str] = None, config: SimulationConfig = CONFIG):
        self.config = config
        self.seed = seed if seed is not None else config.company.default_seed
        self.state: SimulationState = create_initial_state(self.seed, config)
        # State the recorded history starts from; None means a fresh game
        self.origin: Optional[SimulationState] = None
        self.history: List[Dict[str, Any]] = []

    # ---------- Lifecycle ----------

    def reset(self, seed: Optional[str] = None) -> SimulationState:
        """Replace the current game with a fresh one."""
        seed = self.seed if seed is None else seed
        state = create_initial_state(seed, self.config)
        logger.info(f"Starting new game with seed {seed!r}")
        self.seed = seed
        self.state = state
        self.origin = None
        self.history = []
        return self.state

    def load_token(self, token: str) -> bool:
        """
        Restore a shared game. On an invalid token the session falls back to
        a fresh game from its current seed and returns False.
        """
        restored = decode_state(token)
        if restored is None:
            self.reset()
            return False

        logger.info(f"Restored game {restored.seed!r} at week {restored.tick}")
        self.seed = restored.seed
        self.state = restored
        self.origin = restored
        self.history = []
        return True

    def load_url(self, url: str) -> bool:
        """Restore from a share link; the token lives in the URL fragment."""
        _, _, fragment = url.partition("#")
        return self.load_token(fragment)

    # ---------- Play ----------

    def dispatch(self, action: GameAction) -> SimulationState:
        """Apply a player action. ADVANCE_TICK advances the world by one week."""
        if isinstance(action, AdvanceTick):
            return self.advance(1)
        self.state = reduce(self.state, action, self.config)
        self.history.append(action_to_dict(action))
        return self.state

    def advance(self, weeks: int = 1) -> SimulationState:
        """Advance up to `weeks` weeks, stopping at the week an ending is reached."""
        for _ in range(weeks):
            if self.state.ending is not None:
                break
            self.state = tick(self.state, self.config)
            self.history.append(action_to_dict(AdvanceTick()))
            if self.state.ending is not None:
                logger.info(
                    f"Game {self.seed!r} ended at week {self.state.ending.tick}: "
                    f"{self.state.ending.type.value} ({self.state.ending.reason})"
                )
        return self.state

    # ---------- Sharing ----------

    def share_token(self) -> str:
        return encode_state(self.state)

    def share_url(self, base_url: str) -> str:
        base, _, _ = base_url.partition("#")
        return f"{base}#{self.share_token()}"

    # ---------- Read-only projections ----------

    def snapshot(self) -> Dict[str, Any]:
        return state_to_dict(self.state)

    def metrics(self) -> Dict[str, Any]:
        """Derived numbers the dashboard shows next to the raw state."""
        company = self.state.company
        weekly_net = (company.revenue - company.burn_rate) / self.config.time.ticks_per_year
        if weekly_net < 0 and company.cash > 0:
            runway_weeks: Optional[float] = company.cash / -weekly_net
        elif weekly_net < 0:
            runway_weeks = 0.0
        else:
            runway_weeks = None  # not burning cash

        roles = company.roles.values()
        ending = self.state.ending
        return {
            "tick": self.state.tick,
            "headcount": total_headcount(self.state),
            "cash": company.cash,
            "weeklyNetCash": weekly_net,
            "runwayWeeks": runway_weeks,
            "averageAutomation": sum(data.automation_level for data in roles) / len(company.roles),
            "agentCount": len(company.agents),
            "ending": None if ending is None else {
                "type": ending.type.value,
                "reason": ending.reason,
                "tick": ending.tick,
            },
        }


def replay(
    seed: str,
    history: List[Dict[str, Any]],
    config: SimulationConfig = CONFIG,
    origin: Optional[SimulationState] = None,
) -> SimulationState:
    """
    Rebuild a game from its seed and the recorded action history.

    A session restored from a share token records history from the restored
    state, not from week 0; pass that state as `origin` (`GameSession.origin`).
    """
    session = GameSession(seed, config)
    if origin is not None:
        session.state = origin
    for entry in history:
        session.dispatch(action_from_dict(entry))
    return session.state
