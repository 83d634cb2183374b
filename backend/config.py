"""
Simulation Configuration

Centralizes all tunable parameters for the company simulation, plus the
static role and agent tables the engine reads from.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class RoleConfig:
    """Per-role economics (annual figures)."""
    annual_cost_per_employee: float
    revenue_per_employee: float


@dataclass(frozen=True)
class AgentConfig:
    """Per-agent-type economics and capabilities."""
    deployment_cost: float
    annual_cost: float
    reliability: float  # 0.0 to 1.0, lower means more incidents
    specialization: Tuple[str, ...]  # role names this agent may automate


ROLE_CONFIGS: Dict[str, RoleConfig] = {
    "support": RoleConfig(annual_cost_per_employee=80_000, revenue_per_employee=0),
    "sales": RoleConfig(annual_cost_per_employee=150_000, revenue_per_employee=500_000),
    "engineering": RoleConfig(annual_cost_per_employee=200_000, revenue_per_employee=0),
    "legal": RoleConfig(annual_cost_per_employee=180_000, revenue_per_employee=0),
    "compliance": RoleConfig(annual_cost_per_employee=160_000, revenue_per_employee=0),
}

AGENT_CONFIGS: Dict[str, AgentConfig] = {
    "generalist": AgentConfig(
        deployment_cost=10_000_000,
        annual_cost=5_000_000,
        reliability=0.7,
        specialization=("support", "sales"),
    ),
    "support": AgentConfig(
        deployment_cost=20_000_000,
        annual_cost=8_000_000,
        reliability=0.8,
        specialization=("support",),
    ),
    "engineer": AgentConfig(
        deployment_cost=100_000_000,
        annual_cost=50_000_000,
        reliability=0.6,
        specialization=("engineering",),
    ),
    "compliance": AgentConfig(
        deployment_cost=50_000_000,
        annual_cost=20_000_000,
        reliability=0.9,
        specialization=("compliance", "legal"),
    ),
}


@dataclass
class TimeConfig:
    """Time-related constants."""
    ticks_per_year: int = 52  # One tick = one week


@dataclass
class CompanyConfig:
    """Starting position of the company at week 0."""
    ticker: str = "DNSZ"
    initial_cash: float = 40_000_000_000  # $40B
    initial_stock_price: float = 666  # IPO price
    initial_market_cap: float = 666_000_000_000
    initial_headcount: Dict[str, int] = field(default_factory=lambda: {
        "support": 15_000,
        "sales": 10_000,
        "engineering": 15_000,
        "legal": 5_000,
        "compliance": 5_000,
    })
    default_seed: str = "default-seed"
    welcome_message: str = "Simulation initialized. Welcome to One Person Left."


@dataclass
class FinanceConfig:
    """Burn and revenue model."""
    automation_cost_discount: float = 0.3  # Full automation trims labor cost by 30%
    automation_revenue_boost: float = 0.5  # Full sales automation adds 50% revenue


@dataclass
class MarketConfig:
    """Stock price model."""
    cash_per_employee_divisor: float = 1000.0
    revenue_per_employee_divisor: float = 100.0
    price_weight: float = 0.5
    volatility: float = 0.05  # Symmetric +/-5% weekly random walk
    min_stock_price: float = 1.0
    shares_outstanding: int = 1_000_000_000


@dataclass
class RiskConfig:
    """Hidden risk model."""
    reference_headcount: float = 5000.0  # Risk climbs as compliance/legal drop below this
    automation_risk_weight: float = 0.3
    role_risk_jitter: float = 0.1
    agent_risk_jitter: float = 0.05
    unreliability_weight: float = 0.5


@dataclass
class EventConfig:
    """Stochastic event rates (per week)."""
    compliance_event_rate: float = 0.02  # Scaled by compliance risk
    audit_event_rate: float = 0.02  # Scaled by audit risk
    anomaly_event_rate: float = 0.01  # Scaled by agent risk

    # Catastrophic outcomes
    delisting_risk_threshold: float = 0.7  # Both compliance and audit risk above this
    delisting_chance: float = 0.05
    catastrophe_risk_threshold: float = 0.8
    catastrophe_chance: float = 0.03


@dataclass
class EndingConfig:
    """Win/lose thresholds."""
    bankruptcy_weeks: int = 4  # Consecutive weeks at zero cash
    win_headcount: int = 1


@dataclass
class AutomationConfig:
    """Agent-driven role automation."""
    automation_step: float = 0.1  # Automation gained per AUTOMATE_ROLE


@dataclass
class ActionConfig:
    """Player input limits."""
    max_action_count: int = 1_000_000_000  # Largest HIRE/FIRE batch


@dataclass
class SimulationConfig:
    """Master configuration for the entire simulation."""

    time: TimeConfig = field(default_factory=TimeConfig)
    company: CompanyConfig = field(default_factory=CompanyConfig)
    finance: FinanceConfig = field(default_factory=FinanceConfig)
    market: MarketConfig = field(default_factory=MarketConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    events: EventConfig = field(default_factory=EventConfig)
    endings: EndingConfig = field(default_factory=EndingConfig)
    automation: AutomationConfig = field(default_factory=AutomationConfig)
    actions: ActionConfig = field(default_factory=ActionConfig)

    def __post_init__(self):
        """Validation of bounds the engine relies on."""
        if self.time.ticks_per_year <= 0:
            raise ValueError("ticks_per_year must be positive")

        if set(self.company.initial_headcount) != set(ROLE_CONFIGS):
            raise ValueError("initial_headcount must define every role exactly once")
        for role, headcount in self.company.initial_headcount.items():
            if headcount < 0:
                raise ValueError(f"initial headcount for {role} cannot be negative, got {headcount}")

        if not (0.0 <= self.finance.automation_cost_discount <= 1.0):
            raise ValueError("automation_cost_discount must be in [0, 1]")
        if self.finance.automation_revenue_boost < 0:
            raise ValueError("automation_revenue_boost must be non-negative")

        if not (0.0 <= self.market.volatility < 1.0):
            raise ValueError("volatility must be in [0, 1)")
        if self.market.min_stock_price < 0:
            raise ValueError("min_stock_price must be non-negative")
        if self.market.shares_outstanding <= 0:
            raise ValueError("shares_outstanding must be positive")

        if self.risk.reference_headcount <= 0:
            raise ValueError("reference_headcount must be positive")

        for name in ("delisting_chance", "catastrophe_chance"):
            value = getattr(self.events, name)
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be in [0, 1]")

        if self.endings.bankruptcy_weeks < 1:
            raise ValueError("bankruptcy_weeks must be at least 1")
        if not (0.0 < self.automation.automation_step <= 1.0):
            raise ValueError("automation_step must be in (0, 1]")
        if self.actions.max_action_count < 1:
            raise ValueError("max_action_count must be at least 1")

        for agent_type, agent in AGENT_CONFIGS.items():
            if not (0.0 <= agent.reliability <= 1.0):
                raise ValueError(f"reliability for {agent_type} must be in [0, 1]")
            unknown = set(agent.specialization) - set(ROLE_CONFIGS)
            if unknown:
                raise ValueError(f"{agent_type} agent automates unknown roles: {sorted(unknown)}")


# Global configuration instance
CONFIG = SimulationConfig()
