"""
Share links.

A share token is the full simulation state as compact JSON, UTF-8 encoded,
then URL-safe base64 without padding. Decoding validates the payload against
the pydantic schemas below before anything is trusted.

Schema evolution: `ending`, `bankruptTicks`, `delisted`,
`catastrophicFailure` and `lastHeadcount` were added after the first release
and are optional. Unknown top-level keys from newer producers are carried
through unchanged; unknown nested keys are ignored.
"""

import base64
import binascii
import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from state import (
    ROLES,
    Agent,
    AgentType,
    CompanyState,
    Ending,
    EndingType,
    EventType,
    GameEvent,
    HiddenMetrics,
    RoleData,
    SimulationState,
)

logger = logging.getLogger(__name__)

_TOKEN_ALPHABET = re.compile(r"^[A-Za-z0-9_-]+$")


# ---------- Schemas ----------

class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        allow_inf_nan=False,
        extra="ignore",
    )


class RoleDataSchema(_Schema):
    headcount: int
    automation_level: float


class RolesSchema(_Schema):
    support: RoleDataSchema
    sales: RoleDataSchema
    engineering: RoleDataSchema
    legal: RoleDataSchema
    compliance: RoleDataSchema


class AgentSchema(_Schema):
    id: str
    type: AgentType
    deployed_at: int


class CompanySchema(_Schema):
    ticker: str
    cash: float
    burn_rate: float
    revenue: float
    stock_price: float
    market_cap: float
    roles: RolesSchema
    agents: List[AgentSchema]


class HiddenMetricsSchema(_Schema):
    compliance_risk: float
    audit_risk: float
    agent_risk: float


class GameEventSchema(_Schema):
    tick: int
    type: EventType
    message: str


class EndingSchema(_Schema):
    type: EndingType
    reason: str
    tick: int


class SimulationStateSchema(_Schema):
    model_config = ConfigDict(extra="allow")

    tick: int
    seed: str
    company: CompanySchema
    hidden: HiddenMetricsSchema
    events: List[GameEventSchema]

    # Added after the first release
    ending: Optional[EndingSchema] = None
    bankrupt_ticks: Optional[int] = None
    delisted: Optional[bool] = None
    catastrophic_failure: Optional[bool] = None
    last_headcount: Optional[int] = None

    def to_state(self) -> SimulationState:
        company = self.company
        roles_schema = company.roles
        return SimulationState(
            tick=self.tick,
            seed=self.seed,
            company=CompanyState(
                ticker=company.ticker,
                cash=company.cash,
                burn_rate=company.burn_rate,
                revenue=company.revenue,
                stock_price=company.stock_price,
                market_cap=company.market_cap,
                roles={
                    role: RoleData(
                        headcount=getattr(roles_schema, role.value).headcount,
                        automation_level=getattr(roles_schema, role.value).automation_level,
                    )
                    for role in ROLES
                },
                agents=tuple(
                    Agent(id=agent.id, type=agent.type, deployed_at=agent.deployed_at)
                    for agent in company.agents
                ),
            ),
            hidden=HiddenMetrics(
                compliance_risk=self.hidden.compliance_risk,
                audit_risk=self.hidden.audit_risk,
                agent_risk=self.hidden.agent_risk,
            ),
            events=tuple(
                GameEvent(tick=event.tick, type=event.type, message=event.message)
                for event in self.events
            ),
            ending=(
                Ending(type=self.ending.type, reason=self.ending.reason, tick=self.ending.tick)
                if self.ending is not None else None
            ),
            bankrupt_ticks=self.bankrupt_ticks,
            delisted=self.delisted,
            catastrophic_failure=self.catastrophic_failure,
            last_headcount=self.last_headcount,
            extra_fields=dict(self.model_extra or {}),
        )


# ---------- Plain mappings ----------

def state_to_dict(state: SimulationState) -> Dict[str, Any]:
    """JSON-ready mapping with the camelCase keys of the share format."""
    company = state.company
    payload: Dict[str, Any] = {
        "tick": state.tick,
        "seed": state.seed,
        "company": {
            "ticker": company.ticker,
            "cash": company.cash,
            "burnRate": company.burn_rate,
            "revenue": company.revenue,
            "stockPrice": company.stock_price,
            "marketCap": company.market_cap,
            "roles": {
                role.value: {
                    "headcount": company.roles[role].headcount,
                    "automationLevel": company.roles[role].automation_level,
                }
                for role in ROLES
            },
            "agents": [
                {"id": agent.id, "type": agent.type.value, "deployedAt": agent.deployed_at}
                for agent in company.agents
            ],
        },
        "hidden": {
            "complianceRisk": state.hidden.compliance_risk,
            "auditRisk": state.hidden.audit_risk,
            "agentRisk": state.hidden.agent_risk,
        },
        "events": [
            {"tick": event.tick, "type": event.type.value, "message": event.message}
            for event in state.events
        ],
    }

    if state.ending is not None:
        payload["ending"] = {
            "type": state.ending.type.value,
            "reason": state.ending.reason,
            "tick": state.ending.tick,
        }
    optional = {
        "bankruptTicks": state.bankrupt_ticks,
        "delisted": state.delisted,
        "catastrophicFailure": state.catastrophic_failure,
        "lastHeadcount": state.last_headcount,
    }
    payload.update({key: value for key, value in optional.items() if value is not None})

    for key, value in state.extra_fields.items():
        payload.setdefault(key, value)
    return payload


def state_from_dict(payload: Any) -> SimulationState:
    """Validate a decoded mapping. Raises pydantic.ValidationError on mismatch."""
    return SimulationStateSchema.model_validate_json(json.dumps(payload)).to_state()


# ---------- Tokens ----------

def encode_state(state: SimulationState) -> str:
    """Encode a state as a URL-safe token (alphabet [A-Za-z0-9_-], no padding)."""
    try:
        text = json.dumps(state_to_dict(state), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        raw = text.encode("utf-8")
    except (TypeError, ValueError) as exc:
        logger.error(f"Failed to encode state at week {state.tick}: {exc}")
        raise
    token = base64.urlsafe_b64encode(raw).decode("ascii")
    return token.rstrip("=")


def decode_state(token: str) -> Optional[SimulationState]:
    """
    Decode a share token.

    Returns None for anything that is not a valid token: empty input, bad
    base64, non-JSON content or a schema mismatch. Never raises.
    """
    if not isinstance(token, str) or not _TOKEN_ALPHABET.match(token):
        logger.warning("Rejected share token: empty or outside the URL-safe base64 alphabet")
        return None

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        text = raw.decode("utf-8")
    except (binascii.Error, ValueError) as exc:
        logger.warning(f"Rejected share token: undecodable payload ({exc})")
        return None

    try:
        schema = SimulationStateSchema.model_validate_json(text)
    except ValidationError as exc:
        logger.warning(f"Rejected share token: {exc.error_count()} validation error(s)")
        return None

    # Passthrough keys must survive the next encode
    try:
        json.dumps(schema.model_extra or {}, allow_nan=False)
    except ValueError as exc:
        logger.warning(f"Rejected share token: unencodable extra field ({exc})")
        return None

    return schema.to_state()
