"""
Unit tests for AI agents

Tests cover:
- DEPLOY_AGENT costs, ids and debt handling
- AUTOMATE_ROLE success and its two soft-failure paths
- Automation cap and small-headcount rounding
- Agent costs in burn and agent unreliability in risk
"""

from dataclasses import replace

from actions import automate_role, deploy_agent
from config import AGENT_CONFIGS
from engine import tick
from reducer import reduce
from state import AgentType, EventType, Role, RoleData, create_initial_state


def _with_cash(state, cash):
    return replace(state, company=replace(state.company, cash=cash))


def _with_role(state, role, headcount, automation_level=0.0):
    roles = dict(state.company.roles)
    roles[role] = RoleData(headcount=headcount, automation_level=automation_level)
    return replace(state, company=replace(state.company, roles=roles))


class TestDeployAgent:
    """Test suite for agent deployment"""

    def test_deploy_generalist_deducts_cost(self):
        state = create_initial_state("agents-deploy")
        new_state = reduce(state, deploy_agent(AgentType.GENERALIST))

        assert new_state.company.cash == state.company.cash - 10_000_000
        assert len(new_state.company.agents) == 1
        agent = new_state.company.agents[0]
        assert agent.type is AgentType.GENERALIST
        assert agent.deployed_at == 0
        assert agent.id == "agent-0-0"

        last = new_state.events[-1]
        assert last.type == EventType.SUCCESS
        assert "agent-0-0" in last.message

    def test_every_agent_type_uses_its_cost(self):
        state = create_initial_state("agents-costs")
        for agent_type in AgentType:
            new_state = reduce(state, deploy_agent(agent_type))
            expected = AGENT_CONFIGS[agent_type.value].deployment_cost
            assert state.company.cash - new_state.company.cash == expected

    def test_deploy_into_debt_warns(self):
        """Deployment is never refused; cash goes negative and a warning is logged"""
        state = _with_cash(create_initial_state("agents-debt"), 50_000_000)
        new_state = reduce(state, deploy_agent(AgentType.ENGINEER))

        assert new_state.company.cash == -50_000_000
        assert len(new_state.company.agents) == 1
        last = new_state.events[-1]
        assert last.type == EventType.WARNING
        assert "debt" in last.message

    def test_agent_ids_are_unique(self):
        state = create_initial_state("agents-ids")
        state = reduce(state, deploy_agent(AgentType.GENERALIST))
        state = reduce(state, deploy_agent(AgentType.GENERALIST))

        ids = [agent.id for agent in state.company.agents]
        assert ids == ["agent-0-0", "agent-0-1"]

    def test_deployed_at_tracks_tick(self):
        state = create_initial_state("agents-later")
        state = reduce(state, deploy_agent(AgentType.SUPPORT))
        state = tick(state)
        state = reduce(state, deploy_agent(AgentType.SUPPORT))

        later = state.company.agents[-1]
        assert later.deployed_at == 1
        assert later.id == "agent-1-1"


class TestAutomateRole:
    """Test suite for agent-driven automation"""

    def test_automate_support_with_generalist(self):
        state = reduce(create_initial_state("automate-ok"), deploy_agent(AgentType.GENERALIST))
        agent_id = state.company.agents[0].id

        new_state = reduce(state, automate_role(Role.SUPPORT, agent_id))

        support = new_state.company.roles[Role.SUPPORT]
        assert support.automation_level == 0.1
        assert support.headcount == 13_500
        last = new_state.events[-1]
        assert last.type == EventType.SUCCESS
        assert "headcount -1500" in last.message

    def test_missing_agent_is_a_soft_failure(self):
        state = create_initial_state("automate-missing")
        new_state = reduce(state, automate_role(Role.SUPPORT, "no-such-agent"))

        assert new_state.company == state.company
        last = new_state.events[-1]
        assert last.type == EventType.DANGER
        assert "agent not found" in last.message

    def test_incompatible_agent_is_a_soft_failure(self):
        state = reduce(create_initial_state("automate-mismatch"), deploy_agent(AgentType.SUPPORT))
        agent_id = state.company.agents[0].id

        new_state = reduce(state, automate_role(Role.ENGINEERING, agent_id))

        assert new_state.company.roles == state.company.roles
        last = new_state.events[-1]
        assert last.type == EventType.DANGER
        assert "cannot automate" in last.message

    def test_automation_caps_at_full(self):
        state = reduce(create_initial_state("automate-cap"), deploy_agent(AgentType.COMPLIANCE))
        agent_id = state.company.agents[0].id

        for _ in range(12):
            state = reduce(state, automate_role(Role.LEGAL, agent_id))

        assert state.company.roles[Role.LEGAL].automation_level == 1.0
        assert state.company.roles[Role.LEGAL].headcount >= 0

    def test_two_agents_stack(self):
        state = create_initial_state("automate-stack")
        state = reduce(state, deploy_agent(AgentType.GENERALIST))
        state = reduce(state, deploy_agent(AgentType.SUPPORT))

        for agent in state.company.agents:
            state = reduce(state, automate_role(Role.SUPPORT, agent.id))

        assert state.company.roles[Role.SUPPORT].automation_level == 0.2

    def test_small_headcount_rounds_down(self):
        """Automation still rises when the headcount reduction floors to zero"""
        state = _with_role(create_initial_state("automate-small"), Role.LEGAL, 5)
        state = reduce(state, deploy_agent(AgentType.COMPLIANCE))
        agent_id = state.company.agents[0].id

        new_state = reduce(state, automate_role(Role.LEGAL, agent_id))

        assert new_state.company.roles[Role.LEGAL].headcount == 5
        assert new_state.company.roles[Role.LEGAL].automation_level == 0.1

    def test_automate_does_not_spend_cash(self):
        state = reduce(create_initial_state("automate-free"), deploy_agent(AgentType.GENERALIST))
        new_state = reduce(state, automate_role(Role.SALES, state.company.agents[0].id))
        assert new_state.company.cash == state.company.cash


class TestAgentsInTick:
    """Agents feed into the weekly tick"""

    def test_agent_annual_cost_adds_to_burn(self):
        baseline = tick(create_initial_state("agents-burn"))
        with_agent = tick(reduce(create_initial_state("agents-burn"), deploy_agent(AgentType.GENERALIST)))

        assert with_agent.company.burn_rate == baseline.company.burn_rate + 5_000_000

    def test_less_reliable_agents_raise_agent_risk(self):
        """An engineer agent (0.6) always scores above a support agent (0.8)"""
        risky = reduce(create_initial_state("agents-risk"), deploy_agent(AgentType.ENGINEER))
        safe = reduce(create_initial_state("agents-risk"), deploy_agent(AgentType.SUPPORT))

        for _ in range(10):
            risky = tick(risky)
            safe = tick(safe)
            assert risky.hidden.agent_risk > safe.hidden.agent_risk
