"""
Unit tests for the tick engine

Tests cover:
- Burn, revenue and cash updates
- Stock price and market cap
- Hidden risk ranges
- Incident rolls and their fixed draw usage
- Weekly headcount events
"""

from dataclasses import replace

import pytest

from actions import fire, set_automation
from config import EventConfig, SimulationConfig
from engine import calculate_financials, calculate_risks, roll_risk_events, tick, tick_rng
from reducer import reduce
from rng import SeededRNG
from state import EventType, HiddenMetrics, Role, RoleData, create_initial_state


def _with_headcounts(state, **headcounts):
    roles = dict(state.company.roles)
    for name, headcount in headcounts.items():
        role = Role(name)
        roles[role] = replace(roles[role], headcount=headcount)
    return replace(state, company=replace(state.company, roles=roles))


class TestFinancials:
    """Burn rate, revenue and cash"""

    def test_initial_burn_and_revenue(self):
        new_state = tick(create_initial_state("seed1"))

        assert new_state.company.burn_rate == 7_400_000_000
        assert new_state.company.revenue == 5_000_000_000

    def test_cash_moves_by_weekly_net(self):
        state = create_initial_state("cash-test")
        new_state = tick(state)

        expected = 40_000_000_000 + (5_000_000_000 - 7_400_000_000) / 52
        assert new_state.company.cash == pytest.approx(expected)

    def test_automation_discounts_labor_and_boosts_sales(self):
        state = create_initial_state("automation-finance")
        state = reduce(state, set_automation(Role.SALES, 1.0))
        burn_rate, revenue = calculate_financials(state)

        # Sales labor 1.5B drops by 30%, sales revenue 5B rises by 50%
        assert burn_rate == pytest.approx(7_400_000_000 - 450_000_000)
        assert revenue == pytest.approx(7_500_000_000)

    def test_cash_floors_at_zero_with_event(self):
        state = replace(create_initial_state("cash-floor"), company=replace(
            create_initial_state("cash-floor").company, cash=1000.0,
        ))
        new_state = tick(state)

        assert new_state.company.cash == 0
        assert new_state.bankrupt_ticks == 1
        messages = [event.message for event in new_state.events if event.tick == 1]
        assert "BANKRUPT! Company has run out of cash." in messages

    def test_no_bankrupt_event_when_already_broke(self):
        state = create_initial_state("already-broke")
        state = replace(state, company=replace(state.company, cash=0.0))
        new_state = tick(state)

        assert not any(event.message.startswith("BANKRUPT") for event in new_state.events)

    def test_tick_counter_increments(self):
        state = create_initial_state("tick-counter")
        for expected in range(1, 6):
            state = tick(state)
            assert state.tick == expected


class TestMarket:
    """Stock price and market cap"""

    def test_price_within_volatility_band(self):
        state = create_initial_state("price-band")
        new_state = tick(state)

        company = new_state.company
        base = (company.cash / 50_000 / 1000 + company.revenue / 50_000 / 100) * 0.5
        assert base * 0.95 <= company.stock_price <= base * 1.05

    def test_market_cap_follows_price(self):
        new_state = tick(create_initial_state("market-cap"))
        assert new_state.company.market_cap == pytest.approx(new_state.company.stock_price * 1_000_000_000)

    def test_zero_headcount_floors_price(self):
        state = _with_headcounts(
            create_initial_state("no-staff"),
            support=0, sales=0, engineering=0, legal=0, compliance=0,
        )
        new_state = tick(state)

        assert new_state.company.stock_price == 1.0
        assert new_state.company.market_cap == 1_000_000_000


class TestRisks:
    """Hidden risk scalars"""

    def test_fully_staffed_risks_are_low(self):
        state = create_initial_state("low-risk")
        hidden = calculate_risks(state, SeededRNG("low-risk-rng"))

        assert 0.0 <= hidden.compliance_risk <= 0.1
        assert 0.0 <= hidden.audit_risk <= 0.1
        assert 0.0 <= hidden.agent_risk <= 0.05

    def test_no_compliance_team_maxes_risk(self):
        state = _with_headcounts(create_initial_state("high-risk"), compliance=0, legal=0)
        hidden = calculate_risks(state, SeededRNG("high-risk-rng"))

        assert hidden.compliance_risk >= 0.9
        assert hidden.audit_risk >= 0.9

    def test_full_automation_drives_agent_risk(self):
        state = create_initial_state("automation-risk")
        roles = {role: RoleData(headcount=data.headcount, automation_level=1.0)
                 for role, data in state.company.roles.items()}
        state = replace(state, company=replace(state.company, roles=roles))

        hidden = calculate_risks(state, SeededRNG("automation-risk-rng"))
        assert hidden.agent_risk >= 0.95

    def test_risks_always_clamped(self):
        state = create_initial_state("clamp-risk")
        state = reduce(state, fire(Role.COMPLIANCE, 5000))
        state = reduce(state, set_automation(Role.COMPLIANCE, 1.0))
        rng = SeededRNG("clamp-risk-rng")
        for _ in range(100):
            hidden = calculate_risks(state, rng)
            for value in (hidden.compliance_risk, hidden.audit_risk, hidden.agent_risk):
                assert 0.0 <= value <= 1.0


class TestRiskEvents:
    """Incident rolls"""

    def test_each_slot_consumes_one_draw(self):
        """Stream position afterwards is the same for calm and extreme risk"""
        calm_rng = SeededRNG("draws")
        wild_rng = SeededRNG("draws")

        roll_risk_events(1, HiddenMetrics(), calm_rng)
        roll_risk_events(1, HiddenMetrics(0.95, 0.95, 0.95), wild_rng)

        assert calm_rng.next() == wild_rng.next()

    def test_zero_risk_never_fires(self):
        rng = SeededRNG("zero-risk")
        for _ in range(200):
            roll = roll_risk_events(1, HiddenMetrics(), rng)
            assert roll.events == ()
            assert not roll.delisted
            assert not roll.catastrophic_failure

    def test_delisting(self):
        config = SimulationConfig(events=EventConfig(delisting_chance=1.0))
        roll = roll_risk_events(3, HiddenMetrics(0.9, 0.9, 0.0), SeededRNG("delist"), config)

        assert roll.delisted
        assert any(event.message.startswith("DELISTED!") for event in roll.events)
        assert all(event.tick == 3 for event in roll.events)

    def test_delisting_needs_both_risks(self):
        config = SimulationConfig(events=EventConfig(delisting_chance=1.0))
        roll = roll_risk_events(3, HiddenMetrics(0.9, 0.5, 0.0), SeededRNG("half-delist"), config)
        assert not roll.delisted

    def test_catastrophe(self):
        config = SimulationConfig(events=EventConfig(catastrophe_chance=1.0))
        roll = roll_risk_events(5, HiddenMetrics(0.0, 0.0, 0.9), SeededRNG("catastrophe"), config)

        assert roll.catastrophic_failure
        assert roll.events[-1].type == EventType.DANGER
        assert roll.events[-1].message.startswith("CATASTROPHIC AI FAILURE!")

    def test_anomaly_below_catastrophe_threshold(self):
        config = SimulationConfig(events=EventConfig(anomaly_event_rate=100.0))
        roll = roll_risk_events(5, HiddenMetrics(0.0, 0.0, 0.5), SeededRNG("anomaly"), config)

        assert not roll.catastrophic_failure
        assert [event.message for event in roll.events] == [
            "AI agent anomaly detected. System behavior under review."
        ]

    def test_compliance_and_audit_warnings(self):
        config = SimulationConfig(events=EventConfig(compliance_event_rate=100.0, audit_event_rate=100.0))
        roll = roll_risk_events(2, HiddenMetrics(0.5, 0.5, 0.0), SeededRNG("warnings"), config)

        assert [event.type for event in roll.events] == [EventType.WARNING, EventType.WARNING]
        assert roll.events[0].message.startswith("Compliance issue detected")
        assert roll.events[1].message.startswith("Legal audit triggered")


class TestTick:
    """Whole-step behavior"""

    def test_tick_is_pure(self):
        state = create_initial_state("pure-tick")
        pristine = create_initial_state("pure-tick")

        tick(state)

        assert state == pristine

    def test_same_state_same_result(self):
        state = create_initial_state("repeatable")
        assert tick(state) == tick(state)

    def test_rng_depends_on_seed_and_tick(self):
        state = create_initial_state("rng-source")
        later = replace(state, tick=7)

        assert tick_rng(state).next() == SeededRNG("rng-source-tick-0").next()
        assert tick_rng(later).next() == SeededRNG("rng-source-tick-7").next()

    def test_headcount_change_event(self):
        state = reduce(create_initial_state("headcount-event"), fire(Role.SUPPORT, 100))
        new_state = tick(state)

        messages = [event.message for event in new_state.events]
        assert "Week 1: Headcount decreased by 100" in messages
        assert new_state.last_headcount == 49_900

    def test_no_headcount_event_when_unchanged(self):
        new_state = tick(create_initial_state("headcount-steady"))
        assert not any("Headcount" in event.message for event in new_state.events)

    def test_hidden_metrics_update(self):
        state = _with_headcounts(create_initial_state("hidden-update"), compliance=0)
        new_state = tick(state)
        assert new_state.hidden.compliance_risk >= 0.9
