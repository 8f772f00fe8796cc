from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from agent_portal.core.errors import DataUnavailable, ValidationError
from agent_portal.services import summary
from agent_portal.services.summary import AgentSummaryService


@pytest.fixture
def agent_with_history(seed):
    agent = seed.agent()
    r1 = seed.retailer(agent, name="R1")
    r2 = seed.retailer(agent, name="R2")
    seed.retailer(agent, name="R3")
    t1 = seed.terminal(r1)
    t2 = seed.terminal(r2)
    seed.sale(t1, "2000.00", "200.00", created_at=datetime(2024, 5, 1, 9, 0))
    seed.sale(t1, "1500.00", "150.00", created_at=datetime(2025, 11, 20, 9, 0))
    seed.sale(t2, "1500.00", "150.00", created_at=datetime(2026, 3, 2, 9, 0))
    seed.transaction(agent, "100.00", created_at=datetime(2025, 1, 31, 17, 0))
    seed.transaction(agent, "100.00", created_at=datetime(2026, 1, 31, 17, 0))
    return agent


def test_summary_totals(gateway, agent_with_history):
    result = AgentSummaryService(gateway).fetch_agent_summary(agent_with_history.id)

    assert result.retailer_count == 3
    assert result.total_commission == Decimal("500.00")
    assert result.paid_commission == Decimal("200.00")
    assert result.pending_commission == Decimal("300.00")


def test_summary_is_idempotent(gateway, agent_with_history):
    service = AgentSummaryService(gateway)

    assert service.fetch_agent_summary(agent_with_history.id) == service.fetch_agent_summary(agent_with_history.id)


def test_summary_ignores_other_agents_and_non_payout_transactions(gateway, seed):
    agent = seed.agent()
    other = seed.agent(full_name="Other Agent")
    mine = seed.terminal(seed.retailer(agent))
    theirs = seed.terminal(seed.retailer(other))
    seed.sale(mine, "100.00", "10.00")
    seed.sale(theirs, "900.00", "90.00")
    seed.transaction(agent, "5.00")
    seed.transaction(agent, "7.00", type="commission_credit")
    seed.transaction(other, "50.00")

    result = AgentSummaryService(gateway).fetch_agent_summary(agent.id)

    assert result.retailer_count == 1
    assert result.total_commission == Decimal("10.00")
    assert result.paid_commission == Decimal("5.00")


def test_summary_for_agent_without_data_is_zero(gateway, seed):
    agent = seed.agent()

    result = AgentSummaryService(gateway).fetch_agent_summary(agent.id)

    assert result.retailer_count == 0
    assert result.total_commission == Decimal("0")
    assert result.paid_commission == Decimal("0")
    assert result.pending_commission == Decimal("0")


def test_summary_failure_is_all_or_nothing(gateway, seed, monkeypatch):
    agent = seed.agent()

    def broken(session, agent_id):
        raise OperationalError("SELECT ...", {}, Exception("relation does not exist"))

    monkeypatch.setattr(summary, "_agent_summary", broken)

    with pytest.raises(DataUnavailable) as excinfo:
        AgentSummaryService(gateway).fetch_agent_summary(agent.id)
    assert excinfo.value.retryable is True
    assert "relation" not in excinfo.value.detail


def test_summary_rejects_empty_agent_id(gateway):
    with pytest.raises(ValidationError):
        AgentSummaryService(gateway).fetch_agent_summary("")
