import logging
from typing import Dict

from sqlalchemy import func
from sqlalchemy.orm import Session

from agent_portal.models.retailer import Retailer
from agent_portal.models.sale import Sale
from agent_portal.models.transaction import Transaction, TransactionType
from agent_portal.schemas.commission import AgentSummary
from agent_portal.services.gateway import DataStoreGateway
from agent_portal.services.queries import require_id, sales_owned_by_agent, to_money

logger = logging.getLogger(__name__)


def _agent_summary(session: Session, agent_id: str) -> Dict:
    """All three figures read in one session so they share a snapshot."""
    retailer_count = (
        session.query(func.count(Retailer.id))
        .filter(Retailer.agent_profile_id == agent_id)
        .scalar()
    )
    total_commission = sales_owned_by_agent(
        session.query(func.coalesce(func.sum(Sale.agent_commission), 0)), agent_id
    ).scalar()
    paid_commission = (
        session.query(func.coalesce(func.sum(Transaction.amount), 0))
        .filter(
            Transaction.agent_profile_id == agent_id,
            Transaction.type == TransactionType.COMMISSION_PAYOUT.value,
        )
        .scalar()
    )
    return {
        "retailer_count": retailer_count or 0,
        "total_commission": total_commission,
        "paid_commission": paid_commission,
    }


class AgentSummaryService:
    """
    Agent-level rollup:
    - retailer_count: retailers assigned to the agent
    - total_commission: all-time agent_commission over sales on the agent's terminals
    - paid_commission: all-time commission_payout transactions

    Pending is never carried; AgentSummary.pending_commission derives it.
    Any failed read fails the whole summary (DataUnavailable).
    """

    def __init__(self, gateway: DataStoreGateway):
        self.gateway = gateway

    def fetch_agent_summary(self, agent_id: str) -> AgentSummary:
        agent_id = require_id(agent_id)
        entity = f"agent {agent_id}"
        logger.debug(f"Fetching summary for {entity}")

        if self.gateway.use_db_rollups:
            row = self.gateway.rpc("get_agent_summary", {"agent_id": agent_id}, entity=entity)
            figures = dict(row) if row else {}
        else:
            figures = self.gateway.call(_agent_summary, agent_id, entity=entity)

        return AgentSummary(
            retailer_count=int(figures.get("retailer_count") or 0),
            total_commission=to_money(figures.get("total_commission")),
            paid_commission=to_money(figures.get("paid_commission")),
        )
