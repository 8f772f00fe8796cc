"""Commission statement builder.

Statement workflow:
1. Totals (total / paid) are all-time, never date-filtered; pending therefore
   means "earned but not yet paid out", not "earned in this window"
2. Pending lines: the agent's sales inside [start_date, end_date]
3. Paid lines: the agent's commission_payout transactions inside the same window
4. pending_commission = total_commission - paid_commission, always derived
5. transaction_count counts pending lines only
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from agent_portal.core.errors import ValidationError
from agent_portal.core.periods import inclusive_day_bounds
from agent_portal.models.retailer import Retailer
from agent_portal.models.sale import Sale, VoucherType
from agent_portal.models.transaction import Transaction, TransactionType
from agent_portal.schemas.commission import (
    AgentStatementEntry, CommissionStatement, StatementLine, StatementStats,
)
from agent_portal.services.gateway import DataStoreGateway
from agent_portal.services.queries import require_id, sales_owned_by_agent, to_money
from agent_portal.services.summary import _agent_summary

logger = logging.getLogger(__name__)

PAYOUT_LINE_TYPE = "Commission Payout"


def _pending_lines(session: Session, agent_id: str, lower: datetime, upper: datetime) -> List[StatementLine]:
    rows = (
        sales_owned_by_agent(
            session.query(
                Sale.created_at,
                Retailer.name.label("retailer_name"),
                VoucherType.name.label("voucher_type"),
                Sale.sale_amount,
                Sale.agent_commission,
            ),
            agent_id,
        )
        .outerjoin(VoucherType, Sale.voucher_type_id == VoucherType.id)
        .filter(Sale.created_at >= lower, Sale.created_at < upper)
        .order_by(Sale.created_at.desc())
        .all()
    )
    return [
        StatementLine(
            date=row.created_at,
            retailer_name=row.retailer_name,
            type=row.voucher_type or "N/A",
            value=to_money(row.sale_amount),
            commission=to_money(row.agent_commission),
            status="Pending",
        )
        for row in rows
    ]


def _paid_lines(session: Session, agent_id: str, lower: datetime, upper: datetime) -> List[StatementLine]:
    payouts = (
        session.query(Transaction)
        .filter(
            Transaction.agent_profile_id == agent_id,
            Transaction.type == TransactionType.COMMISSION_PAYOUT.value,
            Transaction.created_at >= lower,
            Transaction.created_at < upper,
        )
        .order_by(Transaction.created_at.desc())
        .all()
    )
    return [
        StatementLine(
            date=payout.created_at,
            retailer_name=payout.notes,
            type=PAYOUT_LINE_TYPE,
            value=to_money(0),
            commission=to_money(payout.amount),
            status="Paid",
        )
        for payout in payouts
    ]


def _statement_entries(
    session: Session,
    agent_id: str,
    lower: Optional[datetime],
    upper: Optional[datetime],
    limit: Optional[int],
    offset: int,
) -> List[AgentStatementEntry]:
    query = (
        session.query(Transaction, Retailer.name.label("retailer_name"))
        .outerjoin(Retailer, Transaction.retailer_id == Retailer.id)
        .filter(Transaction.agent_profile_id == agent_id)
    )
    if lower is not None:
        query = query.filter(Transaction.created_at >= lower)
    if upper is not None:
        query = query.filter(Transaction.created_at < upper)

    query = query.order_by(Transaction.created_at.desc()).offset(offset)
    if limit is not None:
        query = query.limit(limit)

    return [
        AgentStatementEntry(
            id=tx.id,
            created_at=tx.created_at,
            type=tx.type,
            amount=to_money(tx.amount),
            balance_after=to_money(tx.balance_after) if tx.balance_after is not None else None,
            retailer_name=retailer_name,
            notes=tx.notes,
        )
        for tx, retailer_name in query.all()
    ]


class CommissionStatementService:
    def __init__(self, gateway: DataStoreGateway):
        self.gateway = gateway

    def build_commission_statement(self, agent_id: str, start_date: date, end_date: date) -> CommissionStatement:
        """Reconciled statement for [start_date, end_date], end date inclusive of its whole day."""
        agent_id = require_id(agent_id)
        lower, upper = inclusive_day_bounds(start_date, end_date)
        entity = f"agent {agent_id}"

        if self.gateway.use_db_rollups:
            return self._statement_from_rollup(agent_id, start_date, end_date, entity)

        # Independent reads, issued together; any failure fails the statement
        summary_future = self.gateway.submit(_agent_summary, agent_id, entity=entity)
        pending_future = self.gateway.submit(_pending_lines, agent_id, lower, upper, entity=entity)
        paid_future = self.gateway.submit(_paid_lines, agent_id, lower, upper, entity=entity)

        summary = self.gateway.result(summary_future, entity=entity)
        pending = self.gateway.result(pending_future, entity=entity)
        paid = self.gateway.result(paid_future, entity=entity)

        return CommissionStatement(
            start_date=start_date,
            end_date=end_date,
            stats=StatementStats.from_totals(
                to_money(summary["total_commission"]),
                to_money(summary["paid_commission"]),
                transaction_count=len(pending),
            ),
            pending_transactions=pending,
            paid_transactions=paid,
        )

    def _statement_from_rollup(self, agent_id: str, start_date: date, end_date: date, entity: str) -> CommissionStatement:
        row = self.gateway.rpc(
            "get_agent_commission_statement",
            {"agent_id": agent_id, "start_date": start_date, "end_date": end_date},
            entity=entity,
        )
        payload = next(iter(row.values())) if row else None
        payload = payload or {}
        stats = payload.get("stats") or {}

        def _lines(items):
            return [
                StatementLine(
                    date=item["date"],
                    retailer_name=item.get("retailer_name"),
                    type=item.get("type") or "N/A",
                    value=to_money(item.get("value")),
                    commission=to_money(item.get("commission")),
                    status=item["status"],
                )
                for item in items or []
            ]

        pending = _lines(payload.get("pending_transactions"))
        # The procedure's own pending figure is ignored; it is re-derived here
        return CommissionStatement(
            start_date=start_date,
            end_date=end_date,
            stats=StatementStats.from_totals(
                to_money(stats.get("total_commission")),
                to_money(stats.get("paid_commission")),
                transaction_count=len(pending),
            ),
            pending_transactions=pending,
            paid_transactions=_lines(payload.get("paid_transactions")),
        )

    def fetch_agent_statements(
        self,
        agent_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[AgentStatementEntry]:
        """The agent's transaction ledger, newest first."""
        agent_id = require_id(agent_id)
        if limit is not None and limit < 0:
            raise ValidationError("limit must not be negative")
        if offset < 0:
            raise ValidationError("offset must not be negative")

        if start_date and end_date:
            lower, upper = inclusive_day_bounds(start_date, end_date)
        else:
            lower = datetime.combine(start_date, time.min) if start_date else None
            upper = datetime.combine(end_date + timedelta(days=1), time.min) if end_date else None

        return self.gateway.call(
            _statement_entries, agent_id, lower, upper, limit, offset,
            entity=f"agent {agent_id}",
        )
