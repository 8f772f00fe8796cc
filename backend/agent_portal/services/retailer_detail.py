import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from agent_portal.core.config import settings
from agent_portal.core.errors import NotFoundOrUnauthorized, ValidationError
from agent_portal.core.periods import local_now, start_of_day, start_of_month
from agent_portal.models.retailer import Retailer, Terminal
from agent_portal.models.sale import Sale, VoucherType
from agent_portal.schemas.retailer import (
    RetailerDetail, RetailerSale, RetailerSalesSummary, TerminalOut,
)
from agent_portal.services.gateway import DataStoreGateway
from agent_portal.services.queries import require_id, sales_of_retailer, to_money

logger = logging.getLogger(__name__)


def _owned_retailer(session: Session, retailer_id: str, agent_id: str) -> Retailer:
    retailer = (
        session.query(Retailer)
        .filter(Retailer.id == retailer_id, Retailer.agent_profile_id == agent_id)
        .first()
    )
    if retailer is None:
        raise NotFoundOrUnauthorized("Retailer not found")
    return retailer


def _retailer_detail(session: Session, retailer_id: str, agent_id: str) -> RetailerDetail:
    retailer = _owned_retailer(session, retailer_id, agent_id)
    terminals = (
        session.query(Terminal)
        .filter(Terminal.retailer_id == retailer_id)
        .order_by(Terminal.name)
        .all()
    )
    return RetailerDetail(
        id=retailer.id,
        name=retailer.name,
        status=retailer.status,
        balance=to_money(retailer.balance),
        commission_balance=to_money(retailer.commission_balance),
        location=retailer.location,
        contact_name=retailer.contact_name,
        email=retailer.contact_email,
        contact_number=retailer.contact_number,
        created_at=retailer.created_at,
        agent_profile_id=retailer.agent_profile_id,
        terminals=[TerminalOut.model_validate(t) for t in terminals],
    )


def _retailer_sales_summary(session: Session, retailer_id: str, agent_id: str, now: datetime) -> RetailerSalesSummary:
    _owned_retailer(session, retailer_id, agent_id)

    # One pass over one row set, so today <= MTD <= total for any snapshot
    in_today = and_(Sale.created_at >= start_of_day(now), Sale.created_at <= now)
    in_mtd = and_(Sale.created_at >= start_of_month(now), Sale.created_at <= now)

    row = sales_of_retailer(
        session.query(
            func.coalesce(func.sum(case((in_today, 1), else_=0)), 0).label("today_count"),
            func.coalesce(func.sum(case((in_today, Sale.sale_amount), else_=0)), 0).label("today_value"),
            func.coalesce(func.sum(case((in_mtd, 1), else_=0)), 0).label("mtd_count"),
            func.coalesce(func.sum(case((in_mtd, Sale.sale_amount), else_=0)), 0).label("mtd_value"),
            func.count(Sale.id).label("total_count"),
            func.coalesce(func.sum(Sale.sale_amount), 0).label("total_value"),
            func.coalesce(func.sum(Sale.agent_commission), 0).label("total_commission"),
        ),
        retailer_id,
        agent_id,
    ).one()

    return RetailerSalesSummary(
        today_count=int(row.today_count or 0),
        today_value=to_money(row.today_value),
        mtd_count=int(row.mtd_count or 0),
        mtd_value=to_money(row.mtd_value),
        total_count=int(row.total_count or 0),
        total_value=to_money(row.total_value),
        total_commission=to_money(row.total_commission),
    )


def _retailer_sales(session: Session, retailer_id: str, agent_id: str, limit: int, offset: int) -> List[RetailerSale]:
    _owned_retailer(session, retailer_id, agent_id)
    rows = (
        sales_of_retailer(
            session.query(
                Sale.id,
                Sale.created_at,
                Sale.sale_amount,
                Sale.agent_commission,
                Terminal.name.label("terminal_name"),
                VoucherType.name.label("voucher_type"),
            ),
            retailer_id,
            agent_id,
        )
        .outerjoin(VoucherType, Sale.voucher_type_id == VoucherType.id)
        .order_by(Sale.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [
        RetailerSale(
            id=row.id,
            created_at=row.created_at,
            sale_amount=to_money(row.sale_amount),
            agent_commission=to_money(row.agent_commission),
            voucher_type=row.voucher_type or "N/A",
            terminal_name=row.terminal_name,
        )
        for row in rows
    ]


class RetailerDetailService:
    """Per-retailer drill-down. Every read is scoped to the requesting agent."""

    def __init__(self, gateway: DataStoreGateway):
        self.gateway = gateway

    def fetch_retailer_detail(self, retailer_id: str, agent_id: str) -> RetailerDetail:
        retailer_id = require_id(retailer_id, "retailer_id")
        agent_id = require_id(agent_id)
        return self.gateway.call(
            _retailer_detail, retailer_id, agent_id, entity=f"retailer {retailer_id}"
        )

    def fetch_retailer_sales_summary(
        self, retailer_id: str, agent_id: str, now: Optional[datetime] = None
    ) -> RetailerSalesSummary:
        retailer_id = require_id(retailer_id, "retailer_id")
        agent_id = require_id(agent_id)
        return self.gateway.call(
            _retailer_sales_summary, retailer_id, agent_id, now or local_now(),
            entity=f"retailer {retailer_id}",
        )

    def fetch_retailer_sales(
        self, retailer_id: str, agent_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> List[RetailerSale]:
        retailer_id = require_id(retailer_id, "retailer_id")
        agent_id = require_id(agent_id)
        limit = settings.RECENT_SALES_LIMIT if limit is None else limit
        if limit < 0 or offset < 0:
            raise ValidationError("limit and offset must not be negative")
        return self.gateway.call(
            _retailer_sales, retailer_id, agent_id, limit, offset,
            entity=f"retailer {retailer_id}",
        )
