"""Retailer roster for an agent.

Totals per retailer are all-time (every sale on the retailer's terminals).
Per-retailer reads fan out through the gateway; one failing retailer is
reported with zeroed totals instead of failing the roster.
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from agent_portal.core.errors import (
    DataUnavailable, NotFoundOrUnauthorized, PartialAggregationFailure, ValidationError,
)
from agent_portal.models.retailer import Retailer, RetailerStatus
from agent_portal.models.sale import Sale
from agent_portal.schemas.retailer import RetailerRosterEntry
from agent_portal.services.gateway import DataStoreGateway
from agent_portal.services.queries import require_id, sales_of_retailer, to_money

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "total_sales", "commission", "status")
STATUS_FILTERS = ("all",) + tuple(s.value for s in RetailerStatus)
SORT_ORDERS = ("asc", "desc")

ZERO_TOTALS = {"sales_count": 0, "total_sales": Decimal("0.00"), "commission_earned": Decimal("0.00")}


def _agent_retailers(session: Session, agent_id: str) -> List[Dict]:
    retailers = (
        session.query(Retailer)
        .filter(Retailer.agent_profile_id == agent_id)
        .order_by(Retailer.name)
        .all()
    )
    return [
        {
            "id": r.id,
            "name": r.name,
            "status": r.status,
            "balance": to_money(r.balance),
            "commission_balance": to_money(r.commission_balance),
            "location": r.location,
        }
        for r in retailers
    ]


def _retailer_sales_totals(session: Session, retailer_id: str) -> Dict:
    count, total_sales, commission = sales_of_retailer(
        session.query(
            func.count(Sale.id),
            func.coalesce(func.sum(Sale.sale_amount), 0),
            func.coalesce(func.sum(Sale.agent_commission), 0),
        ),
        retailer_id,
    ).one()
    return {
        "sales_count": count or 0,
        "total_sales": to_money(total_sales),
        "commission_earned": to_money(commission),
    }


def _block_retailer(session: Session, agent_id: str, retailer_id: str) -> int:
    # Ownership is part of the write predicate: no read-then-write window
    result = session.execute(
        update(Retailer)
        .where(Retailer.id == retailer_id, Retailer.agent_profile_id == agent_id)
        .values(status=RetailerStatus.BLOCKED.value)
    )
    return result.rowcount


class RetailerRosterService:
    def __init__(self, gateway: DataStoreGateway):
        self.gateway = gateway

    def fetch_my_retailers(self, agent_id: str) -> List[RetailerRosterEntry]:
        agent_id = require_id(agent_id)
        retailers = self.gateway.call(_agent_retailers, agent_id, entity=f"agent {agent_id}")
        if not retailers:
            return []

        futures = {
            r["id"]: self.gateway.submit(_retailer_sales_totals, r["id"], entity=f"retailer {r['id']}")
            for r in retailers
        }

        roster = []
        for retailer in retailers:
            try:
                totals = self._collect_totals(futures[retailer["id"]], retailer["id"])
                available = True
            except PartialAggregationFailure as e:
                logger.warning(f"Roster for agent {agent_id}: zeroing totals, {e}")
                totals = ZERO_TOTALS
                available = False
            roster.append(RetailerRosterEntry(**retailer, **totals, aggregates_available=available))
        return roster

    def _collect_totals(self, future, retailer_id: str) -> Dict:
        try:
            return self.gateway.result(future, entity=f"retailer {retailer_id}")
        except DataUnavailable as e:
            raise PartialAggregationFailure(retailer_id) from e

    def block_retailer(self, agent_id: str, retailer_id: str) -> None:
        agent_id = require_id(agent_id)
        retailer_id = require_id(retailer_id, "retailer_id")
        updated = self.gateway.write(
            _block_retailer, agent_id, retailer_id, entity=f"retailer {retailer_id}"
        )
        if not updated:
            raise NotFoundOrUnauthorized("Retailer not found")
        logger.info(f"Agent {agent_id} blocked retailer {retailer_id}")


# ── Roster view helpers (pure, operate on an already-fetched roster) ──

def validate_view_params(status: str = "all", sort_by: str = "name", order: str = "asc") -> None:
    """Reject unknown view options up front, before the roster is fetched."""
    if status not in STATUS_FILTERS:
        raise ValidationError(f"Invalid status filter. Must be one of: {list(STATUS_FILTERS)}")
    if sort_by not in SORT_KEYS:
        raise ValidationError(f"Invalid sort key. Must be one of: {list(SORT_KEYS)}")
    if order not in SORT_ORDERS:
        raise ValidationError("order must be 'asc' or 'desc'")


def filter_retailers(
    entries: Iterable[RetailerRosterEntry],
    search: str = "",
    status: str = "all",
) -> List[RetailerRosterEntry]:
    """Case-insensitive substring match on name or location, plus exact status."""
    validate_view_params(status=status)
    needle = (search or "").lower()
    return [
        e for e in entries
        if (needle in e.name.lower() or needle in (e.location or "").lower())
        and (status == "all" or e.status == status)
    ]


def sort_retailers(
    entries: Iterable[RetailerRosterEntry],
    sort_by: str = "name",
    order: str = "asc",
) -> List[RetailerRosterEntry]:
    """
    "asc" means the natural direction of the key:
    name, status   A-Z
    total_sales    highest first
    commission     highest first
    "desc" reverses it.
    """
    validate_view_params(sort_by=sort_by, order=order)

    if sort_by == "name":
        key, natural_desc = (lambda e: e.name.casefold()), False
    elif sort_by == "status":
        key, natural_desc = (lambda e: e.status), False
    elif sort_by == "total_sales":
        key, natural_desc = (lambda e: e.total_sales), True
    else:
        key, natural_desc = (lambda e: e.commission_earned), True

    reverse = natural_desc if order == "asc" else not natural_desc
    return sorted(entries, key=key, reverse=reverse)


def toggle_sort(current_by: str, current_order: str, selected: str) -> Tuple[str, str]:
    """Selecting the active key flips the order; a new key starts at "asc"."""
    if selected not in SORT_KEYS:
        raise ValidationError(f"Invalid sort key. Must be one of: {list(SORT_KEYS)}")
    if selected == current_by:
        return selected, "desc" if current_order == "asc" else "asc"
    return selected, "asc"
