"""Agent portal API endpoints.

Every route is scoped to /api/agents/{agent_id} and the caller must be
that agent: the path id is checked against the token's principal before
any service is called.
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from agent_portal.api.deps import get_gateway
from agent_portal.core.errors import ValidationError
from agent_portal.core.periods import resolve_date_range
from agent_portal.core.security import Principal, ensure_acting_as, require_agent
from agent_portal.models.profile import Profile
from agent_portal.schemas.bank_account import BankAccountIn, BankAccountOut
from agent_portal.schemas.commission import AgentStatementEntry, AgentSummary, CommissionStatement
from agent_portal.schemas.dashboard import DashboardView
from agent_portal.schemas.retailer import (
    RetailerDetail, RetailerRosterEntry, RetailerSale, RetailerSalesSummary,
)
from agent_portal.services.bank_accounts import BankAccountService
from agent_portal.services.dashboard import DashboardService
from agent_portal.services.gateway import DataStoreGateway
from agent_portal.services.retailer_detail import RetailerDetailService
from agent_portal.services.roster import (
    RetailerRosterService, filter_retailers, sort_retailers, validate_view_params,
)
from agent_portal.services.statement import CommissionStatementService
from agent_portal.services.statement_pdf import generate_statement_pdf
from agent_portal.services.summary import AgentSummaryService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/agents/{agent_id}", tags=["agents"])


def acting_agent(agent_id: str, principal: Principal = Depends(require_agent)) -> str:
    return ensure_acting_as(principal, agent_id)


def _statement_range(
    start_date: Optional[date], end_date: Optional[date], preset: Optional[str]
) -> Tuple[date, date]:
    """A preset or an explicit pair of dates, never both; month-to-date when neither."""
    if preset:
        if start_date or end_date:
            raise ValidationError("Pass either preset or start_date and end_date, not both")
        return resolve_date_range(preset)
    if (start_date is None) != (end_date is None):
        raise ValidationError("start_date and end_date must be given together")
    if start_date:
        return start_date, end_date
    return resolve_date_range("mtd")


def _agent_display_name(session: Session, agent_id: str) -> str:
    profile = session.query(Profile).filter(Profile.id == agent_id).first()
    if profile is None:
        return agent_id
    return profile.full_name or profile.business_name or profile.email or agent_id


# ── Dashboard & roster ───────────────────────────────────────────────

@router.get("/dashboard", response_model=DashboardView)
def get_dashboard(
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    """Roster, summary and recent statements in one call."""
    return DashboardService(gateway).load_dashboard(agent_id)


@router.get("/retailers", response_model=List[RetailerRosterEntry])
def list_my_retailers(
    search: str = "",
    status: str = "all",
    sort_by: str = "name",
    order: str = "asc",
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    validate_view_params(status, sort_by, order)
    roster = RetailerRosterService(gateway).fetch_my_retailers(agent_id)
    return sort_retailers(filter_retailers(roster, search, status), sort_by, order)


@router.post("/retailers/{retailer_id}/block")
def block_retailer(
    retailer_id: str,
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    RetailerRosterService(gateway).block_retailer(agent_id, retailer_id)
    return {"id": retailer_id, "status": "blocked"}


@router.get("/retailers/{retailer_id}", response_model=RetailerDetail)
def get_retailer_detail(
    retailer_id: str,
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    return RetailerDetailService(gateway).fetch_retailer_detail(retailer_id, agent_id)


@router.get("/retailers/{retailer_id}/sales-summary", response_model=RetailerSalesSummary)
def get_retailer_sales_summary(
    retailer_id: str,
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    return RetailerDetailService(gateway).fetch_retailer_sales_summary(retailer_id, agent_id)


@router.get("/retailers/{retailer_id}/sales", response_model=List[RetailerSale])
def get_retailer_sales(
    retailer_id: str,
    limit: Optional[int] = Query(None, ge=0, le=500),
    offset: int = Query(0, ge=0),
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    return RetailerDetailService(gateway).fetch_retailer_sales(retailer_id, agent_id, limit, offset)


# ── Commission ───────────────────────────────────────────────────────

@router.get("/summary", response_model=AgentSummary)
def get_agent_summary(
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    return AgentSummaryService(gateway).fetch_agent_summary(agent_id)


@router.get("/commission-statement", response_model=CommissionStatement)
def get_commission_statement(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    preset: Optional[str] = Query(None, description="all, mtd, past30, past90"),
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    """
    Reconciled statement. Either pass start_date and end_date (YYYY-MM-DD,
    end date inclusive) or a preset; defaults to month-to-date.
    """
    start, end = _statement_range(start_date, end_date, preset)
    return CommissionStatementService(gateway).build_commission_statement(agent_id, start, end)


@router.get("/commission-statement/pdf")
def download_commission_statement_pdf(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    preset: Optional[str] = None,
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    start, end = _statement_range(start_date, end_date, preset)
    statement = CommissionStatementService(gateway).build_commission_statement(agent_id, start, end)
    agent_name = gateway.call(_agent_display_name, agent_id, entity=f"agent {agent_id}")

    pdf_bytes = generate_statement_pdf(statement, agent_name)

    filename = f"Commission_Statement_{start.isoformat()}_{end.isoformat()}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/statements", response_model=List[AgentStatementEntry])
def list_agent_statements(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = Query(None, ge=0, le=1000),
    offset: int = Query(0, ge=0),
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    return CommissionStatementService(gateway).fetch_agent_statements(
        agent_id, start_date, end_date, limit=limit, offset=offset
    )


# ── Bank account ─────────────────────────────────────────────────────

@router.get("/bank-account", response_model=Optional[BankAccountOut])
def get_bank_account(
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    return BankAccountService(gateway).fetch_bank_account(agent_id)


@router.put("/bank-account", response_model=BankAccountOut)
def save_bank_account(
    data: BankAccountIn,
    agent_id: str = Depends(acting_agent),
    gateway: DataStoreGateway = Depends(get_gateway),
):
    return BankAccountService(gateway).save_bank_account(agent_id, data)
