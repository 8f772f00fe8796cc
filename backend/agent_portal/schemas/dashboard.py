from pydantic import BaseModel
from typing import Optional, List
from agent_portal.schemas.retailer import RetailerRosterEntry
from agent_portal.schemas.commission import AgentSummary, AgentStatementEntry


class DashboardView(BaseModel):
    """Agent landing page. A section that failed to load is None and listed in unavailable."""
    retailers: Optional[List[RetailerRosterEntry]] = None
    summary: Optional[AgentSummary] = None
    recent_statements: Optional[List[AgentStatementEntry]] = None
    unavailable: List[str] = []
