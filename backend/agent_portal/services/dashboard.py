import logging
from concurrent.futures import ThreadPoolExecutor

from agent_portal.core.errors import DataUnavailable
from agent_portal.schemas.dashboard import DashboardView
from agent_portal.services.gateway import DataStoreGateway
from agent_portal.services.queries import require_id
from agent_portal.services.roster import RetailerRosterService
from agent_portal.services.statement import CommissionStatementService
from agent_portal.services.summary import AgentSummaryService

logger = logging.getLogger(__name__)

RECENT_STATEMENTS_LIMIT = 20


class DashboardService:
    """
    Agent landing page: roster, summary and recent statements loaded side by side.
    Sections are independent reads; small snapshot skew between them is accepted.
    A section that fails is reported unavailable without blanking the others.
    """

    def __init__(self, gateway: DataStoreGateway):
        self.roster = RetailerRosterService(gateway)
        self.summary = AgentSummaryService(gateway)
        self.statements = CommissionStatementService(gateway)

    def load_dashboard(self, agent_id: str) -> DashboardView:
        agent_id = require_id(agent_id)

        # Sections wait on gateway work, so they run on their own threads
        # rather than occupying gateway workers.
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="dashboard") as pool:
            sections = {
                "retailers": pool.submit(self.roster.fetch_my_retailers, agent_id),
                "summary": pool.submit(self.summary.fetch_agent_summary, agent_id),
                "recent_statements": pool.submit(
                    self.statements.fetch_agent_statements, agent_id, limit=RECENT_STATEMENTS_LIMIT
                ),
            }

            view = DashboardView()
            for name, future in sections.items():
                try:
                    setattr(view, name, future.result())
                except DataUnavailable as e:
                    logger.warning(f"Dashboard section '{name}' unavailable for agent {agent_id}: {e}")
                    view.unavailable.append(name)
        return view
