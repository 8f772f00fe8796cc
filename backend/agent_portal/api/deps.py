# Route dependencies; the gateway itself lives with the services
from agent_portal.services.gateway import get_gateway

__all__ = ["get_gateway"]
