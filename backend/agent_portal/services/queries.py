"""Query building blocks shared by the aggregators."""
from decimal import Decimal

from sqlalchemy.orm import Query

from agent_portal.core.errors import ValidationError
from agent_portal.models.retailer import Retailer, Terminal
from agent_portal.models.sale import Sale

CENT = Decimal("0.01")


def require_id(value: str, name: str = "agent_id") -> str:
    """Reject empty identifiers before any query is issued."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")
    return str(value).strip()


def to_money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT)


def join_sale_ownership(query: Query) -> Query:
    """Sale -> Terminal -> Retailer, so filters can reach the owning agent."""
    return (
        query.select_from(Sale)
        .join(Terminal, Sale.terminal_id == Terminal.id)
        .join(Retailer, Terminal.retailer_id == Retailer.id)
    )


def sales_owned_by_agent(query: Query, agent_id: str) -> Query:
    return join_sale_ownership(query).filter(Retailer.agent_profile_id == agent_id)


def sales_of_retailer(query: Query, retailer_id: str, agent_id: str = None) -> Query:
    query = join_sale_ownership(query).filter(Terminal.retailer_id == retailer_id)
    if agent_id is not None:
        query = query.filter(Retailer.agent_profile_id == agent_id)
    return query
