"""Error taxonomy shared by the aggregation services and the HTTP layer.

Every error carries a public ``detail`` that is safe to show an end user.
Storage-engine messages stay in the log (and in ``__cause__``), never in
``detail``.
"""
from typing import Optional


class PortalError(Exception):
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: Optional[str] = None, *, entity: Optional[str] = None):
        self.detail = detail or self.default_detail
        self.entity = entity
        super().__init__(self.detail if entity is None else f"{self.detail} ({entity})")


class DataUnavailable(PortalError):
    """A query or rollup failed or timed out. Safe to retry."""
    status_code = 503
    default_detail = "Data is temporarily unavailable, please retry"
    retryable = True


class PartialAggregationFailure(DataUnavailable):
    """One roster item could not be aggregated; absorbed by the roster."""
    default_detail = "Retailer totals unavailable"

    def __init__(self, retailer_id: str):
        self.retailer_id = retailer_id
        super().__init__(entity=f"retailer {retailer_id}")


class NotFoundOrUnauthorized(PortalError):
    # "missing" and "not yours" look the same on purpose
    status_code = 404
    default_detail = "Not found"


class ValidationError(PortalError):
    status_code = 422
    default_detail = "Invalid request"


class AccessDenied(PortalError):
    status_code = 403
    default_detail = "Not authorized"
