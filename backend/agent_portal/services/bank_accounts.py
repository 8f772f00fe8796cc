import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from agent_portal.models.bank_account import BankAccount
from agent_portal.schemas.bank_account import BankAccountIn, BankAccountOut
from agent_portal.services.gateway import DataStoreGateway
from agent_portal.services.queries import require_id

logger = logging.getLogger(__name__)


def _primary_account(session: Session, profile_id: str) -> Optional[BankAccountOut]:
    account = (
        session.query(BankAccount)
        .filter(BankAccount.profile_id == profile_id, BankAccount.is_primary == True)  # noqa: E712
        .first()
    )
    return BankAccountOut.model_validate(account) if account else None


def _upsert_primary_account(session: Session, profile_id: str, data: BankAccountIn) -> BankAccountOut:
    primaries = (
        session.query(BankAccount)
        .filter(BankAccount.profile_id == profile_id, BankAccount.is_primary == True)  # noqa: E712
        .order_by(BankAccount.created_at)
        .with_for_update()
        .all()
    )

    if primaries:
        account = primaries[0]
        if len(primaries) > 1:
            # Repair legacy rows: keep the oldest as the primary
            session.execute(
                update(BankAccount)
                .where(BankAccount.id.in_([p.id for p in primaries[1:]]))
                .values(is_primary=False)
            )
        for field, value in data.model_dump().items():
            setattr(account, field, value)
    else:
        account = BankAccount(profile_id=profile_id, is_primary=True, **data.model_dump())
        session.add(account)

    session.flush()
    session.refresh(account)
    return BankAccountOut.model_validate(account)


class BankAccountService:
    """Primary payout account per profile, keyed by (profile_id, is_primary)."""

    def __init__(self, gateway: DataStoreGateway):
        self.gateway = gateway

    def fetch_bank_account(self, profile_id: str) -> Optional[BankAccountOut]:
        profile_id = require_id(profile_id, "profile_id")
        return self.gateway.call(_primary_account, profile_id, entity=f"profile {profile_id}")

    def save_bank_account(self, profile_id: str, data: BankAccountIn) -> BankAccountOut:
        profile_id = require_id(profile_id, "profile_id")
        account = self.gateway.write(
            _upsert_primary_account, profile_id, data, entity=f"profile {profile_id}"
        )
        logger.info(f"Saved primary bank account for profile {profile_id}")
        return account
