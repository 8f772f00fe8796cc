import os
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

# Set test environment variables before settings are loaded
os.environ["ENVIRONMENT"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["AUTO_CREATE_TABLES"] = "false"

from agent_portal.core.database import Base, create_db_engine, create_session_factory
from agent_portal.models import (
    BankAccount, Profile, Retailer, Sale, Terminal, Transaction, TransactionType, VoucherType,
)
from agent_portal.services.gateway import DataStoreGateway


@pytest.fixture
def engine():
    """A fresh SQLite file database per test."""
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    engine = create_db_engine(url=f"sqlite:///{db_path}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway(session_factory):
    gateway = DataStoreGateway(session_factory, query_timeout=5, max_workers=4, use_db_rollups=False)
    yield gateway
    gateway.shutdown()


class Seed:
    """Inserts and commits rows so gateway sessions can see them."""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def agent(self, full_name="Agent Smith", role="agent"):
        return self._save(Profile(role=role, full_name=full_name))

    def retailer(self, agent, name="Retailer", status="active", location=None):
        return self._save(Retailer(
            agent_profile_id=agent.id if agent else None,
            name=name,
            status=status,
            location=location,
            balance=Decimal("0"),
            commission_balance=Decimal("0"),
        ))

    def terminal(self, retailer, name="Till 1"):
        return self._save(Terminal(retailer_id=retailer.id, name=name, status="active"))

    def voucher_type(self, name="Airtime"):
        return self._save(VoucherType(name=name))

    def sale(self, terminal, amount, commission, created_at=None, voucher_type=None):
        return self._save(Sale(
            terminal_id=terminal.id,
            voucher_type_id=voucher_type.id if voucher_type else None,
            sale_amount=Decimal(amount),
            agent_commission=Decimal(commission),
            created_at=created_at or datetime(2026, 3, 10, 12, 0),
        ))

    def transaction(self, agent, amount, created_at=None, type=TransactionType.COMMISSION_PAYOUT.value,
                    notes=None, retailer=None):
        return self._save(Transaction(
            agent_profile_id=agent.id,
            retailer_id=retailer.id if retailer else None,
            type=type,
            amount=Decimal(amount),
            balance_after=Decimal("0"),
            notes=notes,
            created_at=created_at or datetime(2026, 3, 10, 12, 0),
        ))

    def bank_account(self, profile, is_primary=True, **fields):
        data = {
            "bank_name": "FNB",
            "account_holder": "Agent Smith",
            "account_number": "62000000001",
        }
        data.update(fields)
        return self._save(BankAccount(profile_id=profile.id, is_primary=is_primary, **data))


@pytest.fixture
def seed(db):
    return Seed(db)
