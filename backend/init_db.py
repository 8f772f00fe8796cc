"""
Database initialization script
Run this to create tables and seed demo data
"""
import sys
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from agent_portal.core.database import Base, create_db_engine, create_session_factory
from agent_portal.core.periods import local_now
from agent_portal.core.security import create_access_token
from agent_portal.models import (
    Profile, ProfileRole, Retailer, RetailerStatus, Terminal, Sale, VoucherType,
    Transaction, TransactionType,
)

engine = create_db_engine()
SessionLocal = create_session_factory(engine)


def init_db():
    """Initialize database with tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✓ Tables created successfully")


def seed_data():
    """Seed a demo agent with two retailers, sales and a payout"""
    db = SessionLocal()

    try:
        print("\nSeeding demo data...")

        agent = db.query(Profile).filter(Profile.email == "agent@example.com").first()
        if agent:
            print("✓ Demo agent already exists, skipping")
            print(f"  token: {create_access_token(agent.id)}")
            return

        agent = Profile(
            role=ProfileRole.AGENT.value,
            full_name="Demo Agent",
            email="agent@example.com",
            business_name="Demo Distribution",
        )
        db.add(agent)
        db.flush()

        airtime = VoucherType(name="Airtime")
        electricity = VoucherType(name="Electricity")
        db.add_all([airtime, electricity])

        corner = Retailer(
            agent_profile_id=agent.id,
            name="Corner Spaza",
            status=RetailerStatus.ACTIVE.value,
            location="Soweto",
            balance=Decimal("1500.00"),
        )
        station = Retailer(
            agent_profile_id=agent.id,
            name="Station Kiosk",
            status=RetailerStatus.INACTIVE.value,
            location="Park Station",
        )
        db.add_all([corner, station])
        db.flush()

        till = Terminal(retailer_id=corner.id, name="Till 1", last_active=local_now())
        db.add(till)
        db.flush()

        now = local_now()
        for days_ago, amount, voucher in [(0, "100.00", airtime), (3, "250.00", electricity), (40, "50.00", airtime)]:
            amount = Decimal(amount)
            db.add(Sale(
                terminal_id=till.id,
                voucher_type_id=voucher.id,
                sale_amount=amount,
                agent_commission=(amount * Decimal("0.05")).quantize(Decimal("0.01")),
                created_at=now - timedelta(days=days_ago),
            ))

        db.add(Transaction(
            agent_profile_id=agent.id,
            type=TransactionType.COMMISSION_PAYOUT.value,
            amount=Decimal("2.50"),
            balance_after=Decimal("0.00"),
            notes="Monthly payout",
            created_at=now - timedelta(days=30),
        ))

        db.commit()
        print("✓ Demo agent created (agent@example.com)")
        print(f"  token: {create_access_token(agent.id)}")
    except Exception as e:
        print(f"✗ Error seeding data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
    seed_data()
    print("\n✓ Database initialization complete!")
