from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from agent_portal.core.errors import DataUnavailable, NotFoundOrUnauthorized, ValidationError
from agent_portal.models import Retailer
from agent_portal.schemas.retailer import RetailerRosterEntry
from agent_portal.services import roster
from agent_portal.services.roster import (
    RetailerRosterService, filter_retailers, sort_retailers, toggle_sort,
)


def test_roster_totals_per_retailer(gateway, seed):
    agent = seed.agent()
    r1 = seed.retailer(agent, name="R1")
    seed.retailer(agent, name="R2")
    till = seed.terminal(r1)
    for _ in range(3):
        seed.sale(till, "100.00", "10.00")

    result = RetailerRosterService(gateway).fetch_my_retailers(agent.id)

    assert [e.name for e in result] == ["R1", "R2"]
    assert result[0].sales_count == 3
    assert result[0].total_sales == Decimal("300.00")
    assert result[0].commission_earned == Decimal("30.00")
    assert result[1].sales_count == 0
    assert result[1].total_sales == Decimal("0")
    assert result[1].commission_earned == Decimal("0")


def test_roster_window_is_all_time(gateway, seed):
    agent = seed.agent()
    retailer = seed.retailer(agent, name="Old Timer")
    till = seed.terminal(retailer)
    seed.sale(till, "40.00", "4.00", created_at=datetime(2019, 6, 1, 8, 0))
    seed.sale(till, "60.00", "6.00", created_at=datetime(2026, 3, 1, 8, 0))

    [entry] = RetailerRosterService(gateway).fetch_my_retailers(agent.id)

    assert entry.sales_count == 2
    assert entry.total_sales == Decimal("100.00")


def test_roster_only_lists_own_retailers(gateway, seed):
    agent = seed.agent()
    other = seed.agent(full_name="Other Agent")
    seed.retailer(agent, name="Mine")
    seed.retailer(other, name="Theirs")
    seed.retailer(None, name="Unassigned")

    result = RetailerRosterService(gateway).fetch_my_retailers(agent.id)

    assert [e.name for e in result] == ["Mine"]


def test_roster_absorbs_single_retailer_failure(gateway, seed, monkeypatch):
    agent = seed.agent()
    retailers = [seed.retailer(agent, name=name) for name in ("A Shop", "B Shop", "C Shop")]
    for retailer in retailers:
        till = seed.terminal(retailer)
        seed.sale(till, "50.00", "5.00")
    failing_id = retailers[1].id

    original = roster._retailer_sales_totals

    def flaky_totals(session, retailer_id):
        if retailer_id == failing_id:
            raise OperationalError("SELECT ...", {}, Exception("connection reset"))
        return original(session, retailer_id)

    monkeypatch.setattr(roster, "_retailer_sales_totals", flaky_totals)

    result = RetailerRosterService(gateway).fetch_my_retailers(agent.id)

    assert len(result) == 3
    assert result[1].id == failing_id
    assert result[1].sales_count == 0
    assert result[1].commission_earned == Decimal("0")
    assert result[1].aggregates_available is False
    for entry in (result[0], result[2]):
        assert entry.sales_count == 1
        assert entry.commission_earned == Decimal("5.00")
        assert entry.aggregates_available is True


def test_roster_listing_failure_is_data_unavailable(gateway, seed, monkeypatch):
    agent = seed.agent()

    def broken(session, agent_id):
        raise OperationalError("SELECT ...", {}, Exception("db down"))

    monkeypatch.setattr(roster, "_agent_retailers", broken)

    with pytest.raises(DataUnavailable) as excinfo:
        RetailerRosterService(gateway).fetch_my_retailers(agent.id)
    assert "db down" not in excinfo.value.detail


def test_roster_rejects_empty_agent_id(gateway):
    with pytest.raises(ValidationError):
        RetailerRosterService(gateway).fetch_my_retailers("  ")


def test_block_retailer_updates_status(gateway, seed, db):
    agent = seed.agent()
    retailer = seed.retailer(agent)

    RetailerRosterService(gateway).block_retailer(agent.id, retailer.id)

    db.expire_all()
    assert db.get(Retailer, retailer.id).status == "blocked"


def test_block_retailer_of_other_agent_fails_without_change(gateway, seed, db):
    agent = seed.agent()
    other = seed.agent(full_name="Other Agent")
    retailer = seed.retailer(other)

    with pytest.raises(NotFoundOrUnauthorized):
        RetailerRosterService(gateway).block_retailer(agent.id, retailer.id)

    db.expire_all()
    assert db.get(Retailer, retailer.id).status == "active"


def test_block_unknown_retailer_looks_like_not_owned(gateway, seed):
    agent = seed.agent()

    with pytest.raises(NotFoundOrUnauthorized) as excinfo:
        RetailerRosterService(gateway).block_retailer(agent.id, "missing-id")
    assert excinfo.value.status_code == 404


def _entry(name, status="active", location=None, total_sales="0", commission="0"):
    return RetailerRosterEntry(
        id=name.lower(),
        name=name,
        status=status,
        location=location,
        total_sales=Decimal(total_sales),
        commission_earned=Decimal(commission),
    )


@pytest.fixture
def entries():
    return [
        _entry("Corner Spaza", status="active", location="Soweto", total_sales="300", commission="30"),
        _entry("bottle store", status="blocked", location="Durban", total_sales="900", commission="9"),
        _entry("Airport Kiosk", status="suspended", location="Kempton Park", total_sales="50", commission="50"),
    ]


def test_filter_matches_name_or_location_case_insensitively(entries):
    assert [e.name for e in filter_retailers(entries, search="SPAZA")] == ["Corner Spaza"]
    assert [e.name for e in filter_retailers(entries, search="durban")] == ["bottle store"]
    assert len(filter_retailers(entries, search="")) == 3


def test_filter_by_status(entries):
    assert [e.name for e in filter_retailers(entries, status="blocked")] == ["bottle store"]
    assert len(filter_retailers(entries, status="all")) == 3
    assert filter_retailers(entries, search="spaza", status="blocked") == []


def test_filter_rejects_unknown_status(entries):
    with pytest.raises(ValidationError):
        filter_retailers(entries, status="deleted")


def test_sort_by_name(entries):
    assert [e.name for e in sort_retailers(entries, "name", "asc")] == [
        "Airport Kiosk", "bottle store", "Corner Spaza",
    ]
    assert [e.name for e in sort_retailers(entries, "name", "desc")] == [
        "Corner Spaza", "bottle store", "Airport Kiosk",
    ]


def test_sort_by_numbers_is_highest_first(entries):
    assert [e.name for e in sort_retailers(entries, "total_sales")] == [
        "bottle store", "Corner Spaza", "Airport Kiosk",
    ]
    assert [e.name for e in sort_retailers(entries, "commission")] == [
        "Airport Kiosk", "Corner Spaza", "bottle store",
    ]
    assert [e.name for e in sort_retailers(entries, "commission", "desc")] == [
        "bottle store", "Corner Spaza", "Airport Kiosk",
    ]


def test_sort_by_status(entries):
    assert [e.status for e in sort_retailers(entries, "status")] == ["active", "blocked", "suspended"]


def test_sort_rejects_unknown_key(entries):
    with pytest.raises(ValidationError):
        sort_retailers(entries, "balance")


def test_toggle_sort():
    assert toggle_sort("name", "asc", "name") == ("name", "desc")
    assert toggle_sort("name", "desc", "name") == ("name", "asc")
    assert toggle_sort("name", "desc", "commission") == ("commission", "asc")
