import logging
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from expenses_service.models.expense import ExpenseCategory
from expenses_service.schemas.expense import ExpenseCreate, ExpenseUpdate
from expenses_service.schemas.settlement import SettlementCreate
from expenses_service.services import stats

from conftest import expense_payload


def _create(service, db, **overrides):
    return service.create_expense(db, ExpenseCreate(**expense_payload(**overrides)))


def test_unknown_group_reports_zeros(db):
    assert stats.get_group_stats(db, "nobody") == {
        "total_spent": 0.0,
        "count": 0,
        "by_category": {},
        "last_updated": None,
    }


def test_create_increments_totals_and_bucket(service, db):
    _create(service, db, total_amount=100, category="FOOD")
    _create(service, db, total_amount="20.50", category="TRANSPORT")

    result = stats.get_group_stats(db, "trip")
    assert result["total_spent"] == 120.5
    assert result["count"] == 2
    assert result["by_category"] == {"FOOD": 100.0, "TRANSPORT": 20.5}
    assert result["last_updated"] is not None


def test_create_then_delete_restores_previous_state(service, db):
    _create(service, db, total_amount=30, category="FOOD")
    before = stats.get_group_stats(db, "trip")

    expense = _create(service, db, total_amount=70, category="ENTERTAINMENT")
    service.delete_expense(db, expense.id)

    after = stats.get_group_stats(db, "trip")
    assert after["total_spent"] == before["total_spent"]
    assert after["count"] == before["count"]
    assert after["by_category"] == before["by_category"]


def test_update_moves_amount_between_buckets(service, db):
    expense = _create(service, db, total_amount=100, category="FOOD")
    service.update_expense(db, expense.id, ExpenseUpdate(category="TRANSPORT", total_amount=80))

    result = stats.get_group_stats(db, "trip")
    assert result["total_spent"] == 80.0
    assert result["count"] == 1
    assert result["by_category"] == {"TRANSPORT": 80.0}


def test_update_without_amount_or_category_change_is_noop(db):
    changed = stats.apply_updated(
        db,
        "trip",
        old_category=ExpenseCategory.FOOD,
        old_amount=Decimal("10"),
        new_category=ExpenseCategory.FOOD,
        new_amount=Decimal("10.00"),
    )
    assert changed is False
    assert stats.get_group_stats(db, "trip")["count"] == 0


def test_settlements_are_not_counted(service, db):
    _create(service, db, total_amount=100)
    settlement = service.record_settlement(
        db, SettlementCreate(group_id="trip", from_user_id="pepe", to_user_id="paco", amount=50)
    )
    assert stats.get_group_stats(db, "trip")["total_spent"] == 100.0

    service.delete_expense(db, settlement.id)
    result = stats.get_group_stats(db, "trip")
    assert result["total_spent"] == 100.0
    assert result["count"] == 1


def test_rebuild_matches_incremental_view(service, db):
    _create(service, db, total_amount=10, category="FOOD")
    _create(service, db, total_amount=15, category="FOOD")
    doomed = _create(service, db, total_amount=99, category="OTHER")
    service.delete_expense(db, doomed.id)
    incremental = stats.get_group_stats(db, "trip")

    rebuilt = stats.rebuild_group_stats(db, "trip")
    assert rebuilt["total_spent"] == incremental["total_spent"] == 25.0
    assert rebuilt["count"] == incremental["count"] == 2
    assert rebuilt["by_category"] == incremental["by_category"] == {"FOOD": 25.0}


def test_stats_failure_keeps_the_write_and_logs(service, db, monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise OperationalError("UPDATE group_stats", {}, Exception("database is locked"))

    monkeypatch.setattr(stats, "apply_created", broken)
    with caplog.at_level(logging.ERROR, logger="expenses_service.services.expenses"):
        expense = _create(service, db, total_amount=10)

    assert service.get_expense(db, expense.id).id == expense.id
    assert "consistency warning" in caplog.text
    assert "reconcile_stats" in caplog.text


def test_unexpected_stats_error_still_invalidates_cache(service, db, monkeypatch, caplog):
    first = _create(service, db, total_amount=10)
    assert service.get_balances(db, "trip")[1] == "database"
    assert service.get_balances(db, "trip")[1] == "cache"

    def broken(*args, **kwargs):
        raise RuntimeError("stats backend exploded")

    monkeypatch.setattr(stats, "apply_deleted", broken)
    with caplog.at_level(logging.ERROR, logger="expenses_service.services.expenses"):
        assert service.delete_expense(db, first.id) == first.id

    assert "consistency warning" in caplog.text
    data, source = service.get_balances(db, "trip")
    assert source == "database"
    assert data["balances"] == {}
