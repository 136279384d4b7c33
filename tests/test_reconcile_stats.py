from sqlalchemy import update

from expenses_service.db import bind_engine
from expenses_service.models.group_stats import GroupStats
from expenses_service.schemas.expense import ExpenseCreate
from expenses_service.scripts.reconcile_stats import reconcile
from expenses_service.services import stats

from conftest import expense_payload


def test_reconcile_repairs_drifted_groups(engine, service, db):
    service.create_expense(db, ExpenseCreate(**expense_payload(group_id="trip", total_amount=40)))
    service.create_expense(db, ExpenseCreate(**expense_payload(group_id="flat", total_amount=12)))

    # имитируем потерянный инкремент
    db.execute(update(GroupStats).where(GroupStats.group_id == "trip").values(total_spent=0, expense_count=0))
    db.commit()
    assert stats.get_group_stats(db, "trip")["total_spent"] == 0.0
    db.close()

    bind_engine(engine)
    result = reconcile()

    assert set(result) == {"trip", "flat"}
    assert result["trip"]["total_spent"] == 40.0
    assert result["trip"]["count"] == 1
    assert result["flat"]["total_spent"] == 12.0

    assert stats.get_group_stats(db, "trip")["total_spent"] == 40.0


def test_reconcile_all_covers_groups_without_records(engine, service, db):
    expense = service.create_expense(db, ExpenseCreate(**expense_payload(group_id="trip", total_amount=40)))

    # строку удалили мимо сервиса: декремент статистики потерян
    db.delete(expense)
    db.commit()
    assert stats.get_group_stats(db, "trip")["total_spent"] == 40.0
    db.close()

    bind_engine(engine)
    result = reconcile()

    assert "trip" in result
    assert result["trip"]["total_spent"] == 0.0
    assert result["trip"]["count"] == 0
    assert stats.get_group_stats(db, "trip") == {
        "total_spent": 0.0,
        "count": 0,
        "by_category": {},
        "last_updated": None,
    }
