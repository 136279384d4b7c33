# expenses_service/services/stats.py
# -----------------------------------------------------------------------------
# МАТЕРИАЛИЗОВАННОЕ ПРЕДСТАВЛЕНИЕ GroupStats
# -----------------------------------------------------------------------------
# Поддерживается инкрементально на каждой мутации расхода:
#   • create - +total_amount, +1, +total_amount в корзину категории;
#   • delete - то же со знаком минус, по значениям, СОХРАНЁННЫМ в записи;
#   • update - два последовательных шага: снять старый (category, amount),
#     затем добавить новый. Одной дельтой «перенос из корзины A в B» не
#     выразить.
# Каждое поле меняется одним атомарным UPDATE ... SET col = col + :delta.
# Пара «снять/добавить» атомарной не является: параллельное чтение может
# увидеть промежуточный недо/пересчёт, который сходится после второго шага.
# Погашения (is_settlement) в статистику не входят.
# Полный пересчёт (rebuild_group_stats) - только для ручного восстановления.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.orm import Session

from expenses_service.models.expense import Expense, ExpenseCategory
from expenses_service.models.group_stats import GroupCategoryStat, GroupStats
from expenses_service.utils.upsert import insert_ignore

log = logging.getLogger(__name__)


def _D(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


# =========================
# АТОМАРНЫЕ ИНКРЕМЕНТЫ
# =========================

def _ensure_rows(db: Session, group_id: str, category: ExpenseCategory) -> None:
    """Ленивый upsert строки группы и корзины категории."""
    db.execute(
        insert_ignore(
            db,
            GroupStats.__table__,
            {"group_id": group_id, "total_spent": 0, "expense_count": 0, "last_updated": datetime.utcnow()},
            ["group_id"],
        )
    )
    db.execute(
        insert_ignore(
            db,
            GroupCategoryStat.__table__,
            {"group_id": group_id, "category": category, "total": 0},
            ["group_id", "category"],
        )
    )


def _increment(
    db: Session,
    group_id: str,
    category: ExpenseCategory,
    amount_delta: Decimal,
    count_delta: int,
) -> None:
    _ensure_rows(db, group_id, category)

    db.execute(
        update(GroupStats)
        .where(GroupStats.group_id == group_id)
        .values(
            total_spent=GroupStats.total_spent + amount_delta,
            expense_count=GroupStats.expense_count + count_delta,
            last_updated=datetime.utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    db.execute(
        update(GroupCategoryStat)
        .where(
            GroupCategoryStat.group_id == group_id,
            GroupCategoryStat.category == category,
        )
        .values(total=GroupCategoryStat.total + amount_delta)
        .execution_options(synchronize_session=False)
    )


# =========================
# ПУТИ МУТАЦИЙ
# =========================

def apply_created(db: Session, group_id: str, category: ExpenseCategory, total_amount) -> None:
    _increment(db, group_id, ExpenseCategory(category), _D(total_amount), 1)
    db.commit()


def apply_deleted(db: Session, group_id: str, category: ExpenseCategory, total_amount) -> None:
    _increment(db, group_id, ExpenseCategory(category), -_D(total_amount), -1)
    db.commit()


def apply_updated(
    db: Session,
    group_id: str,
    *,
    old_category: ExpenseCategory,
    old_amount,
    new_category: ExpenseCategory,
    new_amount,
) -> bool:
    """
    Возвращает False, если ни сумма, ни категория не менялись (ничего не делаем).
    Шаги коммитятся по отдельности.
    """
    old_category = ExpenseCategory(old_category)
    new_category = ExpenseCategory(new_category)
    old_amount = _D(old_amount)
    new_amount = _D(new_amount)

    if old_category == new_category and old_amount == new_amount:
        return False

    # 1) снять старый вклад
    _increment(db, group_id, old_category, -old_amount, 0)
    db.commit()

    # 2) добавить новый
    _increment(db, group_id, new_category, new_amount, 0)
    db.commit()
    return True


# =========================
# ЧТЕНИЕ
# =========================

def get_group_stats(db: Session, group_id: str) -> Dict:
    """
    {total_spent, count, by_category, last_updated}. Для группы без строки - нули.
    Пустые корзины (total = 0) в by_category не попадают.
    """
    row: Optional[GroupStats] = db.get(GroupStats, group_id)
    if row is None:
        return {"total_spent": 0.0, "count": 0, "by_category": {}, "last_updated": None}

    buckets: List[GroupCategoryStat] = list(
        db.scalars(
            select(GroupCategoryStat)
            .where(GroupCategoryStat.group_id == group_id)
            .order_by(GroupCategoryStat.category)
        ).all()
    )
    by_category = {
        ExpenseCategory(b.category).value: round(float(b.total), 2)
        for b in buckets
        if _D(b.total) != 0
    }
    return {
        "total_spent": round(float(row.total_spent), 2),
        "count": int(row.expense_count),
        "by_category": by_category,
        "last_updated": row.last_updated,
    }


# =========================
# ВОССТАНОВЛЕНИЕ (ручной запуск)
# =========================

def rebuild_group_stats(db: Session, group_id: str) -> Dict:
    """
    Полная переагрегация из таблицы expenses. Движок её не вызывает -
    только scripts/reconcile_stats.py после "consistency warning" в логах.
    """
    rows = db.execute(
        select(Expense.category, func.count(Expense.id), func.coalesce(func.sum(Expense.total_amount), 0))
        .where(Expense.group_id == group_id, Expense.is_settlement.is_(False))
        .group_by(Expense.category)
    ).all()

    db.execute(delete(GroupCategoryStat).where(GroupCategoryStat.group_id == group_id))
    db.execute(delete(GroupStats).where(GroupStats.group_id == group_id))

    total = Decimal("0")
    count = 0
    for category, n, amount in rows:
        total += _D(amount)
        count += int(n)
        db.execute(
            insert(GroupCategoryStat.__table__)
            .values(group_id=group_id, category=ExpenseCategory(category), total=_D(amount))
        )

    if rows:
        db.execute(
            insert(GroupStats.__table__)
            .values(group_id=group_id, total_spent=total, expense_count=count, last_updated=datetime.utcnow())
        )

    db.commit()
    log.info("stats rebuilt for group %s: total=%s count=%s", group_id, total, count)
    return get_group_stats(db, group_id)
