"""
Ручной пересчёт материализованной статистики GroupStats из таблицы expenses.
Нужен после "consistency warning" в логах (сбой инкремента после записи).
Запуск:
  $ python -m expenses_service.scripts.reconcile_stats --group trip_2025
  $ python -m expenses_service.scripts.reconcile_stats --all
"""
from __future__ import annotations

import argparse
import logging

from sqlalchemy import select, union

from expenses_service.config import Settings
from expenses_service.db import SessionLocal, bind_engine, make_engine
from expenses_service.models.expense import Expense
from expenses_service.models.group_stats import GroupStats
from expenses_service.services.stats import rebuild_group_stats

log = logging.getLogger(__name__)


def reconcile(group_ids=None) -> dict:
    with SessionLocal() as db:
        if not group_ids:
            # группы без записей тоже: после потерянного декремента у них осталась только строка статистики
            known = union(select(Expense.group_id), select(GroupStats.group_id)).subquery()
            group_ids = sorted(db.scalars(select(known.c.group_id)).all())
        result = {}
        for group_id in group_ids:
            result[group_id] = rebuild_group_stats(db, group_id)
    return result


def main():
    parser = argparse.ArgumentParser(description="Rebuild GroupStats from the expenses table")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--group", action="append", dest="groups", help="group id (repeatable)")
    target.add_argument("--all", action="store_true", help="every group that has records")
    args = parser.parse_args()

    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    bind_engine(make_engine(settings.database_url))

    for group_id, stats in reconcile(None if args.all else args.groups).items():
        print(f"{group_id}: total={stats['total_spent']} count={stats['count']} by_category={stats['by_category']}")
    print("GroupStats reconciled ✔")


if __name__ == "__main__":
    main()
