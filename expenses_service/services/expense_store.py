# expenses_service/services/expense_store.py
# Хранилище записей расходов/погашений поверх SQLAlchemy-сессии.

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from expenses_service.models.expense import Expense
from expenses_service.models.expense_share import ExpenseShare


def build_shares(shares: Sequence[Tuple[str, Decimal]]) -> List[ExpenseShare]:
    return [
        ExpenseShare(position=pos, user_id=user_id, amount=amount)
        for pos, (user_id, amount) in enumerate(shares)
    ]


class ExpenseStore:
    def __init__(self, db: Session):
        self.db = db

    def find(self, group_id: str, *, newest_first: bool = False) -> List[Expense]:
        """Все записи группы (и расходы, и погашения) с подгруженными долями."""
        order = (Expense.date.desc(), Expense.id.desc()) if newest_first else (Expense.date.asc(), Expense.id.asc())
        stmt = (
            select(Expense)
            .where(Expense.group_id == group_id)
            .options(selectinload(Expense.shares))
            .order_by(*order)
        )
        return list(self.db.scalars(stmt).all())

    def get(self, expense_id: int) -> Optional[Expense]:
        return self.db.get(Expense, expense_id)

    def insert(self, expense: Expense) -> Expense:
        self.db.add(expense)
        self.db.commit()
        self.db.refresh(expense)
        return expense

    def update(self, expense: Expense, patch: Dict[str, Any]) -> Expense:
        """
        Применяет patch к записи. Ключ "shares" - список (user_id, amount),
        заменяет доли целиком.
        """
        shares = patch.pop("shares", None)
        for field, value in patch.items():
            setattr(expense, field, value)
        if shares is not None:
            expense.shares = build_shares(shares)
        expense.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(expense)
        return expense

    def delete(self, expense: Expense) -> None:
        self.db.delete(expense)
        self.db.commit()

    def count_by_group(self, group_id: str) -> int:
        return int(
            self.db.scalar(select(func.count()).select_from(Expense).where(Expense.group_id == group_id))
            or 0
        )

    def user_has_records(self, user_id: str) -> bool:
        """Есть ли пользователь плательщиком или участником хоть одной записи."""
        share_expense_ids = select(ExpenseShare.expense_id).where(ExpenseShare.user_id == user_id)
        stmt = (
            select(Expense.id)
            .where(or_(Expense.payer_id == user_id, Expense.id.in_(share_expense_ids)))
            .limit(1)
        )
        return self.db.scalar(stmt) is not None
