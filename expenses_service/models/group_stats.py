# -----------------------------------------------------------------------------
# МОДЕЛИ: GroupStats / GroupCategoryStat (материализованное представление)
# -----------------------------------------------------------------------------
# Строка на группу + строка на (группа, категория). Меняются только
# знаковыми инкрементами UPDATE ... SET col = col + :delta.
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Enum,
    text,
)

from expenses_service.db import Base
from expenses_service.models.expense import ExpenseCategory


class GroupStats(Base):
    __tablename__ = "group_stats"

    group_id = Column(String(64), primary_key=True)

    total_spent = Column(Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
    expense_count = Column(Integer, nullable=False, default=0, server_default=text("0"))

    last_updated = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<GroupStats group={self.group_id} total={self.total_spent} count={self.expense_count}>"


class GroupCategoryStat(Base):
    __tablename__ = "group_category_stats"

    group_id = Column(String(64), primary_key=True)
    category = Column(Enum(ExpenseCategory, name="expense_category"), primary_key=True)

    total = Column(Numeric(18, 2), nullable=False, default=0, server_default=text("0"))
