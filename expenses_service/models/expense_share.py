# -----------------------------------------------------------------------------
# МОДЕЛЬ: ExpenseShare (SQLAlchemy)
# -----------------------------------------------------------------------------

from __future__ import annotations

from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    Numeric,
    Index,
)
from sqlalchemy.orm import relationship

from expenses_service.db import Base


class ExpenseShare(Base):
    __tablename__ = "expense_shares"

    id = Column(Integer, primary_key=True, index=True)

    expense_id = Column(
        Integer,
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
    )

    # порядок долей как во входном запросе
    position = Column(Integer, nullable=False, default=0)

    user_id = Column(String(64), nullable=False)

    amount = Column(
        Numeric(18, 2),
        nullable=False,
        comment="Доля участника в валюте взаиморасчётов (>= 0)",
    )

    __table_args__ = (
        Index("ix_expense_shares_expense", "expense_id"),
        Index("ix_expense_shares_user", "user_id"),
    )

    expense = relationship("Expense", back_populates="shares")
