# -----------------------------------------------------------------------------
# МОДЕЛЬ: Expense (SQLAlchemy)
# -----------------------------------------------------------------------------
# Одна таблица и для расходов, и для погашений (is_settlement = true).
# Погашение: payer_id - кто платит, ровно одна доля - кому, category = OTHER,
# exchange_rate = 1.
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Boolean,
    Enum,
    Index,
    text,
)
from sqlalchemy.orm import relationship

from expenses_service.db import Base


class ExpenseCategory(str, enum.Enum):
    FOOD = "FOOD"
    TRANSPORT = "TRANSPORT"
    ACCOMMODATION = "ACCOMMODATION"
    ENTERTAINMENT = "ENTERTAINMENT"
    OTHER = "OTHER"


class SplitType(str, enum.Enum):
    EQUAL = "EQUAL"
    EXACT = "EXACT"
    PERCENTAGE = "PERCENTAGE"


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)

    group_id = Column(
        String(64),
        nullable=False,
        comment="ID группы (внешний сервис групп)",
    )

    payer_id = Column(
        String(64),
        nullable=False,
        comment="Кто оплатил; для погашения - кто отдаёт долг",
    )

    description = Column(String, nullable=False)

    category = Column(
        Enum(ExpenseCategory, name="expense_category"),
        nullable=False,
        default=ExpenseCategory.OTHER,
        server_default=text("'OTHER'"),
    )

    split_type = Column(
        Enum(SplitType, name="split_type"),
        nullable=False,
        default=SplitType.EQUAL,
        server_default=text("'EQUAL'"),
    )

    total_amount = Column(
        Numeric(18, 2),
        nullable=False,
        comment="Сумма в валюте взаиморасчётов",
    )

    original_amount = Column(
        Numeric(18, 2),
        nullable=False,
        comment="Сумма в исходной валюте",
    )

    currency = Column(
        String(3),
        nullable=False,
        comment="Исходная валюта (ISO-4217)",
    )

    exchange_rate = Column(
        Numeric(18, 6),
        nullable=False,
        default=1,
        comment="Курс исходная -> валюта взаиморасчётов",
    )

    date = Column(DateTime, nullable=False, default=datetime.utcnow)

    is_settlement = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    __table_args__ = (
        Index("ix_expenses_group_date", "group_id", "date"),
        Index("ix_expenses_payer", "payer_id"),
    )

    shares = relationship(
        "ExpenseShare",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseShare.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Expense id={self.id} group={self.group_id} total={self.total_amount} settlement={self.is_settlement}>"
