# -----------------------------------------------------------------------------
# СХЕМЫ Pydantic: Expense
# -----------------------------------------------------------------------------
# Цели:
#   • Форма запроса валидируется здесь (FastAPI отвечает 422 до сервиса).
#   • Категория - только из enum ExpenseCategory; произвольные строки в
#     статистику не попадают.
#   • Валюта - ISO-4217, 3 буквы; если не пришла - валюта взаиморасчётов.
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, condecimal, constr, field_validator

from expenses_service.models.expense import ExpenseCategory, SplitType
from expenses_service.schemas.expense_share import ExpenseShareBase, ExpenseShareOut

PositiveMoney = condecimal(max_digits=18, gt=0)

Identifier = constr(strip_whitespace=True, min_length=1, max_length=64)


def _normalize_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = str(v).strip()
    if v == "":
        return None
    v = v.upper()
    if len(v) != 3 or not v.isalpha():
        raise ValueError("currency must be a 3-letter ISO 4217 code")
    return v


class ExpenseCreate(BaseModel):
    description: constr(strip_whitespace=True, min_length=3)
    total_amount: PositiveMoney
    currency: Optional[str] = None
    payer_id: Identifier
    group_id: Identifier
    category: ExpenseCategory = ExpenseCategory.OTHER
    split_type: SplitType = SplitType.EQUAL
    shares: List[ExpenseShareBase] = Field(..., min_length=1)
    date: Optional[datetime] = None

    @field_validator("currency")
    @classmethod
    def _currency(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_currency(v)


class ExpenseUpdate(BaseModel):
    """
    Частичное обновление. Группу сменить нельзя.
    Если пришли total_amount или currency - сумма конвертируется заново.
    """
    description: Optional[constr(strip_whitespace=True, min_length=3)] = None
    total_amount: Optional[PositiveMoney] = None
    currency: Optional[str] = None
    payer_id: Optional[Identifier] = None
    category: Optional[ExpenseCategory] = None
    split_type: Optional[SplitType] = None
    shares: Optional[List[ExpenseShareBase]] = Field(default=None, min_length=1)
    date: Optional[datetime] = None

    @field_validator("currency")
    @classmethod
    def _currency(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_currency(v)


class ExpenseOut(BaseModel):
    id: int
    group_id: str
    payer_id: str
    description: str
    category: ExpenseCategory
    split_type: SplitType
    total_amount: float
    original_amount: float
    currency: str
    exchange_rate: float
    date: datetime
    is_settlement: bool = False
    shares: List[ExpenseShareOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ExpenseDeleteOut(BaseModel):
    status: str = "ok"
    message: str = "Expense deleted successfully"
    deleted_id: int
