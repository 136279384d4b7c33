# -----------------------------------------------------------------------------
# СХЕМЫ Pydantic: ExpenseShare (доли участников)
# -----------------------------------------------------------------------------

from __future__ import annotations

from pydantic import BaseModel, Field, condecimal, constr

# Денежное поле: неотрицательное, округление до 2 знаков - в сервисе.
Money = condecimal(max_digits=18, ge=0)


class ExpenseShareBase(BaseModel):
    user_id: constr(strip_whitespace=True, min_length=1, max_length=64) = Field(..., description="ID участника")
    amount: Money = Field(..., description="Доля участника в исходной валюте расхода")


class ExpenseShareOut(BaseModel):
    user_id: str
    amount: float

    class Config:
        from_attributes = True
