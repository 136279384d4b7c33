# expenses_service/schemas/balance.py

from typing import Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field


class PaymentInstructionOut(BaseModel):
    """Один перевод из плана settle-up. amount > 0, 2 знака."""
    model_config = ConfigDict(populate_by_name=True)

    from_user: str = Field(..., alias="from")
    to: str
    amount: float


class BalancesOut(BaseModel):
    balances: Dict[str, float]  # net > 0 - пользователю должны; net < 0 - он должен
    payments: List[PaymentInstructionOut]
    source: Literal["cache", "database"]
