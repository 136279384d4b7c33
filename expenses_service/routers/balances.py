# expenses_service/routers/balances.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from expenses_service.db import get_db
from expenses_service.schemas.balance import BalancesOut
from expenses_service.services.expenses import ExpenseService
from expenses_service.utils.service_dep import get_expense_service

router = APIRouter(prefix="/balances", tags=["Balances"])


@router.get("/{group_id}", response_model=BalancesOut)
def get_group_balances(
    group_id: str,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
):
    """
    Net-балансы группы и план переводов (settle-up).
    source="cache" - ответ из кэша, "database" - пересчитан по записям.
    """
    data, source = service.get_balances(db, group_id)
    return {"balances": data["balances"], "payments": data["payments"], "source": source}
