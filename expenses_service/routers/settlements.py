# expenses_service/routers/settlements.py
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette import status

from expenses_service.db import get_db
from expenses_service.schemas.settlement import SettlementCreate, SettlementOut
from expenses_service.services.expenses import ExpenseService
from expenses_service.utils.service_dep import get_expense_service

router = APIRouter(prefix="/settlements", tags=["Settlements"])


@router.post("", response_model=SettlementOut, status_code=status.HTTP_201_CREATED)
def create_settlement(
    payload: SettlementCreate,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
):
    """Регистрирует погашение долга: from_user_id заплатил to_user_id."""
    settlement = service.record_settlement(db, payload)
    return SettlementOut(
        settlement_id=settlement.id,
        group_id=settlement.group_id,
        from_user_id=payload.from_user_id,
        to_user_id=payload.to_user_id,
        amount=float(settlement.total_amount),
    )
