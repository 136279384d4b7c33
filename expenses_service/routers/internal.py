# expenses_service/routers/internal.py
# Внутренние эндпоинты для соседних сервисов (аналитика, удаление пользователя).
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from expenses_service.db import get_db
from expenses_service.schemas.stats import DebtStatusOut, GroupStatsOut
from expenses_service.services.expenses import ExpenseService
from expenses_service.utils.service_dep import get_expense_service

router = APIRouter(prefix="/internal", tags=["Internal"])


@router.get("/stats/{group_id}", response_model=GroupStatsOut)
def get_internal_stats(
    group_id: str,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
):
    """Материализованная статистика группы; для группы без расходов - нули."""
    return service.get_group_stats(db, group_id)


@router.get("/users/{user_id}/debt-status", response_model=DebtStatusOut)
def get_debt_status(
    user_id: str,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
):
    return service.debt_status(db, user_id)
