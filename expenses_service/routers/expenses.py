# expenses_service/routers/expenses.py
# -----------------------------------------------------------------------------
# РОУТЕР: Расходы
# -----------------------------------------------------------------------------
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session
from starlette import status

from expenses_service.db import get_db
from expenses_service.schemas.expense import ExpenseCreate, ExpenseDeleteOut, ExpenseOut, ExpenseUpdate
from expenses_service.services.expenses import ExpenseService
from expenses_service.utils.plans import UserPlan
from expenses_service.utils.service_dep import get_expense_service

router = APIRouter(prefix="/expenses", tags=["Expenses"])


@router.get("/groups/{group_id}", response_model=List[ExpenseOut])
def list_group_expenses(
    group_id: str,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
):
    """Все записи группы (включая погашения), новые сверху. Неизвестная группа - пустой список."""
    return [ExpenseOut.model_validate(e) for e in service.list_group_expenses(db, group_id)]


@router.get("/{expense_id}", response_model=ExpenseOut)
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
):
    return ExpenseOut.model_validate(service.get_expense(db, expense_id))


@router.post("", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(
    payload: ExpenseCreate,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
    x_user_plan: UserPlan = Header(UserPlan.FREE, alias="X-User-Plan"),
):
    expense = service.create_expense(db, payload, plan=x_user_plan.value)
    return ExpenseOut.model_validate(expense)


@router.put("/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
):
    expense = service.update_expense(db, expense_id, payload)
    return ExpenseOut.model_validate(expense)


@router.delete("/{expense_id}", response_model=ExpenseDeleteOut)
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    service: ExpenseService = Depends(get_expense_service),
):
    deleted_id = service.delete_expense(db, expense_id)
    return ExpenseDeleteOut(deleted_id=deleted_id)
