# expenses_service/services/expenses.py
# -----------------------------------------------------------------------------
# СЕРВИС РАСХОДОВ: мутации + чтение балансов
# -----------------------------------------------------------------------------
# Порядок мутации:
#   план -> членство (только create) -> конвертация -> запись (commit)
#   -> статистика (best effort) -> инвалидация кэша -> событие.
# Сбой статистики после успешной записи НЕ откатывает запись: логируем
# «consistency warning» с группой и старыми/новыми значениями, чтобы потом
# прогнать scripts/reconcile_stats.py. Синхронного ретрая нет.
# Инвалидация кэша идёт до ответа клиенту - следующее чтение группы
# гарантированно пересчитывается.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from expenses_service.models.expense import Expense, ExpenseCategory, SplitType
from expenses_service.schemas.expense import ExpenseCreate, ExpenseUpdate
from expenses_service.schemas.settlement import SettlementCreate
from expenses_service.services import stats
from expenses_service.services.balance_cache import BalanceCache
from expenses_service.services.currency import CurrencyConverter
from expenses_service.services.errors import (
    AuthorizationError,
    ExpenseValidationError,
    NotFoundError,
)
from expenses_service.services.events import (
    EventPublisher,
    EXPENSE_CREATED,
    EXPENSE_DELETED,
    SETTLEMENT_CREATED,
)
from expenses_service.services.expense_store import ExpenseStore, build_shares
from expenses_service.services.group_membership import MembershipGuard
from expenses_service.services.ledger import entry_from_record
from expenses_service.utils.balance import balances_to_json, calculate_group_balances, generate_payments
from expenses_service.utils.plans import ensure_plan_allows

log = logging.getLogger(__name__)

SETTLEMENT_DESCRIPTION = "Settlement payment"


def _round2(d: Decimal) -> Decimal:
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _convert_shares(shares, rate: Decimal) -> List[Tuple[str, Decimal]]:
    """Доли из исходной валюты в валюту взаиморасчётов (по тому же курсу, что и сумма)."""
    out: List[Tuple[str, Decimal]] = []
    for share in shares:
        amount = Decimal(str(share.amount))
        if rate != 1:
            amount = amount * rate
        out.append((share.user_id, _round2(amount)))
    return out


def _shares_of(expense: Expense) -> List[Tuple[str, Decimal]]:
    return [(s.user_id, Decimal(str(s.amount))) for s in (expense.shares or [])]


@dataclass
class ExpenseService:
    converter: CurrencyConverter
    membership: MembershipGuard
    balance_cache: BalanceCache
    publisher: EventPublisher
    settlement_currency: str = "EUR"
    free_plan_limit: int = 50

    # ===== чтение =============================================================

    def list_group_expenses(self, db: Session, group_id: str) -> List[Expense]:
        return ExpenseStore(db).find(group_id, newest_first=True)

    def get_expense(self, db: Session, expense_id: int) -> Expense:
        expense = ExpenseStore(db).get(expense_id)
        if expense is None:
            raise NotFoundError("Expense not found")
        return expense

    def get_balances(self, db: Session, group_id: str) -> Tuple[Dict[str, Any], str]:
        """({"balances", "payments"}, source) - source = "cache" | "database"."""

        def compute() -> Dict[str, Any]:
            records = ExpenseStore(db).find(group_id)
            balances = calculate_group_balances(entry_from_record(r) for r in records)
            return {
                "balances": balances_to_json(balances),
                "payments": generate_payments(balances),
            }

        return self.balance_cache.get_or_compute(group_id, compute)

    def get_group_stats(self, db: Session, group_id: str) -> Dict[str, Any]:
        return stats.get_group_stats(db, group_id)

    def debt_status(self, db: Session, user_id: str) -> Dict[str, Any]:
        has_records = ExpenseStore(db).user_has_records(user_id)
        return {"user_id": user_id, "can_delete": not has_records, "has_pending_debts": has_records}

    # ===== мутации ============================================================

    def create_expense(self, db: Session, payload: ExpenseCreate, *, plan: str = "FREE") -> Expense:
        store = ExpenseStore(db)

        ensure_plan_allows(plan, store.count_by_group(payload.group_id), self.free_plan_limit)

        if not self.membership.is_member(payload.group_id, payload.payer_id):
            raise AuthorizationError("User not in group")

        currency = payload.currency or self.settlement_currency
        total_amount, rate = self.converter.convert(payload.total_amount, currency, self.settlement_currency)

        expense = Expense(
            group_id=payload.group_id,
            payer_id=payload.payer_id,
            description=payload.description,
            category=payload.category,
            split_type=payload.split_type,
            total_amount=_round2(total_amount),
            original_amount=_round2(Decimal(str(payload.total_amount))),
            currency=currency,
            exchange_rate=rate,
            date=payload.date or datetime.utcnow(),
            is_settlement=False,
            shares=build_shares(_convert_shares(payload.shares, rate)),
        )
        expense = store.insert(expense)

        self._stats_safely(
            db,
            "create",
            expense.group_id,
            lambda: stats.apply_created(db, expense.group_id, expense.category, expense.total_amount),
            new=(expense.category, expense.total_amount),
        )
        self.balance_cache.invalidate(expense.group_id)

        self.publisher.publish(
            db,
            type=EXPENSE_CREATED,
            group_id=expense.group_id,
            idempotency_key=f"expense:{expense.id}:created",
            data={
                "expense_id": expense.id,
                "group_id": expense.group_id,
                "amount": float(expense.total_amount),
                "payer_id": expense.payer_id,
                "description": expense.description,
            },
        )
        return expense

    def update_expense(self, db: Session, expense_id: int, payload: ExpenseUpdate) -> Expense:
        store = ExpenseStore(db)
        expense = store.get(expense_id)
        if expense is None:
            raise NotFoundError("Expense not found")
        if expense.is_settlement:
            raise ExpenseValidationError("Settlements cannot be edited; delete and record a new one")

        body = payload.model_dump(exclude_unset=True)
        for field in ("description", "payer_id", "category", "split_type", "date"):
            if field in body and body[field] is None:
                raise ExpenseValidationError(f"{field} cannot be null")

        old_category = ExpenseCategory(expense.category)
        old_total = Decimal(str(expense.total_amount))
        old_original = Decimal(str(expense.original_amount))
        old_currency = expense.currency

        new_total = old_total
        new_rate = Decimal(str(expense.exchange_rate))
        new_original = old_original
        new_currency = old_currency

        amount_changed = body.get("total_amount") is not None and Decimal(str(body["total_amount"])) != old_original
        currency_changed = body.get("currency") is not None and body["currency"] != old_currency

        # A) сумма или валюта поменялись - конвертируем заново
        if amount_changed or currency_changed:
            new_original = _round2(Decimal(str(body["total_amount"]))) if amount_changed else old_original
            new_currency = body["currency"] if currency_changed else old_currency
            converted, new_rate = self.converter.convert(new_original, new_currency, self.settlement_currency)
            new_total = _round2(converted)

        patch: Dict[str, Any] = {
            k: body[k]
            for k in ("description", "payer_id", "category", "split_type", "date")
            if k in body
        }
        patch.update(
            total_amount=new_total,
            original_amount=new_original,
            currency=new_currency,
            exchange_rate=new_rate,
        )
        if payload.shares is not None:
            patch["shares"] = _convert_shares(payload.shares, new_rate)

        new_category = ExpenseCategory(patch.get("category") or old_category)
        expense = store.update(expense, patch)

        # B) дифференциальная корректировка статистики: снять старое, добавить новое
        self._stats_safely(
            db,
            "update",
            expense.group_id,
            lambda: stats.apply_updated(
                db,
                expense.group_id,
                old_category=old_category,
                old_amount=old_total,
                new_category=new_category,
                new_amount=new_total,
            ),
            old=(old_category, old_total),
            new=(new_category, new_total),
        )
        self.balance_cache.invalidate(expense.group_id)
        return expense

    def delete_expense(self, db: Session, expense_id: int) -> int:
        store = ExpenseStore(db)
        expense = store.get(expense_id)
        if expense is None:
            raise NotFoundError("Expense not found")

        # значения берём из записи, а не пересчитываем
        group_id = expense.group_id
        category = ExpenseCategory(expense.category)
        total_amount = Decimal(str(expense.total_amount))
        is_settlement = bool(expense.is_settlement)

        store.delete(expense)

        if not is_settlement:
            self._stats_safely(
                db,
                "delete",
                group_id,
                lambda: stats.apply_deleted(db, group_id, category, total_amount),
                old=(category, total_amount),
            )
        self.balance_cache.invalidate(group_id)

        self.publisher.publish(
            db,
            type=EXPENSE_DELETED,
            group_id=group_id,
            idempotency_key=f"expense:{expense_id}:deleted",
            data={"expense_id": expense_id, "group_id": group_id, "is_settlement": is_settlement},
        )
        return expense_id

    def record_settlement(self, db: Session, payload: SettlementCreate) -> Expense:
        amount = _round2(Decimal(str(payload.amount)))
        settlement = Expense(
            group_id=payload.group_id,
            payer_id=payload.from_user_id,
            description=SETTLEMENT_DESCRIPTION,
            category=ExpenseCategory.OTHER,
            split_type=SplitType.EXACT,
            total_amount=amount,
            original_amount=amount,
            currency=self.settlement_currency,
            exchange_rate=Decimal("1"),
            date=datetime.utcnow(),
            is_settlement=True,
            shares=build_shares([(payload.to_user_id, amount)]),
        )
        settlement = ExpenseStore(db).insert(settlement)

        self.balance_cache.invalidate(settlement.group_id)

        self.publisher.publish(
            db,
            type=SETTLEMENT_CREATED,
            group_id=settlement.group_id,
            idempotency_key=f"settlement:{settlement.id}:created",
            data={
                "settlement_id": settlement.id,
                "group_id": settlement.group_id,
                "from_user_id": payload.from_user_id,
                "to_user_id": payload.to_user_id,
                "amount": float(amount),
            },
        )
        return settlement

    # ===== вспомогательное ====================================================

    def _stats_safely(
        self,
        db: Session,
        operation: str,
        group_id: str,
        apply,
        *,
        old: Optional[Sequence] = None,
        new: Optional[Sequence] = None,
    ) -> None:
        try:
            apply()
        except Exception:
            # запись уже закоммичена: ответ и инвалидация кэша не должны пострадать
            db.rollback()
            log.error(
                "consistency warning: stats %s failed for group %s (old=%s new=%s); "
                "run scripts/reconcile_stats.py --group %s",
                operation, group_id, _fmt(old), _fmt(new), group_id,
                exc_info=True,
            )


def _fmt(pair: Optional[Sequence]) -> Optional[str]:
    if not pair:
        return None
    category, amount = pair
    return f"{ExpenseCategory(category).value}:{amount}"
