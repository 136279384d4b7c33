# expenses_service/services/ledger.py
# -----------------------------------------------------------------------------
# ЗАПИСИ ЖУРНАЛА ДЛЯ РАСЧЁТА БАЛАНСОВ
# -----------------------------------------------------------------------------
# В таблице expenses расход и погашение лежат в одной строке (флаг
# is_settlement). Для движка балансов это два явных варианта с общим
# интерфейсом postings(): список (user_id, signed delta).
#   • ExpenseEntry    - плательщик +total_amount, каждый участник −amount;
#   • SettlementEntry - отдающий +amount, получающий −amount.
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, Tuple, Union

from expenses_service.models.expense import Expense


def _D(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


@dataclass(frozen=True)
class ExpenseEntry:
    payer_id: str
    total_amount: Decimal
    shares: Tuple[Tuple[str, Decimal], ...] = ()

    kind = "expense"

    def postings(self) -> Iterator[Tuple[str, Decimal]]:
        yield self.payer_id, self.total_amount
        for user_id, amount in self.shares:
            yield user_id, -amount


@dataclass(frozen=True)
class SettlementEntry:
    from_user_id: str
    to_user_id: str
    amount: Decimal

    kind = "settlement"

    def postings(self) -> Iterator[Tuple[str, Decimal]]:
        yield self.from_user_id, self.amount
        yield self.to_user_id, -self.amount


LedgerEntry = Union[ExpenseEntry, SettlementEntry]


def entry_from_record(record: Expense) -> LedgerEntry:
    """ORM-строка -> вариант записи журнала."""
    shares = tuple((s.user_id, _D(s.amount)) for s in (record.shares or []))

    if record.is_settlement:
        if len(shares) != 1:
            raise ValueError(f"settlement {record.id} must have exactly one receiver, got {len(shares)}")
        to_user_id, amount = shares[0]
        return SettlementEntry(
            from_user_id=record.payer_id,
            to_user_id=to_user_id,
            amount=amount,
        )

    return ExpenseEntry(
        payer_id=record.payer_id,
        total_amount=_D(record.total_amount),
        shares=shares,
    )
