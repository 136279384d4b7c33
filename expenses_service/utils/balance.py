# expenses_service/utils/balance.py
# -----------------------------------------------------------------------------
# УТИЛИТЫ РАСЧЁТА БАЛАНСОВ / SETTLE-UP
# -----------------------------------------------------------------------------
# Политика:
#   • Все суммы уже в валюте взаиморасчётов (конверсия - на записи).
#   • Внутренние расчёты - Decimal, округление до 2 знаков (минорная единица).
#   • Семантика net:
#       net > 0 - пользователю ДОЛЖНЫ; net < 0 - он ДОЛЖЕН.
#   • Погашение участвует так же, как расход: отдающий +X, получающий −X,
#     что гасит ровно такой же прежний дисбаланс.
#   • Settle-up - жадный: крупнейший должник платит крупнейшему кредитору.
#     Это эвристика (точный минимум - NP-трудная задача), но для звезды и
#     цепочки она даёт оптимум, а число переводов <= должники + кредиторы − 1.
# -----------------------------------------------------------------------------

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Mapping, Union

from expenses_service.services.ledger import LedgerEntry

Number = Union[Decimal, float, int]

DECIMALS = 2
# |net| <= DUST считаем погашенным
DUST = Decimal("0.01")


# =========================
# ВСПОМОГАТЕЛЬНОЕ
# =========================

def _D(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))

def _q(decimals: int) -> Decimal:
    return Decimal("1") if decimals <= 0 else Decimal("1").scaleb(-decimals)

def _round(d: Decimal, decimals: int = DECIMALS) -> Decimal:
    return d.quantize(_q(decimals), rounding=ROUND_HALF_UP)


# =========================
# NET-БАЛАНСЫ
# =========================

def calculate_group_balances(entries: Iterable[LedgerEntry]) -> Dict[str, Decimal]:
    """
    Возвращает {user_id: net}, округлённый до 2 знаков.
    Пустой набор записей -> пустой словарь.

    Плательщик, который сам есть в долях, кредитуется и дебетуется
    независимо: в итоге ему должны total_amount минус его доля.
    """
    net: Dict[str, Decimal] = defaultdict(Decimal)
    for entry in entries:
        for user_id, delta in entry.postings():
            net[user_id] += delta

    return {uid: _round(value) for uid, value in net.items()}


# =========================
# ПЛАН ПЕРЕВОДОВ
# =========================

def generate_payments(balances: Mapping[str, Number]) -> List[Dict]:
    """
    Жадный settle-up.
    Возвращает список переводов: [{"from", "to", "amount"}, ...], amount > 0.
    """
    debtors = sorted(
        [(uid, -_D(bal)) for uid, bal in balances.items() if _D(bal) < -DUST],
        key=lambda x: (-x[1], x[0]),
    )
    creditors = sorted(
        [(uid, _D(bal)) for uid, bal in balances.items() if _D(bal) > DUST],
        key=lambda x: (-x[1], x[0]),
    )

    payments: List[Dict] = []
    i, j = 0, 0
    while i < len(debtors) and j < len(creditors):
        debtor_id, debt_abs = debtors[i]
        creditor_id, credit_abs = creditors[j]

        amount = _round(min(debt_abs, credit_abs))

        if amount <= Decimal("0"):
            if debt_abs <= DUST:
                i += 1
            if credit_abs <= DUST:
                j += 1
            continue

        payments.append({"from": debtor_id, "to": creditor_id, "amount": float(amount)})

        debtors[i] = (debtor_id, _round(debt_abs - amount))
        creditors[j] = (creditor_id, _round(credit_abs - amount))

        if debtors[i][1] < DUST:
            i += 1
        if creditors[j][1] < DUST:
            j += 1

    return payments


def balances_to_json(balances: Mapping[str, Decimal]) -> Dict[str, float]:
    return {uid: float(value) for uid, value in balances.items()}
