# expenses_service/services/currency.py
# -----------------------------------------------------------------------------
# КОНВЕРТАЦИЯ ВАЛЮТ (Frankfurter API: https://www.frankfurter.app/docs/)
# -----------------------------------------------------------------------------
# convert(amount, from, to) -> (amount_in_to, rate)
#   • from == to - (amount, 1) без внешнего вызова;
#   • любой сбой (сеть, не-2xx, кривой JSON) - (amount, 1).
# Сбой прайсинга не должен блокировать запись расхода: доступность важнее
# точности курса. Это осознанный компромисс, не баг.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Tuple

import httpx

from expenses_service.services.errors import DependencyDegraded

log = logging.getLogger(__name__)

ONE = Decimal("1")


def _D(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


def _round2(d: Decimal) -> Decimal:
    return d.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class CurrencyConverter:
    def __init__(
        self,
        client: httpx.Client,
        base_url: str = "https://api.frankfurter.app",
        timeout: float = 3.0,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def convert(self, amount, from_currency: str, to_currency: str) -> Tuple[Decimal, Decimal]:
        amount = _D(amount)
        from_currency = from_currency.strip().upper()
        to_currency = to_currency.strip().upper()

        if from_currency == to_currency:
            return amount, ONE

        try:
            converted = self._fetch_converted(amount, from_currency, to_currency)
        except DependencyDegraded as exc:
            log.warning(
                "rates: falling back to 1:1 for %s %s->%s: %s",
                amount, from_currency, to_currency, exc,
            )
            return amount, ONE

        if amount == 0:
            return Decimal("0"), ONE
        return _round2(converted), converted / amount

    def _fetch_converted(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        try:
            response = self.client.get(
                f"{self.base_url}/latest",
                params={"amount": str(amount), "from": from_currency, "to": to_currency},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
            # {"amount": 100.0, "base": "USD", "rates": {"EUR": 92.5}}
            return _D(data["rates"][to_currency])
        except (httpx.HTTPError, ValueError, KeyError, TypeError, InvalidOperation) as exc:
            raise DependencyDegraded(str(exc) or exc.__class__.__name__) from exc
