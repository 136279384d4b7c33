# expenses_service/utils/service_dep.py
"""
Сборка и выдача ExpenseService.
- build_expense_service: собирает сервис из настроек и общего httpx.Client (один раз на старте)
- get_expense_service: FastAPI-зависимость, достаёт сервис из app.state
"""

from __future__ import annotations

import httpx
from fastapi import Request

from expenses_service.config import Settings
from expenses_service.services.balance_cache import BalanceCache
from expenses_service.services.cache import Cache, InMemoryCache
from expenses_service.services.circuit_breaker import CircuitBreaker
from expenses_service.services.currency import CurrencyConverter
from expenses_service.services.events import EventPublisher
from expenses_service.services.expenses import ExpenseService
from expenses_service.services.group_membership import MembershipGuard


def build_expense_service(
    settings: Settings,
    client: httpx.Client,
    *,
    cache: Cache | None = None,
    breaker: CircuitBreaker | None = None,
) -> ExpenseService:
    if breaker is None:
        breaker = CircuitBreaker(
            "groups-service",
            failure_threshold=settings.membership_failure_threshold,
            call_timeout=settings.membership_timeout_seconds,
            reset_timeout=settings.membership_reset_seconds,
            window_size=settings.membership_window_size,
        )

    return ExpenseService(
        converter=CurrencyConverter(
            client,
            base_url=settings.rates_api_url,
            timeout=settings.rates_timeout_seconds,
        ),
        membership=MembershipGuard(
            client,
            breaker,
            base_url=settings.groups_service_url,
            timeout=settings.membership_timeout_seconds,
        ),
        balance_cache=BalanceCache(
            cache if cache is not None else InMemoryCache(),
            ttl_seconds=settings.balance_cache_ttl_seconds,
        ),
        publisher=EventPublisher(),
        settlement_currency=settings.settlement_currency,
        free_plan_limit=settings.free_plan_expense_limit,
    )


def get_expense_service(request: Request) -> ExpenseService:
    return request.app.state.expense_service
