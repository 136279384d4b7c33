# expenses_service/config.py
# Настройки сервиса из окружения (.env подхватывается через python-dotenv).

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./expenses.db"

    # валюта, в которой хранятся total_amount и доли
    settlement_currency: str = "EUR"

    rates_api_url: str = "https://api.frankfurter.app"
    rates_timeout_seconds: float = 3.0

    # если не задан - MembershipGuard сразу уходит в permissive-fallback
    groups_service_url: Optional[str] = None
    membership_timeout_seconds: float = 3.0
    membership_failure_threshold: float = 0.5
    membership_reset_seconds: float = 10.0
    membership_window_size: int = 10

    balance_cache_ttl_seconds: int = 60
    free_plan_expense_limit: int = 50

    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL") or cls.database_url,
            settlement_currency=(os.getenv("SETTLEMENT_CURRENCY") or cls.settlement_currency).strip().upper(),
            rates_api_url=os.getenv("RATES_API_URL") or cls.rates_api_url,
            rates_timeout_seconds=_env_float("RATES_TIMEOUT_SECONDS", cls.rates_timeout_seconds),
            groups_service_url=os.getenv("GROUPS_SERVICE_URL") or None,
            membership_timeout_seconds=_env_float("MEMBERSHIP_TIMEOUT_SECONDS", cls.membership_timeout_seconds),
            membership_failure_threshold=_env_float("MEMBERSHIP_FAILURE_THRESHOLD", cls.membership_failure_threshold),
            membership_reset_seconds=_env_float("MEMBERSHIP_RESET_SECONDS", cls.membership_reset_seconds),
            membership_window_size=_env_int("MEMBERSHIP_WINDOW_SIZE", cls.membership_window_size),
            balance_cache_ttl_seconds=_env_int("BALANCE_CACHE_TTL_SECONDS", cls.balance_cache_ttl_seconds),
            free_plan_expense_limit=_env_int("FREE_PLAN_EXPENSE_LIMIT", cls.free_plan_expense_limit),
            log_level=(os.getenv("LOG_LEVEL") or cls.log_level).upper(),
            cors_origins=_env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
        )
