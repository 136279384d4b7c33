# expenses_service/utils/plans.py
# Лимиты тарифов на запись расходов (заголовок X-User-Plan).

from __future__ import annotations

import enum

from expenses_service.services.errors import PlanLimitError


class UserPlan(str, enum.Enum):
    FREE = "FREE"
    PRO = "PRO"
    ENTERPRISE = "ENTERPRISE"


def ensure_plan_allows(plan: str, records_in_group: int, free_limit: int) -> None:
    """FREE - не больше free_limit записей на группу; PRO/ENTERPRISE - без лимита."""
    if UserPlan(plan) != UserPlan.FREE:
        return
    if records_in_group >= free_limit:
        raise PlanLimitError(f"Free plan limit reached: Max {free_limit} expenses per group.")
