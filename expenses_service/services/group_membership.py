# expenses_service/services/group_membership.py
# -----------------------------------------------------------------------------
# ПРОВЕРКА ЧЛЕНСТВА В ГРУППЕ (удалённый groups-service)
# -----------------------------------------------------------------------------
#   GET {GROUPS_SERVICE_URL}/api/v1/groups/{group_id}/members/{user_id}
#     200 + {"isMember": true}  -> участник
#     404                       -> не участник (это ответ, а не сбой)
#     прочее / сеть / таймаут   -> сбой, считается автоматом
# Вызов обёрнут в CircuitBreaker. Fallback - True: при падении groups-service
# запись расходов продолжает работать. Осознанный компромисс в пользу
# доступности, ужесточать его молча нельзя.
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Optional

import httpx

from expenses_service.services.circuit_breaker import CircuitBreaker
from expenses_service.services.errors import DependencyDegraded

log = logging.getLogger(__name__)


class MembershipGuard:
    def __init__(
        self,
        client: httpx.Client,
        breaker: CircuitBreaker,
        base_url: Optional[str],
        timeout: float = 3.0,
    ):
        self.client = client
        self.breaker = breaker
        self.base_url = base_url.rstrip("/") if base_url else None
        self.timeout = timeout

    def is_member(self, group_id: str, user_id: str) -> bool:
        return self.breaker.call(
            lambda: self._fetch_membership(group_id, user_id),
            fallback=lambda: self._permissive_fallback(group_id, user_id),
        )

    def _permissive_fallback(self, group_id: str, user_id: str) -> bool:
        log.warning(
            "membership: groups-service unavailable, assuming user %s belongs to group %s",
            user_id, group_id,
        )
        return True

    def _fetch_membership(self, group_id: str, user_id: str) -> bool:
        if not self.base_url:
            raise DependencyDegraded("GROUPS_SERVICE_URL is not configured")

        response = self.client.get(
            f"{self.base_url}/api/v1/groups/{group_id}/members/{user_id}",
            timeout=self.timeout,
        )
        if response.status_code == 404:
            return False
        if response.status_code != 200:
            raise DependencyDegraded(f"groups-service answered {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise DependencyDegraded("groups-service returned malformed JSON") from exc
        return isinstance(data, dict) and data.get("isMember") is True
