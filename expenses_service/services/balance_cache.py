# expenses_service/services/balance_cache.py
# -----------------------------------------------------------------------------
# КЭШ БАЛАНСОВ ГРУППЫ
# -----------------------------------------------------------------------------
#   • Ключ: balances:{group_id}; значение - JSON {"balances", "payments"}.
#   • Чтение: hit -> source="cache"; miss -> считаем, пишем с TTL,
#     source="database".
#   • Любая мутация группы синхронно вызывает invalidate() до ответа клиенту.
#     Других механизмов инвалидации нет (ни версий, ни write-through);
#     TTL ограничивает устаревание, если инвалидация потерялась при падении.
# -----------------------------------------------------------------------------

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Tuple

from expenses_service.services.cache import Cache

log = logging.getLogger(__name__)

SOURCE_CACHE = "cache"
SOURCE_DATABASE = "database"

DEFAULT_TTL_SECONDS = 60


def balances_key(group_id: str) -> str:
    return f"balances:{group_id}"


class BalanceCache:
    def __init__(self, cache: Cache, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def get_or_compute(
        self,
        group_id: str,
        compute: Callable[[], Dict[str, Any]],
    ) -> Tuple[Dict[str, Any], str]:
        key = balances_key(group_id)

        cached = self.cache.get(key)
        if cached is not None:
            log.debug("balance cache hit: %s", key)
            return json.loads(cached), SOURCE_CACHE

        log.debug("balance cache miss: %s", key)
        data = compute()
        self.cache.set(key, json.dumps(data), self.ttl_seconds)
        return data, SOURCE_DATABASE

    def invalidate(self, group_id: str) -> None:
        self.cache.delete(balances_key(group_id))
