# expenses_service/services/cache.py
# Key-value кэш со строковыми значениями и TTL.
# Интерфейс как у Redis (get / set с ex / delete), чтобы бэкенд можно было
# подменить внешним кэшем без изменений в BalanceCache.

from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Protocol, Tuple


class Cache(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class InMemoryCache:
    """
    Процессный кэш с истечением по TTL.
    Просроченные ключи удаляются лениво при чтении.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[str, float]] = {}

    def get(self, key: str) -> Optional[str]:
        item = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._data[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> None:
        # удаление отсутствующего ключа - no-op
        self._data.pop(key, None)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
