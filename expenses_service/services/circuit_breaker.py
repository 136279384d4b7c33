# expenses_service/services/circuit_breaker.py
# -----------------------------------------------------------------------------
# CIRCUIT BREAKER (конечный автомат CLOSED / OPEN / HALF_OPEN)
# -----------------------------------------------------------------------------
#   • CLOSED    - вызовы идут в зависимость; исходы пишутся в скользящее окно
#                 последних window_size вызовов. Доля ошибок > failure_threshold
#                 -> OPEN.
#   • OPEN      - вызов не выполняется, сразу fallback. Через reset_timeout
#                 после открытия -> HALF_OPEN.
#   • HALF_OPEN - пропускаем один пробный вызов: успех -> CLOSED (окно
#                 очищается), ошибка -> снова OPEN. Пока проба в полёте,
#                 остальные получают fallback.
# Вызов дольше call_timeout считается ошибкой, даже если вернул результат.
# Часы (clock) внедряются - автомат тестируется без сети и без sleep.
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
import logging
import threading
import time
from collections import deque
from typing import Callable, Deque, Optional, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class BreakerState(str, enum.Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreaker:
    def __init__(
        self,
        name: str,
        *,
        failure_threshold: float = 0.5,
        call_timeout: float = 3.0,
        reset_timeout: float = 10.0,
        window_size: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not 0 < failure_threshold <= 1:
            raise ValueError("failure_threshold must be in (0, 1]")
        if window_size < 1:
            raise ValueError("window_size must be >= 1")

        self.name = name
        self.failure_threshold = failure_threshold
        self.call_timeout = call_timeout
        self.reset_timeout = reset_timeout
        self._clock = clock

        self._state = BreakerState.CLOSED
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False
        # True - ошибка, False - успех
        self._outcomes: Deque[bool] = deque(maxlen=window_size)
        self._lock = threading.Lock()

    # ---- состояние ----------------------------------------------------------

    @property
    def state(self) -> BreakerState:
        with self._lock:
            self._maybe_half_open()
            return self._state

    def failure_rate(self) -> float:
        with self._lock:
            if not self._outcomes:
                return 0.0
            return sum(self._outcomes) / len(self._outcomes)

    def _maybe_half_open(self) -> None:
        if (
            self._state == BreakerState.OPEN
            and self._opened_at is not None
            and self._clock() - self._opened_at >= self.reset_timeout
        ):
            self._transition(BreakerState.HALF_OPEN)

    def _transition(self, new_state: BreakerState) -> None:
        if new_state == self._state:
            return
        log.warning("circuit %s: %s -> %s", self.name, self._state.value, new_state.value)
        self._state = new_state
        if new_state == BreakerState.OPEN:
            self._opened_at = self._clock()
        elif new_state == BreakerState.CLOSED:
            self._opened_at = None
            self._outcomes.clear()

    # ---- учёт исходов -------------------------------------------------------

    def _acquire(self) -> bool:
        """Можно ли сейчас выполнять реальный вызов."""
        with self._lock:
            self._maybe_half_open()
            if self._state == BreakerState.OPEN:
                return False
            if self._state == BreakerState.HALF_OPEN:
                if self._trial_in_flight:
                    return False
                self._trial_in_flight = True
            return True

    def _record(self, failed: bool) -> None:
        with self._lock:
            if self._state == BreakerState.HALF_OPEN:
                self._trial_in_flight = False
                self._transition(BreakerState.OPEN if failed else BreakerState.CLOSED)
                return

            self._outcomes.append(failed)
            if failed and self._state == BreakerState.CLOSED:
                rate = sum(self._outcomes) / len(self._outcomes)
                if rate > self.failure_threshold:
                    self._transition(BreakerState.OPEN)

    # ---- вызов --------------------------------------------------------------

    def call(self, func: Callable[[], T], fallback: Callable[[], T]) -> T:
        """
        Выполняет func() под защитой автомата. При OPEN, ошибке или таймауте
        возвращает fallback(). Исключения func() наружу не пробрасываются.
        """
        if not self._acquire():
            log.debug("circuit %s is open, using fallback", self.name)
            return fallback()

        started = self._clock()
        try:
            result = func()
        except Exception as exc:
            log.warning("circuit %s: call failed: %s", self.name, exc)
            self._record(failed=True)
            return fallback()

        elapsed = self._clock() - started
        if elapsed > self.call_timeout:
            log.warning(
                "circuit %s: call took %.2fs (timeout %.2fs), counted as failure",
                self.name, elapsed, self.call_timeout,
            )
            self._record(failed=True)
            return fallback()

        self._record(failed=False)
        return result
