# expenses_service/services/errors.py
# Доменные ошибки сервиса расходов. HTTP-статус и код несёт само исключение,
# в ответ их превращает обработчик в main.py.

from __future__ import annotations

from typing import Optional


class ExpenseServiceError(Exception):
    status_code = 400
    code: Optional[str] = None

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ExpenseValidationError(ExpenseServiceError):
    status_code = 400
    code = "VALIDATION_FAILED"


class AuthorizationError(ExpenseServiceError):
    status_code = 403
    code = "NOT_A_MEMBER"


class PlanLimitError(ExpenseServiceError):
    status_code = 403
    code = "LIMIT_REACHED"


class NotFoundError(ExpenseServiceError):
    status_code = 404
    code = "NOT_FOUND"


class DependencyDegraded(Exception):
    """
    Внешний сервис (курсы, членство) недоступен или ответил мусором.
    Наружу не выходит: ловится клиентом и заменяется fallback-значением.
    """
