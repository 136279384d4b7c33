# expenses_service/main.py
# Главная точка входа FastAPI для сервиса расходов.
#  • Зависимости (движок БД, httpx.Client, circuit breaker, кэш, publisher)
#    создаются один раз в lifespan и закрываются на остановке процесса.
#  • Доменные ошибки -> JSON {"detail", "code"} с их HTTP-статусом.

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from expenses_service.config import Settings
from expenses_service.db import bind_engine, make_engine
from expenses_service.routers.balances import router as balances_router
from expenses_service.routers.expenses import router as expenses_router
from expenses_service.routers.internal import router as internal_router
from expenses_service.routers.settlements import router as settlements_router
from expenses_service.services.errors import ExpenseServiceError
from expenses_service.services.expenses import ExpenseService
from expenses_service.utils.service_dep import build_expense_service

API_PREFIX = "/api/v1"

log = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    expense_service: Optional[ExpenseService] = None,
) -> FastAPI:
    """
    Фабрика приложения. expense_service можно передать готовым (тесты) -
    тогда lifespan не создаёт ни движок, ни HTTP-клиент.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if expense_service is not None:
            app.state.expense_service = expense_service
            yield
            return

        _configure_logging(settings.log_level)
        engine = make_engine(settings.database_url)
        bind_engine(engine)
        client = httpx.Client()
        app.state.expense_service = build_expense_service(settings, client)
        log.info("expenses service started (settlement currency %s)", settings.settlement_currency)
        try:
            yield
        finally:
            client.close()
            engine.dispose()
            log.info("expenses service stopped")

    app = FastAPI(
        title="Expenses Service",
        description="Расходы группы, балансы и план взаиморасчётов.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ExpenseServiceError)
    async def _expense_error_handler(request: Request, exc: ExpenseServiceError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "code": exc.code},
        )

    app.include_router(expenses_router,    prefix=API_PREFIX)
    app.include_router(settlements_router, prefix=API_PREFIX)
    app.include_router(balances_router,    prefix=API_PREFIX)
    app.include_router(internal_router,    prefix=API_PREFIX)

    @app.get("/health")
    def health():
        """Простой healthcheck."""
        return {"status": "ok", "message": "Expenses Service is running"}

    return app


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("expenses_service.main:app", host="0.0.0.0", port=3000, reload=False)
