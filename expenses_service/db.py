# expenses_service/db.py
# Инициализация SQLAlchemy: фабрика движка, сессии, Base и явные импорты моделей.

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()

SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def make_engine(database_url: str) -> Engine:
    """
    Движок под DATABASE_URL. Для Postgres - пул как в проде,
    для SQLite (локально/тесты) - без настроек пула.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        pool_size=20,
        max_overflow=20,
        pool_timeout=60,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


def bind_engine(engine: Engine) -> None:
    """Привязывает фабрику сессий к движку (вызывается один раз на старте процесса)."""
    SessionLocal.configure(bind=engine)


from expenses_service.models import (  # noqa: E402
    expense,
    expense_share,
    group_stats,
    event,
)


def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
