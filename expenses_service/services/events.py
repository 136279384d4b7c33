from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from expenses_service.models.event import Event
from expenses_service.utils.upsert import insert_ignore

log = logging.getLogger(__name__)

# Типы доменных событий (используй в сервисе)
EXPENSE_CREATED = "expense.created"
EXPENSE_DELETED = "expense.deleted"
SETTLEMENT_CREATED = "settlement.created"


def make_envelope(type: str, data: Dict[str, Any], timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """Конверт события в том виде, в каком его получают потребители."""
    ts = timestamp or datetime.now(timezone.utc)
    return {"type": type, "data": data, "timestamp": ts.isoformat()}


class EventPublisher:
    """
    Fire-and-forget публикация событий в outbox-таблицу events.
    Вызывается ПОСЛЕ commit бизнес-операции; сбой публикации только логируется
    и никогда не роняет уже выполненную запись.
    """

    def publish(
        self,
        db: Session,
        *,
        type: str,
        data: Dict[str, Any],
        group_id: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        envelope = make_envelope(type, data)
        payload = {
            "type": type,
            "group_id": group_id,
            "envelope": envelope,
            "idempotency_key": idempotency_key,
        }

        try:
            if idempotency_key:
                # повтор с тем же ключом - тихо пропускаем
                db.execute(insert_ignore(db, Event.__table__, payload, ["idempotency_key"]))
            else:
                db.add(Event(**payload))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            log.exception("events: failed to publish %s for group %s", type, group_id)
            return None

        log.info("event published: %s group=%s", type, group_id)
        return envelope
