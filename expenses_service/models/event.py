from sqlalchemy import Column, Integer, String, DateTime, JSON, func, UniqueConstraint
from expenses_service.db import Base

class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)

    # тип события: expense.created / expense.deleted / settlement.created
    type = Column(String(64), nullable=False)

    group_id = Column(String(64), nullable=True)

    # конверт {type, data, timestamp} целиком, как уходит потребителям
    envelope = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # чтобы не записывать дубль при ретраях
    idempotency_key = Column(String(64), nullable=True)

    __table_args__ = (
        UniqueConstraint("idempotency_key", name="uq_events_idempotency_key"),
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} type={self.type} group={self.group_id}>"
