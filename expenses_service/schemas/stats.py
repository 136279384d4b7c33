# expenses_service/schemas/stats.py
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel

class GroupStatsOut(BaseModel):
    total_spent: float
    count: int
    by_category: Dict[str, float]
    last_updated: Optional[datetime] = None


class DebtStatusOut(BaseModel):
    user_id: str
    can_delete: bool
    has_pending_debts: bool
