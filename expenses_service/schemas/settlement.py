# expenses_service/schemas/settlement.py

from pydantic import BaseModel, condecimal, constr, model_validator

Identifier = constr(strip_whitespace=True, min_length=1, max_length=64)


class SettlementCreate(BaseModel):
    """
    Погашение долга: from_user_id отдаёт amount пользователю to_user_id.
    Сумма - сразу в валюте взаиморасчётов.
    """
    group_id: Identifier
    from_user_id: Identifier
    to_user_id: Identifier
    amount: condecimal(max_digits=18, gt=0)

    @model_validator(mode="after")
    def _distinct_users(self):
        if self.from_user_id == self.to_user_id:
            raise ValueError("from_user_id and to_user_id must be different")
        return self


class SettlementOut(BaseModel):
    settlement_id: int
    group_id: str
    from_user_id: str  # должник, который платит
    to_user_id: str    # кредитор, который получает
    amount: float
