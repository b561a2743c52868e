from typing import Any
from pydantic import BaseModel, Field


class PlanOut(BaseModel):
    id: str
    price: float
    description: str

    class Config:
        from_attributes = True


class PrepayIn(BaseModel):
    planId: str | None = None


class TransactionOut(BaseModel):
    id: str
    data: dict[str, Any] = Field(default_factory=dict)
    user: str | None = None
    clientSecret: str | None = None
    stripePaymentIntentId: str | None = None


class ConfirmIn(BaseModel):
    transactionId: str | None = None
    # Email du bar ou id du token de confirmation
    token: str | None = None


class ConfirmOut(BaseModel):
    status: str
    email: str
    message: str
