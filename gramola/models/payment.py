import json
import uuid
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Numeric
from ..utils.database import Base


class SubscriptionPlan(Base):
    __tablename__ = "subscription_plans"

    # Code sémantique: SONG | MONTHLY | ANNUAL
    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    description: Mapped[str] = mapped_column(String(255), default="")


class StripeTransaction(Base):
    __tablename__ = "stripe_transactions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Dernier état connu du PaymentIntent (JSON brut Stripe)
    data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Propriétaire, renseigné uniquement à la confirmation
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def __init__(self, **kw):
        kw.setdefault("id", str(uuid.uuid4()))
        super().__init__(**kw)

    def get_data(self) -> dict:
        try:
            parsed = json.loads(self.data or "{}")
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}

    @property
    def client_secret(self) -> Optional[str]:
        v = self.get_data().get("client_secret")
        return str(v) if v is not None else None

    @property
    def payment_intent_id(self) -> Optional[str]:
        v = self.get_data().get("id")
        return str(v) if v is not None else None
