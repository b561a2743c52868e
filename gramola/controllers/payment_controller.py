"""
Paiements Stripe: plans, PaymentIntent (prepay) et confirmation côté serveur.
"""
import os
import json
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional
import stripe
from sqlalchemy import update
from sqlalchemy.orm import Session
from ..models.payment import SubscriptionPlan, StripeTransaction
from ..models.user import User, Token

# Statuts Stripe considérés comme payés
ACCEPTED_STATUSES = ("succeeded", "requires_capture")

DEFAULT_PLANS = (
    ("SONG", Decimal("1.00"), "Pago por canción única"),
    ("MONTHLY", Decimal("10.00"), "Suscripción Mensual"),
    ("ANNUAL", Decimal("15.00"), "Suscripción Anual"),
)


@dataclass(frozen=True)
class StripeConfig:
    secret_key: Optional[str]
    currency: str = "eur"

    @classmethod
    def from_env(cls) -> "StripeConfig":
        return cls(
            secret_key=os.getenv("STRIPE_SECRET_KEY") or None,
            currency=os.getenv("STRIPE_CURRENCY", "eur").lower(),
        )

    @property
    def configured(self) -> bool:
        return bool(self.secret_key)

    @property
    def key_prefix(self) -> str:
        return (self.secret_key or "null")[:9]


def to_minor_units(price: Decimal) -> int:
    """Prix décimal -> centimes (arrondi au plus proche)."""
    return int((Decimal(price) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _intent_json(intent) -> str:
    # str(StripeObject) sérialise récursivement en JSON
    if isinstance(intent, stripe.StripeObject):
        return str(intent)
    return json.dumps(intent, default=str)


def _field(intent, name: str):
    try:
        return intent[name]
    except (KeyError, TypeError):
        return getattr(intent, name, None)


class PaymentController:
    def __init__(self, config: StripeConfig):
        self.config = config
        logging.info(f"[Stripe] key prefix={config.key_prefix}")

    def seed_plans(self, db: Session) -> None:
        if db.query(SubscriptionPlan).count() > 0:
            return
        for plan_id, price, description in DEFAULT_PLANS:
            db.add(SubscriptionPlan(id=plan_id, price=price, description=description))
        db.commit()
        logging.info("[DB] Plans d'abonnement initialisés")

    def get_available_plans(self, db: Session) -> list[SubscriptionPlan]:
        return db.query(SubscriptionPlan).all()

    def prepay(self, db: Session, plan_id: str) -> StripeTransaction:
        plan = db.get(SubscriptionPlan, plan_id) if plan_id else None
        if not plan:
            raise ValueError("plan_not_found")

        intent = stripe.PaymentIntent.create(
            amount=to_minor_units(plan.price),
            currency=self.config.currency,
            description=plan.description,
            api_key=self.config.secret_key,
        )

        tx = StripeTransaction(data=_intent_json(intent))
        db.add(tx)
        db.commit()
        db.refresh(tx)
        logging.info(f"[Stripe] PaymentIntent {_field(intent, 'id')} créé pour le plan {plan_id} (tx {tx.id})")
        return tx

    def _resolve_email(self, db: Session, token_or_email: Optional[str]) -> Optional[str]:
        if not token_or_email:
            return None
        # Heuristique historique: '@' => email, sinon id du token de création
        if "@" in token_or_email:
            return token_or_email
        u = (
            db.query(User)
            .join(Token, User.creation_token_id == Token.id)
            .filter(Token.id == token_or_email)
            .first()
        )
        return u.email if u else None

    def _already_confirmed(self, db: Session, tx: StripeTransaction, email: str) -> User:
        if tx.email != email:
            raise ValueError("transaction_already_confirmed")
        u = db.get(User, email)
        if not u:
            raise ValueError("user_not_found")
        logging.info(f"[Stripe] Transaction {tx.id} déjà confirmée pour {email}")
        return u

    def confirm_transaction(
        self, db: Session, tx: StripeTransaction, user_token_or_email: Optional[str]
    ) -> User:
        payment_intent_id = tx.payment_intent_id
        if not payment_intent_id or not payment_intent_id.strip():
            raise ValueError("missing_payment_intent")

        # Toujours vérifier l'état réel chez Stripe (jamais le client)
        pi = stripe.PaymentIntent.retrieve(payment_intent_id, api_key=self.config.secret_key)
        status = str(_field(pi, "status") or "")
        if status.lower() not in ACCEPTED_STATUSES:
            raise ValueError(f"payment_not_completed:{status}")

        email = self._resolve_email(db, user_token_or_email)
        if not email or "@" not in email:
            raise ValueError("identity_unresolved")

        if tx.email is not None:
            return self._already_confirmed(db, tx, email)

        u = db.get(User, email)
        if not u:
            raise ValueError("user_not_found")

        # Mise à jour conditionnelle: seul le premier confirmateur écrit
        result = db.execute(
            update(StripeTransaction)
            .where(StripeTransaction.id == tx.id, StripeTransaction.email.is_(None))
            .values(data=_intent_json(pi), email=email)
        )
        db.commit()
        db.refresh(tx)
        if result.rowcount == 0:
            return self._already_confirmed(db, tx, email)

        amount = _field(pi, "amount") or 0
        logging.info(f"✅ [PAIEMENT CONFIRMÉ] {email} | {amount / 100:.2f} {self.config.currency.upper()}")
        return u

    def find_transaction(self, db: Session, transaction_id: str) -> Optional[StripeTransaction]:
        if not transaction_id:
            return None
        return db.get(StripeTransaction, transaction_id)

    def diag(self) -> dict:
        out = {"stripeConfigured": self.config.configured}
        try:
            acct = stripe.Account.retrieve(api_key=self.config.secret_key)
            out["stripeOk"] = True
            out["accountId"] = _field(acct, "id")
        except Exception as e:
            out["stripeOk"] = False
            out["error"] = str(e)
        return out
