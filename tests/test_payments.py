from decimal import Decimal

import pytest
import stripe

from gramola.controllers.payment_controller import to_minor_units
from gramola.models.payment import StripeTransaction, SubscriptionPlan
from gramola.models.track import Track


@pytest.fixture
def fake_stripe(monkeypatch):
    """PaymentIntent en mémoire; le statut est piloté par le test."""
    state = {"created": [], "status": "succeeded", "retrieved": [], "api_keys": set()}

    def create(**params):
        state["created"].append(params)
        state["api_keys"].add(params.get("api_key"))
        n = len(state["created"])
        return {
            "id": f"pi_test_{n}",
            "object": "payment_intent",
            "amount": params["amount"],
            "currency": params["currency"],
            "description": params["description"],
            "client_secret": f"pi_test_{n}_secret_abc",
            "status": "requires_payment_method",
        }

    def retrieve(intent_id, api_key=None):
        state["retrieved"].append(intent_id)
        state["api_keys"].add(api_key)
        return {"id": intent_id, "amount": 100, "status": state["status"]}

    monkeypatch.setattr(stripe.PaymentIntent, "create", create)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", retrieve)
    return state


def test_to_minor_units_rounds():
    assert to_minor_units(Decimal("1.00")) == 100
    assert to_minor_units(Decimal("10.005")) == 1001
    assert to_minor_units(Decimal("0.29")) == 29


def test_plans_are_seeded_once(client, db, payment_ctrl):
    payment_ctrl.seed_plans(db)
    r = client.get("/payments/plans")
    assert r.status_code == 200
    plans = {p["id"]: p for p in r.json()}
    assert set(plans) == {"SONG", "MONTHLY", "ANNUAL"}
    assert plans["SONG"]["price"] == 1.0
    assert plans["MONTHLY"]["price"] == 10.0
    assert plans["ANNUAL"]["description"] == "Suscripción Anual"


def test_plans_reflect_stored_price(client, db):
    db.get(SubscriptionPlan, "SONG").price = Decimal("2.50")
    db.commit()
    plans = {p["id"]: p for p in client.get("/payments/plans").json()}
    assert plans["SONG"]["price"] == 2.5


def test_prepay_uses_plan_price(client, db, fake_stripe):
    r = client.post("/payments/prepay", json={"planId": "MONTHLY"})
    assert r.status_code == 200
    body = r.json()
    assert body["clientSecret"] == "pi_test_1_secret_abc"
    assert body["stripePaymentIntentId"] == "pi_test_1"
    assert body["data"]["client_secret"] == "pi_test_1_secret_abc"
    assert body["user"] is None

    created = fake_stripe["created"][0]
    assert created["amount"] == 1000
    assert created["currency"] == "eur"
    assert created["description"] == "Suscripción Mensual"
    assert fake_stripe["api_keys"] == {"sk_test_dummy"}

    db.expire_all()
    tx = db.get(StripeTransaction, body["id"])
    assert tx.email is None
    assert tx.payment_intent_id == "pi_test_1"


def test_prepay_errors(client, fake_stripe):
    assert client.post("/payments/prepay", json={}).status_code == 400
    assert client.post("/payments/prepay", json={"planId": "LIFETIME"}).status_code == 404
    assert fake_stripe["created"] == []


def test_prepay_provider_error_is_bad_request(client, monkeypatch):
    def fail(**params):
        raise stripe.AuthenticationError("Invalid API Key provided")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fail)
    r = client.post("/payments/prepay", json={"planId": "SONG"})
    assert r.status_code == 400
    assert "Invalid API Key" in r.json()["detail"]


def test_confirm_with_email_then_record_track(client, db, confirmed_user, fake_stripe):
    tx_id = client.post("/payments/prepay", json={"planId": "SONG"}).json()["id"]

    r = client.post("/payments/confirm", json={"transactionId": tx_id, "token": "manolo@bar.es"})
    assert r.status_code == 200
    assert r.json() == {
        "status": "succeeded",
        "email": "manolo@bar.es",
        "message": "Operación confirmada y registrada en el historial",
    }
    db.expire_all()
    tx = db.get(StripeTransaction, tx_id)
    assert tx.email == "manolo@bar.es"
    # Données remplacées par l'état Stripe le plus récent
    assert tx.get_data()["status"] == "succeeded"

    r = client.post(
        "/music/add",
        json={"id": "spid1", "title": "Pájaros de Barro", "artist": "Manolo García", "email": "manolo@bar.es"},
    )
    assert r.status_code == 200
    song_price = db.get(SubscriptionPlan, "SONG").price
    track = db.query(Track).one()
    assert track.amount_paid == song_price


def test_confirm_with_creation_token(client, db, confirmed_user, fake_stripe):
    tx_id = client.post("/payments/prepay", json={"planId": "ANNUAL"}).json()["id"]
    r = client.post(
        "/payments/confirm",
        json={"transactionId": tx_id, "token": confirmed_user.creation_token.id},
    )
    assert r.status_code == 200
    assert r.json()["email"] == "manolo@bar.es"


def test_requires_capture_is_accepted(client, confirmed_user, fake_stripe):
    fake_stripe["status"] = "REQUIRES_CAPTURE"
    tx_id = client.post("/payments/prepay", json={"planId": "SONG"}).json()["id"]
    r = client.post("/payments/confirm", json={"transactionId": tx_id, "token": "manolo@bar.es"})
    assert r.status_code == 200


def test_incomplete_payment_is_rejected(client, db, confirmed_user, fake_stripe):
    fake_stripe["status"] = "requires_payment_method"
    tx_id = client.post("/payments/prepay", json={"planId": "SONG"}).json()["id"]
    r = client.post("/payments/confirm", json={"transactionId": tx_id, "token": "manolo@bar.es"})
    assert r.status_code == 400
    assert "requires_payment_method" in r.json()["detail"]
    db.expire_all()
    assert db.get(StripeTransaction, tx_id).email is None


def test_confirm_unresolvable_identity(client, fake_stripe):
    tx_id = client.post("/payments/prepay", json={"planId": "SONG"}).json()["id"]
    r = client.post("/payments/confirm", json={"transactionId": tx_id, "token": "unknown-token"})
    assert r.status_code == 400
    r = client.post("/payments/confirm", json={"transactionId": tx_id})
    assert r.status_code == 400


def test_confirm_email_of_missing_user(client, db, fake_stripe):
    tx_id = client.post("/payments/prepay", json={"planId": "SONG"}).json()["id"]
    r = client.post("/payments/confirm", json={"transactionId": tx_id, "token": "ghost@bar.es"})
    assert r.status_code == 404
    db.expire_all()
    assert db.get(StripeTransaction, tx_id).email is None


def test_confirm_unknown_or_missing_transaction(client):
    assert client.post("/payments/confirm", json={"token": "manolo@bar.es"}).status_code == 400
    r = client.post("/payments/confirm", json={"transactionId": "nope", "token": "manolo@bar.es"})
    assert r.status_code == 404


def test_confirm_without_payment_intent_id(client, db, confirmed_user, fake_stripe):
    tx = StripeTransaction(data="{}")
    db.add(tx)
    db.commit()
    r = client.post("/payments/confirm", json={"transactionId": tx.id, "token": "manolo@bar.es"})
    assert r.status_code == 400
    assert fake_stripe["retrieved"] == []


def test_double_confirmation_is_idempotent(client, db, confirmed_user, fake_stripe):
    tx_id = client.post("/payments/prepay", json={"planId": "SONG"}).json()["id"]
    first = client.post("/payments/confirm", json={"transactionId": tx_id, "token": "manolo@bar.es"})
    second = client.post("/payments/confirm", json={"transactionId": tx_id, "token": "manolo@bar.es"})
    assert first.status_code == second.status_code == 200
    assert second.json()["email"] == "manolo@bar.es"
    db.expire_all()
    assert db.get(StripeTransaction, tx_id).email == "manolo@bar.es"


def test_confirmed_transaction_cannot_change_owner(client, confirmed_user, fake_stripe):
    tx_id = client.post("/payments/prepay", json={"planId": "SONG"}).json()["id"]
    client.post("/payments/confirm", json={"transactionId": tx_id, "token": "manolo@bar.es"})
    r = client.post("/payments/confirm", json={"transactionId": tx_id, "token": "other@bar.es"})
    assert r.status_code == 409


def test_diag_reports_stripe_state(client, monkeypatch):
    monkeypatch.setattr(stripe.Account, "retrieve", lambda api_key=None: {"id": "acct_123"})
    assert client.get("/payments/diag").json() == {
        "stripeConfigured": True,
        "stripeOk": True,
        "accountId": "acct_123",
    }

    def fail(api_key=None):
        raise stripe.AuthenticationError("bad key")

    monkeypatch.setattr(stripe.Account, "retrieve", fail)
    out = client.get("/payments/diag").json()
    assert out["stripeOk"] is False
    assert out["error"] == "bad key"
