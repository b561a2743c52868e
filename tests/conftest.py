import os

# Base SQLite en mémoire, avant tout import de gramola
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("ENCRYPTION_KEY", None)
os.environ.pop("SECRET_KEY", None)

import pytest
from fastapi.testclient import TestClient

from gramola.main import app
from gramola.routes import payments as payments_routes
from gramola.controllers.payment_controller import PaymentController, StripeConfig
from gramola.controllers.user_controller import UserController
from gramola.utils.database import SessionLocal, create_all, drop_all


@pytest.fixture(autouse=True)
def schema():
    create_all()
    yield
    drop_all()


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Remplace l'envoi SMTP et mémorise les messages."""
    outbox = []

    def fake_send_email(to_email, subject, text_body, html_body=None):
        outbox.append({"to": to_email, "subject": subject, "body": text_body, "html": html_body})
        return True

    monkeypatch.setattr("gramola.utils.mailer.send_email", fake_send_email)
    return outbox


@pytest.fixture(autouse=True)
def geocode(monkeypatch):
    """Géocodage désactivé par défaut; les tests peuvent fixer le résultat."""
    state = {"result": None, "calls": []}

    def fake_get_coordinates(address):
        state["calls"].append(address)
        return state["result"]

    monkeypatch.setattr(
        "gramola.services.geocoding_service.get_coordinates", fake_get_coordinates
    )
    return state


@pytest.fixture
def payment_ctrl(db):
    ctrl = PaymentController(StripeConfig(secret_key="sk_test_dummy"))
    ctrl.seed_plans(db)
    return ctrl


@pytest.fixture
def client(payment_ctrl):
    app.dependency_overrides[payments_routes.get_payment_controller] = lambda: payment_ctrl
    c = TestClient(app)
    yield c
    app.dependency_overrides.clear()


REGISTER_BODY = {
    "bar": "Bar Manolo",
    "email": "manolo@bar.es",
    "pwd1": "supersecret",
    "pwd2": "supersecret",
    "clientId": "spotify-client",
    "clientSecret": "spotify-secret",
    "address": "Calle Falsa 123, Madrid",
    "signature": "data:image/png;base64,iVBORw0KGgo=",
}


@pytest.fixture
def register_body():
    return dict(REGISTER_BODY)


@pytest.fixture
def confirmed_user(db):
    """Bar inscrit et email confirmé."""
    ctrl = UserController()
    b = REGISTER_BODY
    u = ctrl.register(
        db, b["bar"], b["email"], b["pwd1"], b["clientId"], b["clientSecret"], b["address"], b["signature"]
    )
    ctrl.confirm_token(db, u.email, u.creation_token.id)
    return u
