from decimal import Decimal

from gramola.models.payment import SubscriptionPlan
from gramola.models.track import Track


def _add(client, **body):
    return client.post("/music/add", json=body)


def test_add_records_song_price(client, db):
    r = _add(client, id="3n3Ppam7vgaVa1iaRUc9Lp", title="Mr. Brightside", artist="The Killers", email="manolo@bar.es")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

    t = db.query(Track).one()
    assert t.spotify_id == "3n3Ppam7vgaVa1iaRUc9Lp"
    assert t.user_email == "manolo@bar.es"
    assert t.amount_paid == Decimal("1.00")
    assert t.requested_at is not None


def test_price_comes_from_plan_table(client, db):
    db.get(SubscriptionPlan, "SONG").price = Decimal("0.50")
    db.commit()
    _add(client, id="spid", title="t", artist="a", email="manolo@bar.es")
    assert db.query(Track).one().amount_paid == Decimal("0.50")


def test_same_song_twice_makes_two_rows(client, db):
    for _ in range(2):
        assert _add(client, id="spid", title="t", artist="a", email="manolo@bar.es").status_code == 200
    rows = db.query(Track).all()
    assert len(rows) == 2
    assert rows[0].internal_id != rows[1].internal_id


def test_defaults_for_missing_metadata(client, db):
    assert _add(client, id="spid").status_code == 200
    t = db.query(Track).one()
    assert (t.title, t.artist, t.user_email) == ("Desconocido", "Desconocido", "anonimo")


def test_missing_spotify_id(client, db):
    r = _add(client, title="t", artist="a")
    assert r.status_code == 400
    assert db.query(Track).count() == 0


def test_missing_song_plan_is_server_error(client, db):
    db.delete(db.get(SubscriptionPlan, "SONG"))
    db.commit()
    r = _add(client, id="spid", title="t", artist="a", email="manolo@bar.es")
    assert r.status_code == 500
    assert db.query(Track).count() == 0


def test_history_is_filtered_and_newest_first(client):
    _add(client, id="a", title="first", artist="x", email="manolo@bar.es")
    _add(client, id="b", title="other bar", artist="x", email="pepe@bar.es")
    _add(client, id="c", title="second", artist="x", email="manolo@bar.es")

    r = client.get("/music/history", params={"email": "manolo@bar.es"})
    assert r.status_code == 200
    items = r.json()
    assert [i["title"] for i in items] == ["second", "first"]
    assert items[0]["amountPaid"] == 1.0

    assert len(client.get("/music/history").json()) == 3
    assert len(client.get("/music/history", params={"limit": 1}).json()) == 1
    assert client.get("/music/history", params={"limit": 0}).status_code == 422


def test_empty_metadata_is_kept_as_sent(client, db):
    assert _add(client, id="spid", title="", artist="", email="").status_code == 200
    t = db.query(Track).one()
    assert (t.title, t.artist, t.user_email) == ("", "", "")
