"""Tests for buyer lead capture."""
import pytest
from werkzeug.security import generate_password_hash

from app.bikeshop import create_app
from app.bikeshop.db import session_scope
from app.bikeshop.errors import NotFoundError
from app.bikeshop.models import Base, User
from app.bikeshop.modules.leads.models import Buyer
from app.bikeshop.modules.leads.service import delete_buyer


@pytest.fixture()
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.delenv("SESSION_BACKEND", raising=False)

    app = create_app()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])

    with session_scope(app) as s:
        s.add(User(name="Rider", email="rider@example.com", password_hash=generate_password_hash("pedal-power")))
    return app


@pytest.fixture()
def client(app):
    c = app.test_client()
    c.post("/login", data={"email": "rider@example.com", "password": "pedal-power"})
    return c


def _csrf(client):
    with client.session_transaction() as sess:
        return sess["csrf_token"]


def _lead(**overrides):
    data = {"name": "Jo Buyer", "email": "Jo@Example.com", "phone": "555-0101", "interestedBike": "Model X"}
    data.update(overrides)
    return data


def _buyers(app):
    with session_scope(app) as s:
        return s.query(Buyer).order_by(Buyer.id).all()


def test_submit_form_requires_session(app):
    r = app.test_client().post("/submit-form", data=_lead())
    assert r.headers["Location"].endswith("/login")
    assert _buyers(app) == []


def test_submit_form_saves_lead(app, client):
    r = client.post("/submit-form", data={**_lead(), "csrf_token": _csrf(client)})
    assert r.status_code == 200
    assert r.data == b"Your interest has been submitted!"

    (buyer,) = _buyers(app)
    assert (buyer.name, buyer.email, buyer.interested_bike) == ("Jo Buyer", "jo@example.com", "Model X")

    r = client.get("/buyers")
    assert r.status_code == 200
    assert b"Jo Buyer" in r.data


def test_submit_form_missing_phone(app, client):
    r = client.post("/submit-form", data={**_lead(phone=""), "csrf_token": _csrf(client)})
    assert r.status_code == 400
    assert r.json["errors"] == ["Phone is required."]
    assert _buyers(app) == []


def test_submit_form_store_failure_is_500(app, client):
    Buyer.__table__.drop(app.extensions["sqlalchemy_engine"])
    r = client.post("/submit-form", data={**_lead(), "csrf_token": _csrf(client)})
    assert r.status_code == 500
    assert r.data == b"Error saving your data"


def test_update_and_delete_buyer(app, client):
    client.post("/submit-form", data={**_lead(), "csrf_token": _csrf(client)})
    buyer_id = _buyers(app)[0].id

    r = client.post(f"/buyers/update/{buyer_id}", data={**_lead(phone="555-0199"), "csrf_token": _csrf(client)})
    assert "success=Buyer%20updated%20successfully" in r.headers["Location"]
    assert _buyers(app)[0].phone == "555-0199"

    r = client.post(f"/buyers/delete/{buyer_id}", data={"csrf_token": _csrf(client)})
    assert "success=Buyer%20deleted%20successfully" in r.headers["Location"]
    assert _buyers(app) == []

    r = client.post(f"/buyers/update/{buyer_id}", data={**_lead(), "csrf_token": _csrf(client)})
    assert "error=Buyer%20not%20found" in r.headers["Location"]


def test_delete_missing_buyer_raises(app):
    with app.app_context():
        with session_scope(app) as s:
            with pytest.raises(NotFoundError):
                delete_buyer(s, 42, None)
