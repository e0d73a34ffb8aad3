"""Tests for the bike inventory module."""
import pytest
from werkzeug.security import generate_password_hash

from app.bikeshop import create_app
from app.bikeshop.db import session_scope
from app.bikeshop.crud import create_record
from app.bikeshop.errors import NotFoundError, StoreError, ValidationError
from app.bikeshop.models import AuditEvent, Base, User
from app.bikeshop.modules.inventory.models import Bike
from app.bikeshop.modules.inventory.service import create_bike, list_bikes, update_bike, validate_bike_payload


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


def _add(client, **fields):
    data = {"model": "Model X", "brand": "Acme", "price": "1000", "quantity": "5"}
    data.update(fields)
    data["csrf_token"] = _csrf(client)
    return client.post("/bikes/add", data=data)


def _bikes(app):
    with session_scope(app) as s:
        return s.query(Bike).order_by(Bike.id).all()


# ---------- Gate ----------
def test_bikes_require_session(app):
    anon = app.test_client()
    assert anon.get("/bikes").headers["Location"].endswith("/login")

    r = anon.post("/bikes/add", data={"model": "Model X", "brand": "Acme", "price": "1"})
    assert r.status_code == 302
    assert r.headers["Location"].endswith("/login")
    assert _bikes(app) == []


def test_post_without_csrf_token_rejected(app, client):
    r = client.post("/bikes/add", data={"model": "Model X", "brand": "Acme", "price": "1000"})
    assert r.status_code == 400
    assert _bikes(app) == []


# ---------- Create / list ----------
def test_create_bike_listed_newest_first(app, client):
    r = _add(client, model="Old Timer", brand="Vintage", price="250", quantity="1")
    assert r.status_code == 302
    r = _add(client)
    assert r.status_code == 302
    assert "success=Bike%20added%20successfully" in r.headers["Location"]

    r = client.get("/bikes")
    assert r.status_code == 200
    assert r.data.index(b"Model X") < r.data.index(b"Old Timer")

    with app.app_context():
        with session_scope(app) as s:
            result = list_bikes(s)
            assert result.ok
            assert [b.model for b in result.records] == ["Model X", "Old Timer"]
            bike = result.records[0]
            assert (bike.brand, bike.price, bike.quantity) == ("Acme", 1000.0, 5)
            assert s.query(AuditEvent).filter(AuditEvent.action == "bike.create").count() == 2


def test_create_bike_from_json(app, client):
    r = client.post(
        "/bikes/add",
        json={"model": "Trail 9", "brand": "Acme", "price": 1499.5, "quantity": 2, "csrf_token": _csrf(client)},
    )
    assert r.status_code == 302
    assert [b.model for b in _bikes(app)] == ["Trail 9"]


def test_blank_quantity_defaults_to_zero(app, client):
    _add(client, quantity="")
    assert _bikes(app)[0].quantity == 0


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"price": "-1"}, "Price cannot be negative."),
        ({"quantity": "-3"}, "Quantity cannot be negative."),
        ({"model": "X"}, "Model name must be at least 2 characters."),
        ({"brand": "  "}, "Brand name is required."),
        ({"price": "cheap"}, "Price must be a number."),
        ({"quantity": "2.5"}, "Quantity must be a whole number."),
        ({"quantity": "99999999999999999999"}, "Quantity cannot exceed 1,000,000."),
        ({"price": "1e12"}, "Price cannot exceed 10,000,000."),
    ],
)
def test_invalid_bike_rejected(app, client, fields, message):
    r = _add(client, **fields)
    assert r.status_code == 400
    assert message in r.json["errors"]
    assert r.json["error"] == r.json["errors"][0]
    assert _bikes(app) == []


def test_zero_price_allowed():
    assert validate_bike_payload({"model": "Kids 12", "brand": "Acme", "price": "0"}) == []


def test_whole_number_json_quantity_accepted(app, client):
    r = client.post(
        "/bikes/add",
        json={"model": "Trail 9", "brand": "Acme", "price": 900, "quantity": 5.0, "csrf_token": _csrf(client)},
    )
    assert r.status_code == 302
    assert _bikes(app)[0].quantity == 5

    errors = validate_bike_payload({"model": "Trail 9", "brand": "Acme", "price": 900, "quantity": 5.5})
    assert errors == ["Quantity must be a whole number."]


def test_oversized_integer_becomes_store_error(app):
    with app.app_context():
        with pytest.raises(StoreError):
            with session_scope(app) as s:
                fields = {"model": "Model X", "brand": "Acme", "price": 1.0, "quantity": 10**20}
                create_record(s, Bike, fields, None, action="bike.create")
    assert _bikes(app) == []


def test_unhandled_error_renders_500_page(app, client, monkeypatch):
    def broken_create(s, payload, user):
        s.add(Bike(model=None, brand="Acme", price=1.0))
        s.flush()

    monkeypatch.setattr("app.bikeshop.modules.inventory.admin.create_bike", broken_create)
    r = _add(client)
    assert r.status_code == 500
    assert b"Something went wrong" in r.data
    assert b"Rider" in r.data
    assert _bikes(app) == []


def test_create_bike_service_validates_before_store(app):
    with app.app_context():
        with session_scope(app) as s:
            with pytest.raises(ValidationError):
                create_bike(s, {"model": "Model X", "brand": "Acme", "price": "-5"}, None)
    assert _bikes(app) == []


def test_list_degrades_when_store_fails(app, client):
    Bike.__table__.drop(app.extensions["sqlalchemy_engine"])
    r = client.get("/bikes")
    assert r.status_code == 200
    assert b"Failed to fetch bikes" in r.data


# ---------- Update ----------
def test_update_bike(app, client):
    _add(client)
    bike_id = _bikes(app)[0].id

    r = client.post(
        f"/bikes/update/{bike_id}",
        data={"model": "Model X2", "brand": "Acme", "price": "1100", "quantity": "4", "csrf_token": _csrf(client)},
    )
    assert r.status_code == 302
    assert "success=Bike%20updated%20successfully" in r.headers["Location"]

    bike = _bikes(app)[0]
    assert (bike.model, bike.price, bike.quantity) == ("Model X2", 1100.0, 4)


def test_update_missing_bike_leaves_records_alone(app, client):
    _add(client)
    before = [(b.id, b.model, b.price, b.quantity) for b in _bikes(app)]

    r = client.post(
        "/bikes/update/9999",
        data={"model": "Ghost", "brand": "Acme", "price": "1", "csrf_token": _csrf(client)},
    )
    assert r.status_code == 302
    assert "error=Bike%20not%20found" in r.headers["Location"]
    assert [(b.id, b.model, b.price, b.quantity) for b in _bikes(app)] == before

    with app.app_context():
        with session_scope(app) as s:
            with pytest.raises(NotFoundError):
                update_bike(s, 9999, {"model": "Ghost", "brand": "Acme", "price": "1"}, None)


def test_update_revalidates(app, client):
    _add(client)
    bike_id = _bikes(app)[0].id
    r = client.post(
        f"/bikes/update/{bike_id}",
        data={"model": "Model X", "brand": "Acme", "price": "1000", "quantity": "-1", "csrf_token": _csrf(client)},
    )
    assert r.status_code == 400
    assert _bikes(app)[0].quantity == 5


# ---------- Delete ----------
def test_delete_bike(app, client):
    _add(client)
    bike_id = _bikes(app)[0].id

    r = client.post(f"/bikes/delete/{bike_id}", data={"csrf_token": _csrf(client)})
    assert "success=Bike%20deleted%20successfully" in r.headers["Location"]
    assert _bikes(app) == []

    r = client.post(f"/bikes/delete/{bike_id}", data={"csrf_token": _csrf(client)})
    assert "error=Bike%20not%20found" in r.headers["Location"]
