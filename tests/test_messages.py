"""Tests for feedback and contact-us submissions."""
import pytest
from werkzeug.security import generate_password_hash

from app.bikeshop import create_app
from app.bikeshop.db import session_scope
from app.bikeshop.errors import NotFoundError, ValidationError
from app.bikeshop.models import Base, User
from app.bikeshop.modules.messages.models import Contact, Feedback
from app.bikeshop.modules.messages.service import create_feedback, update_contact, update_feedback


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


def _all(app, model):
    with session_scope(app) as s:
        return s.query(model).order_by(model.id).all()


def test_submit_feedback_keeps_extra_fields(app, client):
    r = client.post(
        "/submit-feedback",
        data={"name": "Rider", "message": "Great shop", "rating": "5", "visit": "weekend", "csrf_token": _csrf(client)},
    )
    assert r.status_code == 200
    assert r.data == b"Feedback received!"

    (entry,) = _all(app, Feedback)
    assert entry.message == "Great shop"
    assert entry.rating == 5
    assert entry.extra == {"visit": "weekend"}


def test_submit_feedback_json_keeps_extra_value_types(app, client):
    r = client.post(
        "/submit-feedback",
        json={"message": "hi", "tags": ["a", "b"], "visits": 3, "note": "  padded  ", "csrf_token": _csrf(client)},
    )
    assert r.status_code == 200

    (entry,) = _all(app, Feedback)
    assert entry.extra == {"tags": ["a", "b"], "visits": 3, "note": "padded"}


@pytest.mark.parametrize("fields", [{"message": ""}, {"message": "ok", "rating": "7"}, {"message": "ok", "rating": "five"}])
def test_submit_feedback_invalid(app, client, fields):
    r = client.post("/submit-feedback", data={**fields, "csrf_token": _csrf(client)})
    assert r.status_code == 400
    assert _all(app, Feedback) == []


def test_submit_feedback_store_failure_is_500(app, client):
    Feedback.__table__.drop(app.extensions["sqlalchemy_engine"])
    r = client.post("/submit-feedback", data={"message": "hello", "csrf_token": _csrf(client)})
    assert r.status_code == 500
    assert r.data == b"Error saving feedback"


@pytest.mark.parametrize("path", ["/contact-us", "/submit-contact"])
def test_submit_contact(app, client, path):
    r = client.post(
        path,
        data={"name": "Sam", "email": "sam@example.com", "subject": "Hours", "message": "Open Sunday?", "csrf_token": _csrf(client)},
    )
    assert r.status_code == 200
    assert r.data == b"Message received!"

    (entry,) = _all(app, Contact)
    assert (entry.name, entry.subject, entry.extra) == ("Sam", "Hours", None)


def test_submit_contact_requires_email(app, client):
    r = client.post("/contact-us", data={"name": "Sam", "message": "hi", "csrf_token": _csrf(client)})
    assert r.status_code == 400
    assert r.json["errors"] == ["Email is required."]


def test_messages_inbox_lists_and_deletes(app, client):
    client.post("/submit-feedback", data={"message": "Love the new stock", "csrf_token": _csrf(client)})
    client.post("/contact-us", data={"name": "Sam", "email": "sam@example.com", "message": "Call me", "csrf_token": _csrf(client)})

    r = client.get("/messages")
    assert r.status_code == 200
    assert b"Love the new stock" in r.data
    assert b"Call me" in r.data

    feedback_id = _all(app, Feedback)[0].id
    contact_id = _all(app, Contact)[0].id
    r = client.post(f"/messages/feedback/delete/{feedback_id}", data={"csrf_token": _csrf(client)})
    assert "success=Feedback%20deleted" in r.headers["Location"]
    r = client.post(f"/messages/contact/delete/{contact_id}", data={"csrf_token": _csrf(client)})
    assert "success=Message%20deleted" in r.headers["Location"]
    assert _all(app, Feedback) == [] and _all(app, Contact) == []

    r = client.post(f"/messages/contact/delete/{contact_id}", data={"csrf_token": _csrf(client)})
    assert "error=Message%20not%20found" in r.headers["Location"]


def test_update_services(app):
    with app.app_context():
        with session_scope(app) as s:
            entry = create_feedback(s, {"message": "first draft"}, None)
            updated = update_feedback(s, entry.id, {"message": "final", "rating": "4"}, None)
            assert (updated.message, updated.rating) == ("final", 4)

            with pytest.raises(ValidationError):
                update_feedback(s, entry.id, {"message": ""}, None)
            with pytest.raises(NotFoundError):
                update_contact(s, 123, {"name": "a", "email": "a@b.c", "message": "m"}, None)
