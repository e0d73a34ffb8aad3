from __future__ import annotations

from typing import TYPE_CHECKING

from app.bikeshop.crud import ListResult, create_record, delete_record, get_record, list_records, update_record
from app.bikeshop.errors import ValidationError
from app.bikeshop.utils import extra_fields, missing_fields, text_value

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.bikeshop.models import User
    from app.bikeshop.modules.messages.models import Contact, Feedback


FEEDBACK_FIELDS = frozenset({"name", "email", "message", "rating"})
CONTACT_FIELDS = frozenset({"name", "email", "subject", "message"})


# ---------- Feedback ----------
def validate_feedback_payload(payload: dict) -> list[str]:
    errors = missing_fields(payload, {"message": "Message"})
    rating = text_value(payload.get("rating"))
    if rating:
        try:
            value = int(rating)
        except ValueError:
            value = 0
        if not 1 <= value <= 5:
            errors.append("Rating must be a whole number from 1 to 5.")
    return errors


def _feedback_fields(payload: dict) -> dict:
    errors = validate_feedback_payload(payload)
    if errors:
        raise ValidationError(errors)
    rating = text_value(payload.get("rating"))
    return {
        "name": text_value(payload.get("name")) or None,
        "email": text_value(payload.get("email")).lower() or None,
        "message": text_value(payload.get("message")),
        "rating": int(rating) if rating else None,
        "extra": extra_fields(payload, FEEDBACK_FIELDS),
    }


def list_feedback(s: "Session") -> ListResult:
    from app.bikeshop.modules.messages.models import Feedback

    return list_records(s, Feedback, label="feedback")


def create_feedback(s: "Session", payload: dict, user: "User | None") -> "Feedback":
    from app.bikeshop.modules.messages.models import Feedback

    return create_record(s, Feedback, _feedback_fields(payload), user, action="feedback.create")


def update_feedback(s: "Session", feedback_id: int, payload: dict, user: "User | None") -> "Feedback":
    from app.bikeshop.modules.messages.models import Feedback

    entry = get_record(s, Feedback, feedback_id)
    return update_record(s, entry, _feedback_fields(payload), user, action="feedback.edit")


def delete_feedback(s: "Session", feedback_id: int, user: "User | None") -> None:
    from app.bikeshop.modules.messages.models import Feedback

    delete_record(s, get_record(s, Feedback, feedback_id), user, action="feedback.delete")


# ---------- Contact ----------
def validate_contact_payload(payload: dict) -> list[str]:
    return missing_fields(payload, {"name": "Name", "email": "Email", "message": "Message"})


def _contact_fields(payload: dict) -> dict:
    errors = validate_contact_payload(payload)
    if errors:
        raise ValidationError(errors)
    return {
        "name": text_value(payload.get("name")),
        "email": text_value(payload.get("email")).lower(),
        "subject": text_value(payload.get("subject")) or None,
        "message": text_value(payload.get("message")),
        "extra": extra_fields(payload, CONTACT_FIELDS),
    }


def list_contacts(s: "Session") -> ListResult:
    from app.bikeshop.modules.messages.models import Contact

    return list_records(s, Contact, label="contact messages")


def create_contact(s: "Session", payload: dict, user: "User | None") -> "Contact":
    from app.bikeshop.modules.messages.models import Contact

    return create_record(s, Contact, _contact_fields(payload), user, action="contact.create")


def update_contact(s: "Session", contact_id: int, payload: dict, user: "User | None") -> "Contact":
    from app.bikeshop.modules.messages.models import Contact

    entry = get_record(s, Contact, contact_id)
    return update_record(s, entry, _contact_fields(payload), user, action="contact.edit")


def delete_contact(s: "Session", contact_id: int, user: "User | None") -> None:
    from app.bikeshop.modules.messages.models import Contact

    delete_record(s, get_record(s, Contact, contact_id), user, action="contact.delete")
