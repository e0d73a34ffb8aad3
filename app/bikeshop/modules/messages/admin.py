from __future__ import annotations

from urllib.parse import quote

from flask import Blueprint, current_app, g, jsonify, redirect, render_template, request, url_for

from app.bikeshop.db import commit, db_session
from app.bikeshop.errors import NotFoundError, StoreError, ValidationError
from app.bikeshop.gate import require_session
from app.bikeshop.modules.messages.service import (
    create_contact,
    create_feedback,
    delete_contact,
    delete_feedback,
    list_contacts,
    list_feedback,
)
from app.bikeshop.utils import request_payload

bp = Blueprint("messages", __name__)


def _back_to_list(*, success: str | None = None, error: str | None = None):
    url = url_for("messages.messages_list")
    if success:
        return redirect(f"{url}?success={quote(success)}")
    return redirect(f"{url}?error={quote(error or '')}")


# ---------- Submissions ----------
@bp.post("/submit-feedback")
@require_session
def submit_feedback():
    s = db_session()
    try:
        create_feedback(s, request_payload(), g.current_user)
        commit(s)
    except ValidationError as e:
        return jsonify({"error": e.errors[0], "errors": e.errors}), 400
    except StoreError as e:
        current_app.logger.error("Error saving feedback (request_id=%s): %s", g.request_id, e)
        return "Error saving feedback", 500
    return "Feedback received!"


@bp.post("/contact-us")
@bp.post("/submit-contact")
@require_session
def submit_contact():
    s = db_session()
    try:
        create_contact(s, request_payload(), g.current_user)
        commit(s)
    except ValidationError as e:
        return jsonify({"error": e.errors[0], "errors": e.errors}), 400
    except StoreError as e:
        current_app.logger.error("Error saving contact message (request_id=%s): %s", g.request_id, e)
        return "Error saving contact message", 500
    return "Message received!"


# ---------- Inbox ----------
@bp.get("/messages")
@require_session
def messages_list():
    s = db_session()
    feedback = list_feedback(s)
    contacts = list_contacts(s)
    return render_template(
        "messages/list.html",
        title="Messages",
        feedback=feedback.records,
        contacts=contacts.records,
        success=request.args.get("success"),
        error=feedback.error or contacts.error or request.args.get("error"),
    )


@bp.post("/messages/feedback/delete/<int:feedback_id>")
@require_session
def feedback_delete(feedback_id: int):
    s = db_session()
    try:
        delete_feedback(s, feedback_id, g.current_user)
        commit(s)
    except NotFoundError:
        return _back_to_list(error="Feedback not found")
    except StoreError:
        current_app.logger.exception("Error deleting feedback %s (request_id=%s)", feedback_id, g.request_id)
        return _back_to_list(error="Could not delete feedback")
    return _back_to_list(success="Feedback deleted")


@bp.post("/messages/contact/delete/<int:contact_id>")
@require_session
def contact_delete(contact_id: int):
    s = db_session()
    try:
        delete_contact(s, contact_id, g.current_user)
        commit(s)
    except NotFoundError:
        return _back_to_list(error="Message not found")
    except StoreError:
        current_app.logger.exception("Error deleting contact message %s (request_id=%s)", contact_id, g.request_id)
        return _back_to_list(error="Could not delete message")
    return _back_to_list(success="Message deleted")
