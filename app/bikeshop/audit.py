"""
Audit trail for the shop's records and for sign-in activity.

Every change to a bike, buyer lead, feedback entry or contact message, and
every signup, login and logout, appends one AuditEvent row in the same
transaction as the change it describes.
"""
import json
from typing import Any

from flask import g, has_request_context, request
from sqlalchemy.orm import Session

from app.bikeshop.models import AuditEvent, User

# Model class name -> entity_type stored on the event.
ENTITY_TYPES = {
    "User": "user",
    "Bike": "bike",
    "Buyer": "buyer",
    "Feedback": "feedback",
    "Contact": "contact",
}

# entity_type -> actions that may be recorded against it.
ACTIONS = {
    "user": frozenset({"auth.signup", "auth.login", "auth.login_failed", "auth.logout"}),
    "bike": frozenset({"bike.create", "bike.edit", "bike.delete"}),
    "buyer": frozenset({"buyer.create", "buyer.edit", "buyer.delete"}),
    "feedback": frozenset({"feedback.create", "feedback.edit", "feedback.delete"}),
    "contact": frozenset({"contact.create", "contact.edit", "contact.delete"}),
}

# Submitted form fields that never reach metadata_json.
_SECRET_KEYS = frozenset({"password", "confirmPassword", "password_hash", "csrf_token"})


def entity_type_of(entity: Any) -> str:
    """Audit name for a model instance or class, e.g. Bike -> "bike"."""
    cls = entity if isinstance(entity, type) else type(entity)
    try:
        return ENTITY_TYPES[cls.__name__]
    except KeyError:
        raise ValueError(f"{cls.__name__} is not an audited entity") from None


def _scrub(metadata: dict[str, Any] | None) -> dict[str, Any] | None:
    if not metadata:
        return None
    return {k: v for k, v in metadata.items() if k not in _SECRET_KEYS}


def record_event(
    s: Session,
    *,
    actor: User | None,
    action: str,
    entity: Any,
    entity_id: str | None = None,
    reason: str | None = None,
    metadata: dict[str, Any] | None = None,
    request_id: str | None = None,
) -> AuditEvent:
    """
    Append an audit event for `entity` (a model instance, or its class when
    there is no row, as for a failed login).

    entity_id defaults to the instance's primary key. Raises ValueError for an
    action the entity type does not record.
    """
    entity_type = entity_type_of(entity)
    if action not in ACTIONS[entity_type]:
        raise ValueError(f"Unknown {entity_type} audit action {action!r}")
    if entity_id is None and not isinstance(entity, type):
        entity_id = str(entity.id)

    in_request = has_request_context()
    payload = _scrub(metadata)
    ev = AuditEvent(
        request_id=request_id or (getattr(g, "request_id", None) if in_request else None),
        actor_user_id=actor.id if actor else None,
        actor_user_email=actor.email if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        reason=reason,
        metadata_json=json.dumps(payload, sort_keys=True, default=str) if payload else None,
        client_ip=request.remote_addr if in_request else None,
    )
    s.add(ev)
    return ev
