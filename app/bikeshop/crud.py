"""
Store operations shared by the entity modules.

Each module validates its own payloads and then delegates here, so that
listing order, not-found handling, store-failure translation and auditing
behave the same for bikes, buyers, feedback and contact messages.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from app.bikeshop.audit import record_event
from app.bikeshop.errors import NotFoundError, StoreError

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.bikeshop.models import User

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ListResult:
    """Records for a listing page, or an empty list plus an error when the store failed."""

    records: list[Any] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def list_records(s: "Session", model: type, *, label: str) -> ListResult:
    try:
        rows = s.query(model).order_by(model.created_at.desc(), model.id.desc()).all()
    except SQLAlchemyError as e:
        s.rollback()
        logger.error("Error fetching %s: %s", label, e)
        return ListResult(records=[], error=f"Failed to fetch {label}")
    return ListResult(records=rows)


def get_record(s: "Session", model: type[T], record_id: int) -> T:
    try:
        obj = s.get(model, record_id)
    except SQLAlchemyError as e:
        s.rollback()
        raise StoreError(str(e)) from e
    if obj is None:
        raise NotFoundError(model.__name__, record_id)
    return obj


def _flush(s: "Session") -> None:
    try:
        s.flush()
    except (SQLAlchemyError, OverflowError) as e:
        s.rollback()
        raise StoreError(str(e)) from e


def create_record(s: "Session", model: type[T], fields: dict[str, Any], user: "User | None", *, action: str) -> T:
    obj = model(**fields)
    s.add(obj)
    _flush(s)
    record_event(
        s,
        actor=user,
        action=action,
        entity=obj,
        metadata=fields,
    )
    return obj


def update_record(s: "Session", obj: T, fields: dict[str, Any], user: "User | None", *, action: str) -> T:
    changes = {}
    for key, new in fields.items():
        old = getattr(obj, key)
        if old != new:
            changes[key] = {"old": old, "new": new}
            setattr(obj, key, new)
    if hasattr(obj, "updated_at"):
        obj.updated_at = datetime.utcnow()
    _flush(s)
    record_event(
        s,
        actor=user,
        action=action,
        entity=obj,
        metadata={"changes": changes},
    )
    return obj


def delete_record(s: "Session", obj: Any, user: "User | None", *, action: str) -> None:
    entity_id = str(obj.id)
    s.delete(obj)
    _flush(s)
    record_event(s, actor=user, action=action, entity=type(obj), entity_id=entity_id)
