from __future__ import annotations

from urllib.parse import quote

from flask import Blueprint, current_app, g, jsonify, redirect, render_template, request, url_for

from app.bikeshop.db import commit, db_session
from app.bikeshop.errors import NotFoundError, StoreError, ValidationError
from app.bikeshop.gate import require_session
from app.bikeshop.modules.inventory.service import create_bike, delete_bike, list_bikes, update_bike
from app.bikeshop.utils import request_payload

bp = Blueprint("inventory", __name__)


def _back_to_list(*, success: str | None = None, error: str | None = None):
    url = url_for("inventory.bikes_list")
    if success:
        return redirect(f"{url}?success={quote(success)}")
    return redirect(f"{url}?error={quote(error or '')}")


def _validation_failed(e: ValidationError):
    return jsonify({"error": e.errors[0], "errors": e.errors}), 400


# ---------- List ----------
@bp.get("/bikes")
@require_session
def bikes_list():
    result = list_bikes(db_session())
    return render_template(
        "inventory/bikes.html",
        title="Bike Inventory",
        bikes=result.records,
        success=request.args.get("success"),
        error=result.error or request.args.get("error"),
    )


# ---------- Add ----------
@bp.post("/bikes/add")
@require_session
def bikes_add():
    s = db_session()
    try:
        create_bike(s, request_payload(), g.current_user)
        commit(s)
    except ValidationError as e:
        return _validation_failed(e)
    except StoreError:
        current_app.logger.exception("Error adding bike (request_id=%s)", g.request_id)
        return _back_to_list(error="Could not save bike")
    return _back_to_list(success="Bike added successfully")


# ---------- Update ----------
@bp.post("/bikes/update/<int:bike_id>")
@require_session
def bikes_update(bike_id: int):
    s = db_session()
    try:
        update_bike(s, bike_id, request_payload(), g.current_user)
        commit(s)
    except NotFoundError:
        return _back_to_list(error="Bike not found")
    except ValidationError as e:
        return _validation_failed(e)
    except StoreError:
        current_app.logger.exception("Error updating bike %s (request_id=%s)", bike_id, g.request_id)
        return _back_to_list(error="Could not update bike")
    return _back_to_list(success="Bike updated successfully")


# ---------- Delete ----------
@bp.post("/bikes/delete/<int:bike_id>")
@require_session
def bikes_delete(bike_id: int):
    s = db_session()
    try:
        delete_bike(s, bike_id, g.current_user)
        commit(s)
    except NotFoundError:
        return _back_to_list(error="Bike not found")
    except StoreError:
        current_app.logger.exception("Error deleting bike %s (request_id=%s)", bike_id, g.request_id)
        return _back_to_list(error="Could not delete bike")
    return _back_to_list(success="Bike deleted successfully")
