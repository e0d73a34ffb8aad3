from __future__ import annotations

from urllib.parse import quote

from flask import Blueprint, current_app, g, jsonify, redirect, render_template, request, url_for

from app.bikeshop.db import commit, db_session
from app.bikeshop.errors import NotFoundError, StoreError, ValidationError
from app.bikeshop.gate import require_session
from app.bikeshop.modules.leads.service import create_buyer, delete_buyer, list_buyers, update_buyer
from app.bikeshop.utils import request_payload

bp = Blueprint("leads", __name__)


def _back_to_list(*, success: str | None = None, error: str | None = None):
    url = url_for("leads.buyers_list")
    if success:
        return redirect(f"{url}?success={quote(success)}")
    return redirect(f"{url}?error={quote(error or '')}")


@bp.post("/submit-form")
@require_session
def submit_form():
    s = db_session()
    try:
        create_buyer(s, request_payload(), g.current_user)
        commit(s)
    except ValidationError as e:
        return jsonify({"error": e.errors[0], "errors": e.errors}), 400
    except StoreError as e:
        current_app.logger.error("Error saving buyer lead (request_id=%s): %s", g.request_id, e)
        return "Error saving your data", 500
    return "Your interest has been submitted!"


@bp.get("/buyers")
@require_session
def buyers_list():
    result = list_buyers(db_session())
    return render_template(
        "leads/buyers.html",
        title="Interested Buyers",
        buyers=result.records,
        success=request.args.get("success"),
        error=result.error or request.args.get("error"),
    )


@bp.post("/buyers/update/<int:buyer_id>")
@require_session
def buyers_update(buyer_id: int):
    s = db_session()
    try:
        update_buyer(s, buyer_id, request_payload(), g.current_user)
        commit(s)
    except NotFoundError:
        return _back_to_list(error="Buyer not found")
    except ValidationError as e:
        return jsonify({"error": e.errors[0], "errors": e.errors}), 400
    except StoreError:
        current_app.logger.exception("Error updating buyer %s (request_id=%s)", buyer_id, g.request_id)
        return _back_to_list(error="Could not update buyer")
    return _back_to_list(success="Buyer updated successfully")


@bp.post("/buyers/delete/<int:buyer_id>")
@require_session
def buyers_delete(buyer_id: int):
    s = db_session()
    try:
        delete_buyer(s, buyer_id, g.current_user)
        commit(s)
    except NotFoundError:
        return _back_to_list(error="Buyer not found")
    except StoreError:
        current_app.logger.exception("Error deleting buyer %s (request_id=%s)", buyer_id, g.request_id)
        return _back_to_list(error="Could not delete buyer")
    return _back_to_list(success="Buyer deleted successfully")
