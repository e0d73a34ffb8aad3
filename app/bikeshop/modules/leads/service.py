from __future__ import annotations

from typing import TYPE_CHECKING

from app.bikeshop.crud import ListResult, create_record, delete_record, get_record, list_records, update_record
from app.bikeshop.errors import ValidationError
from app.bikeshop.utils import missing_fields, text_value

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.bikeshop.models import User
    from app.bikeshop.modules.leads.models import Buyer


# Form field name -> label. The form posts camelCase "interestedBike".
REQUIRED_FIELDS = {
    "name": "Name",
    "email": "Email",
    "phone": "Phone",
    "interestedBike": "Interested bike",
}


def validate_buyer_payload(payload: dict) -> list[str]:
    errors = missing_fields(payload, REQUIRED_FIELDS)
    email = text_value(payload.get("email"))
    if email and "@" not in email:
        errors.append("Email address is invalid.")
    return errors


def _buyer_fields(payload: dict) -> dict:
    errors = validate_buyer_payload(payload)
    if errors:
        raise ValidationError(errors)
    return {
        "name": text_value(payload.get("name")),
        "email": text_value(payload.get("email")).lower(),
        "phone": text_value(payload.get("phone")),
        "interested_bike": text_value(payload.get("interestedBike")),
    }


def list_buyers(s: "Session") -> ListResult:
    from app.bikeshop.modules.leads.models import Buyer

    return list_records(s, Buyer, label="buyers")


def create_buyer(s: "Session", payload: dict, user: "User | None") -> "Buyer":
    from app.bikeshop.modules.leads.models import Buyer

    return create_record(s, Buyer, _buyer_fields(payload), user, action="buyer.create")


def update_buyer(s: "Session", buyer_id: int, payload: dict, user: "User | None") -> "Buyer":
    from app.bikeshop.modules.leads.models import Buyer

    buyer = get_record(s, Buyer, buyer_id)
    return update_record(s, buyer, _buyer_fields(payload), user, action="buyer.edit")


def delete_buyer(s: "Session", buyer_id: int, user: "User | None") -> None:
    from app.bikeshop.modules.leads.models import Buyer

    delete_record(s, get_record(s, Buyer, buyer_id), user, action="buyer.delete")
