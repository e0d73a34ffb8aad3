from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from app.bikeshop.crud import ListResult, create_record, delete_record, get_record, list_records, update_record
from app.bikeshop.errors import ValidationError
from app.bikeshop.utils import missing_fields, text_value

if TYPE_CHECKING:
    from sqlalchemy.orm import Session
    from app.bikeshop.models import User
    from app.bikeshop.modules.inventory.models import Bike


MODEL_MIN_LENGTH = 2
PRICE_MAX = 10_000_000
QUANTITY_MAX = 1_000_000

REQUIRED_FIELDS = {"model": "Model name", "brand": "Brand name", "price": "Price"}


def parse_price(raw: Any) -> float | None:
    """Parse a price; None when it is not a finite number."""
    try:
        value = float(text_value(raw))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_quantity(raw: Any) -> int | None:
    """Parse a stock quantity; blank means 0, None when it is not a whole number."""
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    text = text_value(raw)
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        return None


def validate_bike_payload(payload: dict) -> list[str]:
    """Validate bike creation/update payload. Returns list of errors."""
    errors = missing_fields(payload, REQUIRED_FIELDS)

    model = text_value(payload.get("model"))
    if model and len(model) < MODEL_MIN_LENGTH:
        errors.append(f"Model name must be at least {MODEL_MIN_LENGTH} characters.")

    if text_value(payload.get("price")):
        price = parse_price(payload.get("price"))
        if price is None:
            errors.append("Price must be a number.")
        elif price < 0:
            errors.append("Price cannot be negative.")
        elif price > PRICE_MAX:
            errors.append(f"Price cannot exceed {PRICE_MAX:,}.")

    quantity = parse_quantity(payload.get("quantity"))
    if quantity is None:
        errors.append("Quantity must be a whole number.")
    elif quantity < 0:
        errors.append("Quantity cannot be negative.")
    elif quantity > QUANTITY_MAX:
        errors.append(f"Quantity cannot exceed {QUANTITY_MAX:,}.")
    return errors


def _bike_fields(payload: dict) -> dict:
    errors = validate_bike_payload(payload)
    if errors:
        raise ValidationError(errors)
    return {
        "model": text_value(payload.get("model")),
        "brand": text_value(payload.get("brand")),
        "price": parse_price(payload.get("price")),
        "quantity": parse_quantity(payload.get("quantity")),
    }


def list_bikes(s: "Session") -> ListResult:
    from app.bikeshop.modules.inventory.models import Bike

    return list_records(s, Bike, label="bikes")


def create_bike(s: "Session", payload: dict, user: "User | None") -> "Bike":
    """Validate and persist a new bike. Nothing touches the store when validation fails."""
    from app.bikeshop.modules.inventory.models import Bike

    fields = _bike_fields(payload)
    return create_record(s, Bike, fields, user, action="bike.create")


def update_bike(s: "Session", bike_id: int, payload: dict, user: "User | None") -> "Bike":
    from app.bikeshop.modules.inventory.models import Bike

    bike = get_record(s, Bike, bike_id)
    fields = _bike_fields(payload)
    return update_record(s, bike, fields, user, action="bike.edit")


def delete_bike(s: "Session", bike_id: int, user: "User | None") -> None:
    from app.bikeshop.modules.inventory.models import Bike

    bike = get_record(s, Bike, bike_id)
    delete_record(s, bike, user, action="bike.delete")
