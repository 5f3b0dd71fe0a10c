from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from .errors import (
    EmptyCart,
    EmptyRentalRequest,
    InvalidPhoneNumber,
    InvalidQuantity,
    ValidationError,
)
from .money import round2, to_money
from .time_utils import parse_iso_date


PHONE_PATTERN = re.compile(r"[0-9]{10}")
INTEGER_PATTERN = re.compile(r"-?[0-9]+")
MAX_COUPON_CODE_LENGTH = 20

# Signed 64-bit, the widest INTEGER the database stores
MIN_INT = -(2 ** 63)
MAX_INT = 2 ** 63 - 1


@dataclass(frozen=True)
class CartLine:
    item_id: int
    quantity: int


@dataclass(frozen=True)
class RentalLine:
    rental_id: int
    quantity: int


def coerce_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for request values.

    Accepts ints and plain ASCII-digit strings within the signed 64-bit
    range; rejects bools, floats, decimals and scientific notation.
    """
    number = None
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str) and INTEGER_PATTERN.fullmatch(value.strip()):
        number = int(value.strip())
    if number is not None and MIN_INT <= number <= MAX_INT:
        return number
    raise ValidationError(f"{field} must be an integer", {"field": field, "value": value})


def _pick(line: Any, position: int, *keys: str):
    if isinstance(line, Mapping):
        for key in keys:
            if key in line:
                return line[key]
        return None
    # (id, quantity) pairs
    if isinstance(line, (tuple, list)) and len(line) == 2:
        return line[position]
    return getattr(line, keys[0], None)


def positive_quantity(raw: Any, ref: dict) -> int:
    try:
        quantity = coerce_int(raw, "quantity")
    except ValidationError:
        raise InvalidQuantity("Quantity must be a whole number", {**ref, "quantity": raw})
    if quantity < 1:
        raise InvalidQuantity("Quantity must be at least 1", {**ref, "quantity": quantity})
    return quantity


def _merge(pairs: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Sum quantities for repeated ids, keeping first-seen order."""
    merged: dict[int, int] = {}
    for entity_id, quantity in pairs:
        merged[entity_id] = merged.get(entity_id, 0) + quantity
    return list(merged.items())


def parse_cart_lines(lines: Iterable[Any] | None) -> list[CartLine]:
    """Validate cart input; raises EmptyCart / InvalidQuantity."""
    if not lines:
        raise EmptyCart("Cart is empty")
    if not isinstance(lines, (list, tuple)):
        raise ValidationError("cart_items must be a list", {"field": "cart_items"})

    pairs = []
    for line in lines:
        item_id = coerce_int(_pick(line, 0, "item_id", "itemId"), "item_id")
        quantity = positive_quantity(_pick(line, 1, "quantity", "qty"), {"item_id": item_id})
        pairs.append((item_id, quantity))
    return [CartLine(item_id, qty) for item_id, qty in _merge(pairs)]


def parse_rental_lines(lines: Iterable[Any] | None) -> list[RentalLine]:
    """Validate rental request input; raises EmptyRentalRequest / InvalidQuantity."""
    if not lines:
        raise EmptyRentalRequest("No rental items requested")
    if not isinstance(lines, (list, tuple)):
        raise ValidationError("rental_items must be a list", {"field": "rental_items"})

    pairs = []
    for line in lines:
        rental_id = coerce_int(_pick(line, 0, "rental_id", "rentalId"), "rental_id")
        quantity = positive_quantity(_pick(line, 1, "quantity", "qty"), {"rental_id": rental_id})
        pairs.append((rental_id, quantity))
    return [RentalLine(rental_id, qty) for rental_id, qty in _merge(pairs)]


def validate_phone(phone: Any) -> str:
    """Customer phone must be exactly 10 digits."""
    if not isinstance(phone, str) or not PHONE_PATTERN.fullmatch(phone.strip()):
        raise InvalidPhoneNumber("Phone number must be exactly 10 digits", {"customer_phone": phone})
    return phone.strip()


def normalize_coupon_code(code: Any) -> str | None:
    """Trim and upper-case a coupon code; blank -> None."""
    if code is None:
        return None
    if not isinstance(code, str):
        raise ValidationError("coupon_code must be a string", {"coupon_code": code})
    code = code.strip().upper()
    return code or None


def optional_date(value: Any, field: str) -> date | None:
    """Normalize an optional date field once: None / "" -> None."""
    if value is None or isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date", {"field": field, "value": value})


def optional_money(value: Any, field: str) -> Decimal | None:
    """Normalize an optional monetary field once: None / "" -> None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        amount = round2(to_money(value))
    except ValueError:
        raise ValidationError(f"{field} must be a monetary amount", {"field": field, "value": value})
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative", {"field": field, "value": value})
    return amount
