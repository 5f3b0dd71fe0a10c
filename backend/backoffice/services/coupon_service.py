# Overview: Coupon validation and discount computation.

"""
Coupon Service

WHY: A coupon is checked in a fixed order (exists, active, not expired,
not exhausted, minimum purchase met) so the cashier always sees the most
fundamental problem first.

DESIGN:
- validate() is pure with respect to usage: it never increments
  usage_count. The sale pipeline increments it inside the sale transaction.
- Discount: percentage -> round2(subtotal * value / 100), fixed -> value,
  then clamped to max_discount_amount (when set) and to the subtotal so a
  sale total can never go negative.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..errors import (
    ConflictError,
    CouponExhausted,
    CouponExpired,
    CouponInactive,
    CouponNotFound,
    MinimumPurchaseNotMet,
    ValidationError,
)
from ..models import Coupon
from ..money import ZERO, money_str, percent_of, round2
from ..time_utils import Clock, utcnow
from ..validation import MAX_COUPON_CODE_LENGTH, normalize_coupon_code, optional_date, optional_money
from .storage import SqlStorage


COUPON_ERRORS = (CouponNotFound, CouponInactive, CouponExpired, CouponExhausted, MinimumPurchaseNotMet)


@dataclass(frozen=True)
class CouponApplication:
    code: str
    discount_amount: Decimal

    def to_dict(self):
        return {"code": self.code, "discount_amount": money_str(self.discount_amount)}


def compute_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    if coupon.discount_type == Coupon.PERCENTAGE:
        discount = percent_of(subtotal, coupon.discount_value)
    else:
        discount = round2(coupon.discount_value)

    if coupon.max_discount_amount is not None and discount > coupon.max_discount_amount:
        discount = round2(coupon.max_discount_amount)
    return min(discount, round2(subtotal))


class CouponValidator:
    def __init__(self, storage: SqlStorage, clock: Clock = utcnow):
        self.storage = storage
        self.clock = clock

    def validate(self, code: str, subtotal: Decimal, *, lock: bool = False) -> CouponApplication:
        """
        Check a coupon against a cart subtotal and compute its discount.

        Raises CouponNotFound, CouponInactive, CouponExpired,
        CouponExhausted or MinimumPurchaseNotMet.
        """
        normalized = normalize_coupon_code(code)
        if not normalized:
            raise CouponNotFound("Coupon code is required", {"coupon_code": code})

        coupon = self.storage.read_coupon(normalized, lock=lock)
        if coupon is None:
            raise CouponNotFound(f"Coupon {normalized} not found", {"coupon_code": normalized})

        ref = {"coupon_code": coupon.code}
        today = self.clock().date()
        if not coupon.is_active:
            raise CouponInactive(f"Coupon {coupon.code} is not active", ref)
        if coupon.is_expired(today):
            raise CouponExpired(
                f"Coupon {coupon.code} expired",
                {**ref, "expiration_date": coupon.expiration_date.isoformat()},
            )
        if coupon.is_exhausted():
            raise CouponExhausted(
                f"Coupon {coupon.code} has reached its usage limit",
                {**ref, "usage_limit": coupon.usage_limit},
            )

        subtotal = round2(subtotal)
        minimum = round2(coupon.min_purchase_amount or ZERO)
        if subtotal < minimum:
            raise MinimumPurchaseNotMet(
                f"Minimum purchase of {minimum} required for coupon {coupon.code}",
                {**ref, "minimum": money_str(minimum), "subtotal": money_str(subtotal)},
            )

        return CouponApplication(coupon.code, compute_discount(coupon, subtotal))

    def list_active_coupons(self) -> list[Coupon]:
        """Coupons a cashier can currently apply."""
        today = self.clock().date()
        candidates = (
            self.storage.session.query(Coupon)
            .filter(Coupon.is_active.is_(True))
            .filter((Coupon.expiration_date.is_(None)) | (Coupon.expiration_date >= today))
            .order_by(Coupon.code)
            .all()
        )
        return [c for c in candidates if not c.is_exhausted()]


def create_coupon(
    storage: SqlStorage,
    *,
    code: str,
    discount_type: str,
    discount_value,
    min_purchase_amount=None,
    max_discount_amount=None,
    expiration_date=None,
    usage_limit: int = 0,
    is_active: bool = True,
) -> Coupon:
    """
    Create a coupon (seeding / CLI).

    Optional fields arrive as None or "" and are normalized here once.
    """
    normalized = normalize_coupon_code(code)
    if not normalized or len(normalized) > MAX_COUPON_CODE_LENGTH:
        raise ValidationError(
            f"Coupon code must be 1-{MAX_COUPON_CODE_LENGTH} characters", {"coupon_code": code}
        )
    if discount_type not in (Coupon.PERCENTAGE, Coupon.FIXED):
        raise ValidationError("discount_type must be 'percentage' or 'fixed'", {"discount_type": discount_type})

    value = optional_money(discount_value, "discount_value")
    if value is None or value <= 0:
        raise ValidationError("discount_value must be greater than 0", {"discount_value": discount_value})
    if discount_type == Coupon.PERCENTAGE and value > 100:
        raise ValidationError("Percentage discount cannot exceed 100", {"discount_value": discount_value})
    if usage_limit is None or usage_limit < 0:
        raise ValidationError("usage_limit cannot be negative", {"usage_limit": usage_limit})

    coupon = Coupon(
        code=normalized,
        discount_type=discount_type,
        discount_value=value,
        min_purchase_amount=optional_money(min_purchase_amount, "min_purchase_amount") or ZERO,
        max_discount_amount=optional_money(max_discount_amount, "max_discount_amount"),
        expiration_date=optional_date(expiration_date, "expiration_date"),
        usage_limit=usage_limit,
        usage_count=0,
        is_active=is_active,
    )

    def _work():
        if storage.read_coupon(normalized) is not None:
            raise ConflictError(f"Coupon {normalized} already exists", {"coupon_code": normalized})
        return storage.add(coupon)

    return storage.run_in_transaction(_work)
