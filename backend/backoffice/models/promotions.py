from __future__ import annotations

from datetime import date

from ..extensions import db
from ..money import money_str


class Coupon(db.Model):
    """
    Discount coupon entered at checkout.

    Codes are stored upper-case. usage_limit == 0 means unlimited.
    usage_count is incremented only by the sale pipeline, inside the same
    transaction that writes the sale.
    """
    __tablename__ = "coupons"
    __table_args__ = (
        db.CheckConstraint("discount_type IN ('percentage', 'fixed')", name="discount_type_known"),
        db.CheckConstraint("discount_value > 0", name="discount_value_positive"),
        db.CheckConstraint("usage_count >= 0", name="usage_count_non_negative"),
        {"sqlite_autoincrement": True},
    )

    PERCENTAGE = "percentage"
    FIXED = "fixed"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(20), nullable=False, unique=True, index=True)
    discount_type = db.Column(db.String(16), nullable=False)
    discount_value = db.Column(db.Numeric(10, 2), nullable=False)

    min_purchase_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    max_discount_amount = db.Column(db.Numeric(10, 2), nullable=True)
    expiration_date = db.Column(db.Date, nullable=True)

    usage_limit = db.Column(db.Integer, nullable=False, default=0)
    usage_count = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    def is_expired(self, today: date) -> bool:
        # Valid through the whole expiration day
        return self.expiration_date is not None and today > self.expiration_date

    def is_exhausted(self) -> bool:
        return self.usage_limit > 0 and self.usage_count >= self.usage_limit

    def is_valid(self, today: date) -> bool:
        return self.is_active and not self.is_expired(today) and not self.is_exhausted()

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "discount_type": self.discount_type,
            "discount_value": money_str(self.discount_value),
            "min_purchase_amount": money_str(self.min_purchase_amount),
            "max_discount_amount": money_str(self.max_discount_amount),
            "expiration_date": self.expiration_date.isoformat() if self.expiration_date else None,
            "usage_limit": self.usage_limit,
            "usage_count": self.usage_count,
            "is_active": self.is_active,
        }
