from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z


class RentalCheckout(db.Model):
    """
    One rented line for a walk-up customer identified by phone.

    customer_phone is deliberately not a foreign key: customers do not need
    an account to rent.
    """
    __tablename__ = "rental_checkouts"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="quantity_positive"),
        db.CheckConstraint("late_fee >= 0", name="late_fee_non_negative"),
        db.Index("ix_rental_checkouts_phone_returned", "customer_phone", "is_returned"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_phone = db.Column(db.String(10), nullable=False)
    rental_id = db.Column(db.Integer, db.ForeignKey("rental_assets.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    rental_date = db.Column(db.DateTime, nullable=False)
    due_date = db.Column(db.DateTime, nullable=False, index=True)
    return_date = db.Column(db.DateTime, nullable=True)
    is_returned = db.Column(db.Boolean, nullable=False, default=False)
    late_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    asset = db.relationship("RentalAsset")

    def to_dict(self):
        return {
            "id": self.id,
            "customer_phone": self.customer_phone,
            "rental_id": self.rental_id,
            "rental_name": self.asset.name if self.asset else None,
            "quantity": self.quantity,
            "rental_date": to_utc_z(self.rental_date),
            "due_date": to_utc_z(self.due_date),
            "return_date": to_utc_z(self.return_date),
            "is_returned": self.is_returned,
            "late_fee": money_str(self.late_fee),
        }
