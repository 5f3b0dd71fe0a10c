from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z


class StockItem(db.Model):
    """
    A product sold at the register.

    quantity is mutated only through signed deltas (sale -> negative,
    return -> positive); the check constraint is the last line of defence
    behind the conditional update in SqlStorage.apply_item_delta.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        db.CheckConstraint("price >= 0", name="price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(100), nullable=False, default="General")
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, server_default=db.func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": money_str(self.price),
            "quantity": self.quantity,
            "category": self.category,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class RentalAsset(db.Model):
    """Equipment rented by the day; 0 <= available_quantity <= total_quantity."""
    __tablename__ = "rental_assets"
    __table_args__ = (
        db.CheckConstraint(
            "available_quantity >= 0 AND available_quantity <= total_quantity",
            name="available_within_total",
        ),
        db.CheckConstraint("price_per_day >= 0", name="price_per_day_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    price_per_day = db.Column(db.Numeric(10, 2), nullable=False)
    total_quantity = db.Column(db.Integer, nullable=False, default=0)
    available_quantity = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(100), nullable=False, default="Equipment")
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price_per_day": money_str(self.price_per_day),
            "total_quantity": self.total_quantity,
            "available_quantity": self.available_quantity,
            "category": self.category,
            "is_active": self.is_active,
        }
