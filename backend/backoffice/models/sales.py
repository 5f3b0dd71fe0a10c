from __future__ import annotations

from ..extensions import db
from ..money import money_str
from ..time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    A committed sale.

    total = (subtotal - discount_amount) + tax_amount, every term rounded to
    cents. Written once by the sale pipeline and never updated.
    """
    __tablename__ = "sales"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    subtotal = db.Column(db.Numeric(10, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    tax_amount = db.Column(db.Numeric(10, 2), nullable=False)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    coupon_code = db.Column(db.String(20), nullable=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    lines = db.relationship(
        "SaleLineItem",
        back_populates="sale",
        order_by="SaleLineItem.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_lines: bool = True):
        data = {
            "id": self.id,
            "employee_id": self.employee_id,
            "subtotal": money_str(self.subtotal),
            "discount_amount": money_str(self.discount_amount),
            "tax_amount": money_str(self.tax_amount),
            "total": money_str(self.total),
            "coupon_code": self.coupon_code,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lines"] = [line.to_dict() for line in self.lines]
        return data


class SaleLineItem(db.Model):
    """Item name and unit price are snapshots taken at sale time."""
    __tablename__ = "sale_line_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, nullable=False, index=True)
    item_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    line_total = db.Column(db.Numeric(10, 2), nullable=False)

    sale = db.relationship("Sale", back_populates="lines")

    def to_dict(self):
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "line_total": money_str(self.line_total),
        }


class Return(db.Model):
    """
    A processed return against one line of a sale.

    refund_amount is the flat unit price * quantity; tax and any coupon
    discount on the original sale are not reversed.
    """
    __tablename__ = "returns"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, nullable=False, index=True)
    item_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    refund_amount = db.Column(db.Numeric(10, 2), nullable=False)
    reason = db.Column(db.Text, nullable=False, default="No reason provided")
    employee_id = db.Column(db.Integer, db.ForeignKey("employees.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "refund_amount": money_str(self.refund_amount),
            "reason": self.reason,
            "employee_id": self.employee_id,
            "created_at": to_utc_z(self.created_at),
        }
