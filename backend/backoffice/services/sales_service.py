# Overview: Sale transaction pipeline; turns a cart into a committed, priced and taxed sale.

"""
Sale Pipeline

WHY: A sale touches several rows (item stock, the sale, its lines, the
coupon usage counter). They must commit together or not at all, and two
registers selling the last unit must not both succeed.

FLOW:
1. Validate the cart (EmptyCart, InvalidQuantity) before touching state.
2. Inside one transaction:
   a. reserve each line through the StockLedger (ItemNotFound,
      InsufficientStock), snapshotting name and unit price;
   b. subtotal = sum of round2(unit_price * quantity);
   c. validate the coupon (lenient: a bad coupon is reported on the
      receipt, the sale proceeds at full price);
   d. taxable = round2(subtotal - discount), tax = round2(taxable * rate),
      total = round2(taxable + tax);
   e. apply stock decrements, insert sale and lines, increment coupon
      usage (guarded by the usage limit).
3. Commit; any failure rolls back every write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..errors import CouponExhausted, SaleNotFound
from ..models import Sale, SaleLineItem
from ..money import ZERO, round2, to_money
from ..time_utils import Clock, utcnow
from ..validation import coerce_int, normalize_coupon_code, parse_cart_lines
from .coupon_service import COUPON_ERRORS, CouponApplication, CouponValidator
from .stock_ledger import StockLedger
from .storage import SqlStorage


logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 500


@dataclass
class SaleReceipt:
    sale: Sale
    coupon_rejection: dict | None = None

    def to_dict(self):
        data = self.sale.to_dict(include_lines=True)
        data["coupon_rejection"] = self.coupon_rejection
        return data


class SalePipeline:
    def __init__(self, storage: SqlStorage | None = None, *, tax_rate=None, clock: Clock = utcnow):
        self.storage = storage or SqlStorage()
        if tax_rate is None:
            tax_rate = current_app.config["TAX_RATE"]
        self.tax_rate = to_money(tax_rate)
        self.clock = clock
        self.ledger = StockLedger(self.storage)
        self.coupons = CouponValidator(self.storage, clock=clock)

    def compute_totals(self, subtotal: Decimal, discount: Decimal) -> tuple[Decimal, Decimal, Decimal]:
        """Returns (taxable, tax, total), each rounded to cents."""
        taxable = round2(subtotal - discount)
        tax = round2(taxable * self.tax_rate)
        total = round2(taxable + tax)
        return taxable, tax, total

    def process_sale(self, employee_id: int, cart_lines, coupon_code: str | None = None) -> SaleReceipt:
        lines = parse_cart_lines(cart_lines)
        code = normalize_coupon_code(coupon_code)

        def _work() -> SaleReceipt:
            adjustments = []
            priced = []
            for line in lines:
                adjustment, item = self.ledger.reserve(line.item_id, line.quantity)
                adjustments.append(adjustment)
                unit_price = round2(item.price)
                priced.append((item, line.quantity, unit_price, round2(unit_price * line.quantity)))

            subtotal = round2(sum((p[3] for p in priced), ZERO))

            application: CouponApplication | None = None
            rejection = None
            if code:
                try:
                    application = self.coupons.validate(code, subtotal, lock=True)
                except COUPON_ERRORS as exc:
                    # Lenient policy: sale proceeds at full price
                    logger.info("Coupon %s not applied to sale: %s", code, exc.message)
                    rejection = exc.to_dict()

            discount = application.discount_amount if application else ZERO
            _, tax, total = self.compute_totals(subtotal, discount)

            self.ledger.apply(adjustments)

            sale = Sale(
                employee_id=employee_id,
                subtotal=subtotal,
                discount_amount=discount,
                tax_amount=tax,
                total=total,
                coupon_code=application.code if application else None,
                created_at=self.clock(),
                lines=[
                    SaleLineItem(
                        item_id=item.id,
                        item_name=item.name,
                        quantity=quantity,
                        unit_price=unit_price,
                        line_total=line_total,
                    )
                    for item, quantity, unit_price, line_total in priced
                ],
            )
            self.storage.add(sale)

            if application and not self.storage.increment_coupon_usage(application.code):
                raise CouponExhausted(
                    f"Coupon {application.code} has reached its usage limit",
                    {"coupon_code": application.code},
                )
            return SaleReceipt(sale, rejection)

        receipt = self.storage.run_in_transaction(_work)
        logger.info(
            "Sale %s committed: employee=%s total=%s coupon=%s",
            receipt.sale.id, employee_id, receipt.sale.total, receipt.sale.coupon_code,
        )
        return receipt


def get_sale(sale_id: int, storage: SqlStorage | None = None) -> Sale:
    sale_id = coerce_int(sale_id, "sale_id")
    sale = (storage or SqlStorage()).read_sale(sale_id)
    if sale is None:
        raise SaleNotFound(f"Sale {sale_id} not found", {"sale_id": sale_id})
    return sale


def list_sales(
    start: datetime | None = None,
    end: datetime | None = None,
    *,
    employee_id: int | None = None,
    limit: int = 100,
    storage: SqlStorage | None = None,
) -> list[Sale]:
    """Sales newest first, optionally bounded to [start, end); limit is clamped to 1..MAX_LIST_LIMIT."""
    limit = max(1, min(limit, MAX_LIST_LIMIT))
    storage = storage or SqlStorage()
    query = storage.session.query(Sale)
    if start is not None:
        query = query.filter(Sale.created_at >= start)
    if end is not None:
        query = query.filter(Sale.created_at < end)
    if employee_id is not None:
        query = query.filter(Sale.employee_id == coerce_int(employee_id, "employee_id"))
    return query.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()
