# Overview: Equipment rental lifecycle: checkout, due date, return and late fees.

"""
Rental Service

WHY: Walk-up customers rent equipment by phone number. Units leave the
available pool at checkout and come back at return, when any late fee is
assessed.

RULES:
- customer_phone must be exactly 10 digits; no customer account needed
- due_date = rental_date + RENTAL_PERIOD_DAYS (default 14)
- days_late = whole calendar days from due date to return date, both taken
  at midnight, never negative
- late_fee = round2(price_per_day * quantity * LATE_FEE_RATE * days_late)
- available units never exceed total units on return
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from flask import current_app

from ..errors import NoOutstandingRentals
from ..models import RentalCheckout
from ..money import ZERO, money_str, round2, to_money
from ..time_utils import Clock, calendar_days_between, to_utc_z, utcnow
from ..validation import parse_rental_lines, validate_phone
from .stock_ledger import StockLedger
from .storage import SqlStorage


logger = logging.getLogger(__name__)


@dataclass
class RentalReceipt:
    customer_phone: str
    rental_date: datetime
    due_date: datetime
    checkouts: list[RentalCheckout]
    total_amount: Decimal

    def to_dict(self):
        return {
            "customer_phone": self.customer_phone,
            "rental_date": to_utc_z(self.rental_date),
            "due_date": to_utc_z(self.due_date),
            "checkouts": [c.to_dict() for c in self.checkouts],
            "total_amount": money_str(self.total_amount),
        }


@dataclass
class RentalReturnReceipt:
    customer_phone: str
    return_date: datetime
    checkouts: list[RentalCheckout] = field(default_factory=list)
    total_late_fee: Decimal = ZERO

    def to_dict(self):
        return {
            "customer_phone": self.customer_phone,
            "return_date": to_utc_z(self.return_date),
            "checkouts": [c.to_dict() for c in self.checkouts],
            "total_late_fee": money_str(self.total_late_fee),
        }


# =============================================================================
# FEE RULES
# =============================================================================

def compute_due_date(rental_date: datetime, period_days: int) -> datetime:
    return rental_date + timedelta(days=period_days)


def days_late(due_date: datetime, return_date: datetime) -> int:
    return max(0, calendar_days_between(due_date, return_date))


def late_fee(price_per_day, quantity: int, days: int, rate) -> Decimal:
    if days <= 0:
        return ZERO
    return round2(to_money(price_per_day) * quantity * to_money(rate) * days)


# =============================================================================
# PIPELINE
# =============================================================================

class RentalPipeline:
    def __init__(
        self,
        storage: SqlStorage | None = None,
        *,
        period_days: int | None = None,
        late_fee_rate=None,
        clock: Clock = utcnow,
    ):
        self.storage = storage or SqlStorage()
        self.period_days = period_days if period_days is not None else current_app.config["RENTAL_PERIOD_DAYS"]
        self.late_fee_rate = to_money(
            late_fee_rate if late_fee_rate is not None else current_app.config["LATE_FEE_RATE"]
        )
        self.clock = clock
        self.ledger = StockLedger(self.storage)

    def checkout_rental(self, customer_phone: str, lines) -> RentalReceipt:
        """
        Rent one or more assets to a customer.

        Raises InvalidPhoneNumber, EmptyRentalRequest, InvalidQuantity,
        RentalNotFound, RentalUnavailable, PersistenceError.
        """
        phone = validate_phone(customer_phone)
        requested = parse_rental_lines(lines)

        def _work() -> RentalReceipt:
            rental_date = self.clock()
            due_date = compute_due_date(rental_date, self.period_days)

            adjustments = []
            reserved = []
            for line in requested:
                adjustment, asset = self.ledger.reserve_rental_units(line.rental_id, line.quantity)
                adjustments.append(adjustment)
                reserved.append((asset, line.quantity))

            self.ledger.apply(adjustments)

            checkouts = []
            total_amount = ZERO
            for asset, quantity in reserved:
                checkout = RentalCheckout(
                    customer_phone=phone,
                    rental_id=asset.id,
                    quantity=quantity,
                    rental_date=rental_date,
                    due_date=due_date,
                    is_returned=False,
                    late_fee=ZERO,
                )
                checkouts.append(self.storage.add(checkout))
                total_amount = round2(total_amount + round2(asset.price_per_day * quantity))

            return RentalReceipt(phone, rental_date, due_date, checkouts, total_amount)

        receipt = self.storage.run_in_transaction(_work)
        logger.info(
            "Rental checkout committed: phone=%s lines=%s due=%s",
            phone, len(receipt.checkouts), receipt.due_date.date(),
        )
        return receipt

    def return_rental(self, customer_phone: str) -> RentalReturnReceipt:
        """
        Return every outstanding rental for a phone number.

        Raises InvalidPhoneNumber, NoOutstandingRentals, PersistenceError.
        """
        phone = validate_phone(customer_phone)

        def _work() -> RentalReturnReceipt:
            outstanding = self.storage.read_outstanding_rentals(phone, lock=True)
            if not outstanding:
                raise NoOutstandingRentals(
                    f"No outstanding rentals for {phone}", {"customer_phone": phone}
                )

            return_date = self.clock()
            receipt = RentalReturnReceipt(phone, return_date)

            units_back: dict[int, int] = {}
            for checkout in outstanding:
                days = days_late(checkout.due_date, return_date)
                price = checkout.asset.price_per_day if checkout.asset is not None else ZERO
                fee = late_fee(price, checkout.quantity, days, self.late_fee_rate)

                checkout.is_returned = True
                checkout.return_date = return_date
                checkout.late_fee = fee
                receipt.checkouts.append(checkout)
                receipt.total_late_fee = round2(receipt.total_late_fee + fee)
                units_back[checkout.rental_id] = units_back.get(checkout.rental_id, 0) + checkout.quantity

            self.ledger.apply(
                self.ledger.release_rental_units(rental_id, quantity)
                for rental_id, quantity in units_back.items()
            )
            self.storage.session.flush()
            return receipt

        receipt = self.storage.run_in_transaction(_work)
        logger.info(
            "Rental return committed: phone=%s lines=%s late_fee=%s",
            phone, len(receipt.checkouts), receipt.total_late_fee,
        )
        return receipt


def list_outstanding_rentals(customer_phone: str | None = None, storage: SqlStorage | None = None) -> list[RentalCheckout]:
    storage = storage or SqlStorage()
    if customer_phone is not None:
        return storage.read_outstanding_rentals(validate_phone(customer_phone))
    return (
        storage.session.query(RentalCheckout)
        .filter(RentalCheckout.is_returned.is_(False))
        .order_by(RentalCheckout.due_date, RentalCheckout.id)
        .all()
    )
