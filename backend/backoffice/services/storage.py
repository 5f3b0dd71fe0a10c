# Overview: Persistence capability used by the pipelines.

"""
SQL Storage

WHY: Pipelines never talk to db.session directly. They receive a
SqlStorage (normally bound to the Flask-SQLAlchemy scoped session) that
offers entity reads, one atomic transaction boundary, and the conditional
counter updates that make overselling impossible.

DESIGN:
- run_in_transaction(work) opens the write transaction (BEGIN IMMEDIATE on
  SQLite), calls work(), commits. Any exception rolls everything back.
- SQLAlchemy failures are surfaced as PersistenceError; domain errors
  propagate unchanged.
- Counter writes are single UPDATE statements guarded by a WHERE clause
  (quantity + delta >= 0, available + delta <= total, usage < limit), so a
  stale read can never drive a counter out of range. They return False
  instead of raising when the guard rejects the write.
- No automatic retry: replaying a sale creates a second sale.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, or_, update
from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError
from ..extensions import db
from ..models import Coupon, RentalAsset, RentalCheckout, Return, Sale, StockItem
from .concurrency import begin_write, lock_for_update


logger = logging.getLogger(__name__)


class SqlStorage:
    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    # =========================================================================
    # READS
    # =========================================================================

    def _get(self, model, pk, lock: bool):
        if lock:
            return lock_for_update(self.session.query(model).filter(model.id == pk)).first()
        return self.session.get(model, pk)

    def read_item(self, item_id: int, *, lock: bool = False) -> StockItem | None:
        return self._get(StockItem, item_id, lock)

    def read_rental_asset(self, rental_id: int, *, lock: bool = False) -> RentalAsset | None:
        return self._get(RentalAsset, rental_id, lock)

    def read_coupon(self, code: str, *, lock: bool = False) -> Coupon | None:
        query = self.session.query(Coupon).filter(Coupon.code == code)
        if lock:
            query = lock_for_update(query)
        return query.first()

    def read_sale(self, sale_id: int) -> Sale | None:
        return self.session.get(Sale, sale_id)

    def read_outstanding_rentals(self, customer_phone: str, *, lock: bool = False) -> list[RentalCheckout]:
        """Unreturned checkouts for a phone, newest first."""
        query = (
            self.session.query(RentalCheckout)
            .filter(
                RentalCheckout.customer_phone == customer_phone,
                RentalCheckout.is_returned.is_(False),
            )
            .order_by(RentalCheckout.rental_date.desc(), RentalCheckout.id.desc())
        )
        if lock:
            query = lock_for_update(query)
        return query.all()

    def returned_quantity(self, sale_id: int, item_id: int) -> int:
        total = (
            self.session.query(func.coalesce(func.sum(Return.quantity), 0))
            .filter(Return.sale_id == sale_id, Return.item_id == item_id)
            .scalar()
        )
        return int(total or 0)

    # =========================================================================
    # WRITES
    # =========================================================================

    def add(self, instance):
        self.session.add(instance)
        self.session.flush()
        return instance

    def apply_item_delta(self, item_id: int, delta: int) -> bool:
        """quantity += delta unless the result would go below zero."""
        result = self.session.execute(
            update(StockItem)
            .where(StockItem.id == item_id, StockItem.quantity + delta >= 0)
            .values(quantity=StockItem.quantity + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def apply_rental_delta(self, rental_id: int, delta: int) -> bool:
        """available_quantity += delta, kept within [0, total_quantity]."""
        result = self.session.execute(
            update(RentalAsset)
            .where(
                RentalAsset.id == rental_id,
                RentalAsset.available_quantity + delta >= 0,
                RentalAsset.available_quantity + delta <= RentalAsset.total_quantity,
            )
            .values(available_quantity=RentalAsset.available_quantity + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def increment_coupon_usage(self, code: str) -> bool:
        """usage_count += 1 unless the usage limit is already reached."""
        result = self.session.execute(
            update(Coupon)
            .where(
                Coupon.code == code,
                or_(Coupon.usage_limit == 0, Coupon.usage_count < Coupon.usage_limit),
            )
            .values(usage_count=Coupon.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    # =========================================================================
    # TRANSACTION BOUNDARY
    # =========================================================================

    def run_in_transaction(self, work):
        """
        Run work() inside one atomic transaction and commit.

        Raises PersistenceError when the database rejects the transaction;
        nothing is written in that case.
        """
        try:
            begin_write(self.session)
            result = work()
            self.session.commit()
            return result
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("Transaction rolled back: %s", exc)
            raise PersistenceError(
                "Could not save changes; nothing was written",
                {"reason": type(exc).__name__},
            ) from exc
        except Exception:
            self.session.rollback()
            raise
