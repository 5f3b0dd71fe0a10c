# Overview: Return/refund flow against a committed sale.

"""
Return Service

WHY: A customer brings back some units of one line of a past sale. The
units go back on the shelf and the customer is refunded.

DESIGN:
- Refund is flat: round2(unit_price_at_sale * quantity). Tax and any
  coupon discount on the original sale are not reversed.
- Quantity is limited by what is still returnable on that line: purchased
  quantity minus everything already returned against it. This keeps
  repeated partial returns from restocking more than was sold.
- Restock and the Return row commit in one transaction.
"""

from __future__ import annotations

import logging

from ..errors import ExcessiveReturnQuantity, LineItemNotFound, SaleNotFound
from ..models import Return
from ..money import round2
from ..time_utils import Clock, utcnow
from ..validation import coerce_int, positive_quantity
from .stock_ledger import StockLedger
from .storage import SqlStorage


logger = logging.getLogger(__name__)

DEFAULT_REASON = "No reason provided"


# =============================================================================
# RETURN PROCESSING
# =============================================================================

def process_return(
    sale_id: int,
    item_id: int,
    quantity: int,
    reason: str | None,
    employee_id: int,
    *,
    storage: SqlStorage | None = None,
    clock: Clock = utcnow,
) -> Return:
    """
    Return `quantity` units of `item_id` from sale `sale_id`.

    Raises SaleNotFound, LineItemNotFound, InvalidQuantity,
    ExcessiveReturnQuantity, PersistenceError.
    """
    storage = storage or SqlStorage()
    ledger = StockLedger(storage)
    sale_id = coerce_int(sale_id, "sale_id")
    item_id = coerce_int(item_id, "item_id")
    quantity = positive_quantity(quantity, {"sale_id": sale_id, "item_id": item_id})
    reason = (reason or "").strip() or DEFAULT_REASON

    def _work() -> Return:
        sale = storage.read_sale(sale_id)
        if sale is None:
            raise SaleNotFound(f"Sale {sale_id} not found", {"sale_id": sale_id})

        line = next((l for l in sale.lines if l.item_id == item_id), None)
        if line is None:
            raise LineItemNotFound(
                f"Item {item_id} is not part of sale {sale_id}",
                {"sale_id": sale_id, "item_id": item_id},
            )

        already_returned = storage.returned_quantity(sale_id, item_id)
        returnable = line.quantity - already_returned
        if quantity > returnable:
            raise ExcessiveReturnQuantity(
                "Return quantity exceeds purchased quantity",
                {
                    "sale_id": sale_id,
                    "item_id": item_id,
                    "requested": quantity,
                    "purchased": line.quantity,
                    "already_returned": already_returned,
                },
            )

        refund_amount = round2(line.unit_price * quantity)

        adjustment, item = ledger.release(item_id, quantity)
        ledger.apply([adjustment])

        record = Return(
            sale_id=sale_id,
            item_id=item_id,
            item_name=item.name if item is not None else line.item_name,
            quantity=quantity,
            refund_amount=refund_amount,
            reason=reason,
            employee_id=employee_id,
            created_at=clock(),
        )
        return storage.add(record)

    record = storage.run_in_transaction(_work)
    logger.info(
        "Return %s committed: sale=%s item=%s qty=%s refund=%s",
        record.id, sale_id, item_id, quantity, record.refund_amount,
    )
    return record


def list_returns_for_sale(sale_id: int, storage: SqlStorage | None = None) -> list[Return]:
    storage = storage or SqlStorage()
    sale_id = coerce_int(sale_id, "sale_id")
    if storage.read_sale(sale_id) is None:
        raise SaleNotFound(f"Sale {sale_id} not found", {"sale_id": sale_id})
    return (
        storage.session.query(Return)
        .filter(Return.sale_id == sale_id)
        .order_by(Return.created_at, Return.id)
        .all()
    )
