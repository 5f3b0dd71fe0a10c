# Overview: Reservation of sellable stock and rentable units.

"""
Stock Ledger

reserve/release never write. They read the current row (locked), check
the request against it and hand back a pending StockAdjustment. The
pipeline collects adjustments and calls apply() inside the same
transaction that writes the sale or rental rows, so stock and documents
commit or roll back together.

apply() goes through SqlStorage's conditional updates; if a concurrent
writer consumed the stock between check and write the guard rejects the
update and the matching conflict error is raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from ..errors import InsufficientStock, ItemNotFound, RentalNotFound, RentalUnavailable
from .storage import SqlStorage


logger = logging.getLogger(__name__)

ITEM = "item"
RENTAL = "rental"


@dataclass(frozen=True)
class StockAdjustment:
    kind: str  # ITEM or RENTAL
    target_id: int
    delta: int
    name: str = ""


class StockLedger:
    def __init__(self, storage: SqlStorage):
        self.storage = storage

    # =========================================================================
    # SELLABLE ITEMS
    # =========================================================================

    def reserve(self, item_id: int, quantity: int) -> tuple[StockAdjustment, object]:
        """
        Check that `quantity` units of an item can be sold.

        Returns (pending adjustment, item row) so the caller can snapshot
        name and price without a second read.
        """
        item = self.storage.read_item(item_id, lock=True)
        if item is None or not item.is_active:
            raise ItemNotFound(f"Item {item_id} not found", {"item_id": item_id})
        if quantity > item.quantity:
            raise InsufficientStock(
                f"Insufficient stock for {item.name}",
                {"item_id": item_id, "requested": quantity, "available": item.quantity},
            )
        return StockAdjustment(ITEM, item_id, -quantity, item.name), item

    def release(self, item_id: int, quantity: int) -> tuple[StockAdjustment, object]:
        """
        Pending restock of `quantity` units (returns).

        Inactive items are still restocked. If the item row is gone there is
        nothing to restock: a zero adjustment and None are returned.
        """
        item = self.storage.read_item(item_id, lock=True)
        if item is None:
            logger.warning("Item %s missing on return; %s unit(s) not restocked", item_id, quantity)
            return StockAdjustment(ITEM, item_id, 0), None
        return StockAdjustment(ITEM, item_id, quantity, item.name), item

    # =========================================================================
    # RENTAL UNITS
    # =========================================================================

    def reserve_rental_units(self, rental_id: int, quantity: int) -> tuple[StockAdjustment, object]:
        asset = self.storage.read_rental_asset(rental_id, lock=True)
        if asset is None or not asset.is_active:
            raise RentalNotFound(f"Rental item {rental_id} not found", {"rental_id": rental_id})
        if quantity > asset.available_quantity:
            raise RentalUnavailable(
                f"Not enough {asset.name} available",
                {
                    "rental_id": rental_id,
                    "requested": quantity,
                    "available": asset.available_quantity,
                },
            )
        return StockAdjustment(RENTAL, rental_id, -quantity, asset.name), asset

    def release_rental_units(self, rental_id: int, quantity: int) -> StockAdjustment:
        """
        Pending return of rented units.

        Capped so available never exceeds total: if the asset's total was
        reduced while units were out, the surplus is dropped and logged.
        """
        asset = self.storage.read_rental_asset(rental_id, lock=True)
        if asset is None:
            # Asset row removed while rented out; nothing to restore.
            logger.warning("Rental asset %s missing on return; %s unit(s) not restored", rental_id, quantity)
            return StockAdjustment(RENTAL, rental_id, 0)

        headroom = asset.total_quantity - asset.available_quantity
        delta = min(quantity, max(headroom, 0))
        if delta < quantity:
            logger.warning(
                "Release of %s unit(s) of rental %s capped at %s (total %s)",
                quantity, rental_id, delta, asset.total_quantity,
            )
        return StockAdjustment(RENTAL, rental_id, delta, asset.name)

    # =========================================================================
    # APPLY
    # =========================================================================

    def apply(self, adjustments: Iterable[StockAdjustment]) -> None:
        for adj in adjustments:
            if adj.delta == 0:
                continue
            if adj.kind == ITEM:
                if not self.storage.apply_item_delta(adj.target_id, adj.delta):
                    raise InsufficientStock(
                        f"Insufficient stock for {adj.name or adj.target_id}",
                        {"item_id": adj.target_id, "requested": -adj.delta},
                    )
            elif adj.kind == RENTAL:
                if not self.storage.apply_rental_delta(adj.target_id, adj.delta):
                    raise RentalUnavailable(
                        f"Availability of {adj.name or adj.target_id} changed",
                        {"rental_id": adj.target_id, "delta": adj.delta},
                    )
            else:
                raise ValueError(f"Unknown adjustment kind: {adj.kind}")
