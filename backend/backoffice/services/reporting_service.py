# Overview: Read-only reports over sales, inventory and rentals.

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import func

from ..errors import ValidationError
from ..extensions import db
from ..models import Employee, RentalAsset, RentalCheckout, Sale, SaleLineItem, StockItem
from ..money import ZERO, money_str, round2, to_money
from ..time_utils import parse_iso_datetime, to_utc_z, utcnow
from .rental_service import days_late, late_fee


MAX_TOP_SELLING_LIMIT = 500


class ReportError(ValidationError):
    """Raised when report parameters are invalid."""


def _money(value):
    return round2(to_money(value)) if value is not None else ZERO


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    """
    Parse report bounds. A date-only end ("2024-05-31") includes that whole day.
    """
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError as exc:
        raise ReportError("start and end must be ISO-8601 dates", {"start": start, "end": end}) from exc

    if end_dt is not None and end and len(end.strip()) == 10:
        end_dt = end_dt + timedelta(days=1)
    if start_dt and end_dt and start_dt >= end_dt:
        raise ReportError("start must be before end", {"start": start, "end": end})
    return start_dt, end_dt


def _in_range(query, column, start_dt, end_dt):
    if start_dt:
        query = query.filter(column >= start_dt)
    if end_dt:
        query = query.filter(column < end_dt)
    return query


# =============================================================================
# SALES
# =============================================================================

def sales_report(*, start: str | None = None, end: str | None = None) -> dict:
    """Totals (count, revenue, tax, discount) and the sales in [start, end)."""
    start_dt, end_dt = _parse_range(start, end)
    sales = (
        _in_range(db.session.query(Sale), Sale.created_at, start_dt, end_dt)
        .order_by(Sale.created_at.asc(), Sale.id.asc())
        .all()
    )

    revenue = tax = discount = ZERO
    for sale in sales:
        revenue += sale.total
        tax += sale.tax_amount
        discount += sale.discount_amount

    return {
        "start": to_utc_z(start_dt),
        "end": to_utc_z(end_dt),
        "totals": {
            "sales_count": len(sales),
            "revenue": money_str(revenue),
            "tax": money_str(tax),
            "discount": money_str(discount),
        },
        "sales": [sale.to_dict(include_lines=False) for sale in sales],
    }


def top_selling_items(*, limit: int = 10, start: str | None = None, end: str | None = None) -> list[dict]:
    if not 1 <= limit <= MAX_TOP_SELLING_LIMIT:
        raise ReportError(f"limit must be between 1 and {MAX_TOP_SELLING_LIMIT}", {"limit": limit})
    start_dt, end_dt = _parse_range(start, end)

    units = func.sum(SaleLineItem.quantity).label("units_sold")
    query = (
        db.session.query(
            SaleLineItem.item_id,
            func.max(SaleLineItem.item_name).label("item_name"),
            units,
            func.sum(SaleLineItem.line_total).label("revenue"),
        )
        .join(Sale, Sale.id == SaleLineItem.sale_id)
    )
    rows = (
        _in_range(query, Sale.created_at, start_dt, end_dt)
        .group_by(SaleLineItem.item_id)
        .order_by(units.desc(), SaleLineItem.item_id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "item_id": row.item_id,
            "item_name": row.item_name,
            "units_sold": int(row.units_sold or 0),
            "revenue": money_str(_money(row.revenue)),
        }
        for row in rows
    ]


def employee_performance(*, start: str | None = None, end: str | None = None) -> list[dict]:
    start_dt, end_dt = _parse_range(start, end)

    revenue = func.sum(Sale.total).label("revenue")
    query = (
        db.session.query(
            Employee.id,
            Employee.first_name,
            Employee.last_name,
            Employee.role,
            func.count(Sale.id).label("sales_count"),
            revenue,
        )
        .join(Sale, Sale.employee_id == Employee.id)
    )
    rows = (
        _in_range(query, Sale.created_at, start_dt, end_dt)
        .group_by(Employee.id, Employee.first_name, Employee.last_name, Employee.role)
        .order_by(revenue.desc(), Employee.id.asc())
        .all()
    )
    return [
        {
            "employee_id": row.id,
            "name": f"{row.first_name} {row.last_name}",
            "role": row.role,
            "sales_count": int(row.sales_count or 0),
            "revenue": money_str(_money(row.revenue)),
        }
        for row in rows
    ]


# =============================================================================
# INVENTORY
# =============================================================================

def inventory_report(*, low_threshold: int | None = None, critical_threshold: int | None = None) -> dict:
    """
    Stock health for active items.

    low: quantity <= low_threshold, critical: quantity <= critical_threshold,
    out of stock: quantity == 0. Value = sum(price * quantity).
    """
    if low_threshold is None:
        low_threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    if critical_threshold is None:
        critical_threshold = current_app.config["CRITICAL_STOCK_THRESHOLD"]
    if low_threshold < 0 or critical_threshold < 0:
        raise ReportError("thresholds cannot be negative")

    items = (
        db.session.query(StockItem)
        .filter(StockItem.is_active.is_(True))
        .order_by(StockItem.quantity.asc(), StockItem.name.asc())
        .all()
    )

    total_value = ZERO
    for item in items:
        total_value += round2(item.price * item.quantity)

    return {
        "total_items": len(items),
        "total_units": sum(item.quantity for item in items),
        "total_value": money_str(total_value),
        "low_stock_threshold": low_threshold,
        "critical_stock_threshold": critical_threshold,
        "low_stock": [i.to_dict() for i in items if 0 < i.quantity <= low_threshold],
        "critical_stock": [i.to_dict() for i in items if 0 < i.quantity <= critical_threshold],
        "out_of_stock": [i.to_dict() for i in items if i.quantity == 0],
    }


# =============================================================================
# RENTALS
# =============================================================================

def rental_report(*, as_of: str | None = None) -> dict:
    """Outstanding rentals, overdue lines with projected late fees, fees collected."""
    try:
        as_of_dt = parse_iso_datetime(as_of) if as_of else utcnow()
    except ValueError as exc:
        raise ReportError("as_of must be an ISO-8601 datetime", {"as_of": as_of}) from exc
    rate = current_app.config["LATE_FEE_RATE"]

    outstanding = (
        db.session.query(RentalCheckout)
        .filter(RentalCheckout.is_returned.is_(False))
        .order_by(RentalCheckout.due_date.asc(), RentalCheckout.id.asc())
        .all()
    )

    overdue = []
    projected = ZERO
    for checkout in outstanding:
        days = days_late(checkout.due_date, as_of_dt)
        if days <= 0:
            continue
        price = checkout.asset.price_per_day if checkout.asset is not None else ZERO
        fee = late_fee(price, checkout.quantity, days, rate)
        projected += fee
        overdue.append({**checkout.to_dict(), "days_late": days, "projected_late_fee": money_str(fee)})

    collected = (
        db.session.query(func.sum(RentalCheckout.late_fee))
        .filter(RentalCheckout.is_returned.is_(True))
        .scalar()
    )

    assets = db.session.query(RentalAsset).order_by(RentalAsset.name.asc()).all()

    return {
        "as_of": to_utc_z(as_of_dt),
        "outstanding_count": len(outstanding),
        "overdue_count": len(overdue),
        "overdue": overdue,
        "projected_late_fees": money_str(projected),
        "collected_late_fees": money_str(_money(collected)),
        "assets": [asset.to_dict() for asset in assets],
    }
