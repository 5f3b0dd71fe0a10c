from decimal import Decimal

import pytest

from backoffice.models import Coupon
from backoffice.services import reporting_service
from backoffice.services.reporting_service import ReportError
from backoffice.services.rental_service import RentalPipeline
from backoffice.services.sales_service import SalePipeline


@pytest.fixture
def sales(storage, clock, cashier, admin, make_item, make_coupon):
    """Three sales over two days by two employees."""
    make_item(item_id=1, name="Cable", price="10.00", quantity=50)
    make_item(item_id=2, name="Notebook", price="3.50", quantity=8)
    make_coupon("SAVE10", Coupon.PERCENTAGE, "10")
    pipeline = SalePipeline(storage, tax_rate=Decimal("0.08"), clock=clock)

    pipeline.process_sale(cashier.id, [(1, 2)])                       # 21.60
    pipeline.process_sale(cashier.id, [(1, 2)], "SAVE10")             # 19.44
    clock.advance(days=1)
    pipeline.process_sale(admin.id, [(2, 4), (1, 1)])                 # 24.00 -> 25.92
    return clock


def test_sales_report_totals(sales):
    report = reporting_service.sales_report()

    assert report["totals"] == {
        "sales_count": 3,
        "revenue": "66.96",
        "tax": "4.96",
        "discount": "2.00",
    }
    assert len(report["sales"]) == 3


def test_sales_report_date_only_end_includes_the_day(sales):
    report = reporting_service.sales_report(start="2024-03-01", end="2024-03-01")
    assert report["totals"]["sales_count"] == 2
    assert report["totals"]["revenue"] == "41.04"


def test_sales_report_rejects_inverted_range(db_session):
    with pytest.raises(ReportError):
        reporting_service.sales_report(start="2024-03-05", end="2024-03-01")


def test_sales_report_rejects_garbage(db_session):
    with pytest.raises(ReportError):
        reporting_service.sales_report(start="yesterday")


def test_top_selling_items(sales):
    rows = reporting_service.top_selling_items(limit=10)

    assert [r["item_id"] for r in rows] == [1, 2]
    assert rows[0]["units_sold"] == 5
    assert rows[0]["revenue"] == "50.00"
    assert rows[1] == {"item_id": 2, "item_name": "Notebook", "units_sold": 4, "revenue": "14.00"}


def test_top_selling_limit(sales):
    assert len(reporting_service.top_selling_items(limit=1)) == 1
    with pytest.raises(ReportError):
        reporting_service.top_selling_items(limit=0)
    with pytest.raises(ReportError):
        reporting_service.top_selling_items(limit=10 ** 30)


def test_employee_performance(sales, cashier, admin):
    rows = reporting_service.employee_performance()

    by_id = {r["employee_id"]: r for r in rows}
    assert by_id[cashier.id]["sales_count"] == 2
    assert by_id[cashier.id]["revenue"] == "41.04"
    assert by_id[admin.id]["sales_count"] == 1
    assert by_id[admin.id]["revenue"] == "25.92"
    assert rows[0]["employee_id"] == cashier.id


def test_inventory_report(make_item):
    make_item(item_id=1, name="Plenty", price="2.00", quantity=40)
    make_item(item_id=2, name="Low", price="1.00", quantity=8)
    make_item(item_id=3, name="Critical", price="5.00", quantity=3)
    make_item(item_id=4, name="Gone", price="9.99", quantity=0)
    make_item(item_id=5, name="Retired", price="1.00", quantity=1, is_active=False)

    report = reporting_service.inventory_report(low_threshold=10, critical_threshold=5)

    assert report["total_items"] == 4
    assert report["total_units"] == 51
    assert report["total_value"] == "103.00"
    assert [i["name"] for i in report["low_stock"]] == ["Critical", "Low"]
    assert [i["name"] for i in report["critical_stock"]] == ["Critical"]
    assert [i["name"] for i in report["out_of_stock"]] == ["Gone"]


def test_inventory_report_uses_config_thresholds(app, make_item):
    make_item(quantity=9)
    report = reporting_service.inventory_report()
    assert report["low_stock_threshold"] == app.config["LOW_STOCK_THRESHOLD"]
    assert len(report["low_stock"]) == 1


def test_rental_report(storage, clock, rental_asset):
    pipeline = RentalPipeline(storage, period_days=14, late_fee_rate=Decimal("0.10"), clock=clock)
    pipeline.checkout_rental("5551234567", [(2001, 1)])
    pipeline.checkout_rental("5550000000", [(2001, 2)])
    clock.advance(days=16)
    pipeline.return_rental("5550000000")  # 2 days late: 50 * 2 * 0.1 * 2 = 20.00

    report = reporting_service.rental_report(as_of=clock().isoformat())

    assert report["outstanding_count"] == 1
    assert report["overdue_count"] == 1
    assert report["overdue"][0]["days_late"] == 2
    assert report["projected_late_fees"] == "10.00"
    assert report["collected_late_fees"] == "20.00"
    assert report["assets"][0]["available_quantity"] == 4
