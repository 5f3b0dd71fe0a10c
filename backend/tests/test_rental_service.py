from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from backoffice.errors import (
    EmptyRentalRequest,
    InvalidPhoneNumber,
    NoOutstandingRentals,
    RentalNotFound,
    RentalUnavailable,
)
from backoffice.models import RentalAsset, RentalCheckout
from backoffice.services import rental_service
from backoffice.services.rental_service import RentalPipeline, days_late, late_fee

PHONE = "5551234567"


@pytest.fixture
def pipeline(storage, clock):
    return RentalPipeline(storage, period_days=14, late_fee_rate=Decimal("0.10"), clock=clock)


def _available(db_session, rental_id=2001):
    return db_session.get(RentalAsset, rental_id).available_quantity


class TestFeeRules:
    def test_days_late_uses_calendar_days(self):
        due = datetime(2024, 1, 15, 18, 0)
        assert days_late(due, datetime(2024, 1, 15, 23, 59)) == 0
        assert days_late(due, datetime(2024, 1, 16, 0, 1)) == 1
        assert days_late(due, datetime(2024, 1, 10, 9, 0)) == 0

    def test_late_fee(self):
        assert late_fee(Decimal("50.00"), 1, 3, Decimal("0.10")) == Decimal("15.00")
        assert late_fee(Decimal("12.34"), 2, 1, Decimal("0.10")) == Decimal("2.47")  # 2.468
        assert late_fee(Decimal("50.00"), 1, 0, Decimal("0.10")) == Decimal("0.00")


class TestCheckout:
    def test_checkout(self, pipeline, rental_asset, db_session, clock):
        receipt = pipeline.checkout_rental(PHONE, [{"rental_id": 2001, "quantity": 1}])

        assert receipt.customer_phone == PHONE
        assert receipt.rental_date == clock()
        assert receipt.due_date == clock() + timedelta(days=14)
        assert receipt.total_amount == Decimal("50.00")
        assert len(receipt.checkouts) == 1
        checkout = receipt.checkouts[0]
        assert checkout.is_returned is False
        assert checkout.late_fee == Decimal("0.00")
        assert _available(db_session) == 4

    def test_multiple_assets(self, pipeline, make_rental_asset, db_session):
        make_rental_asset()
        make_rental_asset(rental_id=2002, name="Tile Saw", price_per_day="35.00", total=2)

        receipt = pipeline.checkout_rental(PHONE, [(2001, 2), (2002, 1)])

        assert receipt.total_amount == Decimal("135.00")
        assert _available(db_session, 2001) == 3
        assert _available(db_session, 2002) == 1

    def test_unknown_phone_needs_no_account(self, pipeline, rental_asset, db_session):
        pipeline.checkout_rental("9998887777", [(2001, 1)])
        assert db_session.query(RentalCheckout).filter_by(customer_phone="9998887777").count() == 1

    def test_invalid_phone(self, pipeline, rental_asset, db_session):
        with pytest.raises(InvalidPhoneNumber):
            pipeline.checkout_rental("555-1234", [(2001, 1)])
        assert _available(db_session) == 5

    def test_empty_request(self, pipeline, rental_asset):
        with pytest.raises(EmptyRentalRequest):
            pipeline.checkout_rental(PHONE, [])

    def test_unknown_asset(self, pipeline, db_session):
        with pytest.raises(RentalNotFound):
            pipeline.checkout_rental(PHONE, [(9999, 1)])

    def test_unavailable_writes_nothing(self, pipeline, make_rental_asset, db_session):
        make_rental_asset()
        make_rental_asset(rental_id=2002, name="Tile Saw", total=2, available=0)

        with pytest.raises(RentalUnavailable) as exc:
            pipeline.checkout_rental(PHONE, [(2001, 1), (2002, 1)])

        assert exc.value.details["available"] == 0
        assert _available(db_session, 2001) == 5
        assert db_session.query(RentalCheckout).count() == 0


class TestReturn:
    def test_on_due_date_no_fee(self, pipeline, rental_asset, clock, db_session):
        pipeline.checkout_rental(PHONE, [(2001, 1)])
        clock.advance(days=14, hours=8)

        receipt = pipeline.return_rental(PHONE)

        assert receipt.total_late_fee == Decimal("0.00")
        assert receipt.checkouts[0].is_returned is True
        assert receipt.checkouts[0].return_date == clock()
        assert _available(db_session) == 5

    def test_one_day_late(self, pipeline, rental_asset, clock):
        pipeline.checkout_rental(PHONE, [(2001, 2)])
        clock.advance(days=15)

        receipt = pipeline.return_rental(PHONE)
        assert receipt.total_late_fee == Decimal("10.00")  # 50 * 2 * 0.10 * 1

    def test_three_days_late(self, pipeline, rental_asset, clock, db_session):
        pipeline.checkout_rental(PHONE, [(2001, 1)])
        assert _available(db_session) == 4
        clock.advance(days=17)

        receipt = pipeline.return_rental(PHONE)

        assert receipt.total_late_fee == Decimal("15.00")
        assert receipt.checkouts[0].late_fee == Decimal("15.00")
        assert _available(db_session) == 5

    def test_returns_every_outstanding_row(self, pipeline, rental_asset, clock, db_session):
        pipeline.checkout_rental(PHONE, [(2001, 1)])
        clock.advance(days=3)
        pipeline.checkout_rental(PHONE, [(2001, 2)])
        assert _available(db_session) == 2
        clock.advance(days=12)  # first rental 1 day late, second on time

        receipt = pipeline.return_rental(PHONE)

        assert len(receipt.checkouts) == 2
        assert [c.quantity for c in receipt.checkouts] == [2, 1]  # newest first
        assert receipt.total_late_fee == Decimal("5.00")
        assert _available(db_session) == 5
        assert rental_service.list_outstanding_rentals(PHONE) == []

    def test_no_outstanding(self, pipeline, rental_asset):
        with pytest.raises(NoOutstandingRentals):
            pipeline.return_rental(PHONE)

    def test_second_return_finds_nothing(self, pipeline, rental_asset):
        pipeline.checkout_rental(PHONE, [(2001, 1)])
        pipeline.return_rental(PHONE)
        with pytest.raises(NoOutstandingRentals):
            pipeline.return_rental(PHONE)

    def test_invalid_phone(self, pipeline):
        with pytest.raises(InvalidPhoneNumber):
            pipeline.return_rental("12345")

    def test_release_capped_at_total(self, pipeline, rental_asset, db_session):
        pipeline.checkout_rental(PHONE, [(2001, 3)])
        asset = db_session.get(RentalAsset, 2001)
        # Two units retired while rented out
        asset.total_quantity = 3
        db_session.commit()

        pipeline.return_rental(PHONE)

        asset = db_session.get(RentalAsset, 2001)
        assert asset.available_quantity == 3
        assert asset.available_quantity <= asset.total_quantity


def test_list_outstanding_rentals(pipeline, rental_asset, storage):
    pipeline.checkout_rental(PHONE, [(2001, 1)])
    pipeline.checkout_rental("5550000000", [(2001, 1)])

    assert len(rental_service.list_outstanding_rentals(storage=storage)) == 2
    assert len(rental_service.list_outstanding_rentals(PHONE, storage)) == 1
