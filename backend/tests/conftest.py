"""
Pytest fixtures for back office tests.

Provides an in-memory application, per-test table wipe, a fixed clock,
and factories for employees, items, rental assets and coupons.
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import Coupon, Employee, RentalAsset, StockItem
from backoffice.services import auth_service
from backoffice.services.storage import SqlStorage

TEST_PASSWORD = "secret123"


class FixedClock:
    """Injectable clock; advance() moves it forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'TAX_RATE': Decimal("0.08"),
        'LATE_FEE_RATE': Decimal("0.10"),
        'RENTAL_PERIOD_DAYS': 14,
        'LOW_STOCK_THRESHOLD': 10,
        'CRITICAL_STOCK_THRESHOLD': 5,
        'SESSION_TTL_HOURS': 8,
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh database for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


@pytest.fixture
def storage(db_session):
    return SqlStorage(db_session)


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 3, 1, 10, 0, 0))


@pytest.fixture
def cashier(db_session):
    return auth_service.create_employee(
        employee_id=7,
        first_name="Casey",
        last_name="Till",
        role=Employee.CASHIER,
        email="casey@example.com",
        password=TEST_PASSWORD,
        rounds=4,
    )


@pytest.fixture
def admin(db_session):
    return auth_service.create_employee(
        employee_id=1,
        first_name="Alex",
        last_name="Boss",
        role=Employee.ADMIN,
        email="alex@example.com",
        password=TEST_PASSWORD,
        rounds=4,
    )


@pytest.fixture
def make_item(db_session):
    def _make(item_id=1001, name="USB-C Cable", price="10.00", quantity=5, is_active=True, category="General"):
        item = StockItem(
            id=item_id,
            name=name,
            price=Decimal(price),
            quantity=quantity,
            category=category,
            is_active=is_active,
        )
        db_session.add(item)
        db_session.commit()
        return item
    return _make


@pytest.fixture
def item(make_item):
    """Cable at 10.00 with 5 on hand."""
    return make_item()


@pytest.fixture
def make_rental_asset(db_session):
    def _make(rental_id=2001, name="Pressure Washer", price_per_day="50.00", total=5, available=None):
        asset = RentalAsset(
            id=rental_id,
            name=name,
            price_per_day=Decimal(price_per_day),
            total_quantity=total,
            available_quantity=total if available is None else available,
        )
        db_session.add(asset)
        db_session.commit()
        return asset
    return _make


@pytest.fixture
def rental_asset(make_rental_asset):
    """Pressure washer at 50.00/day, 5 available."""
    return make_rental_asset()


@pytest.fixture
def make_coupon(db_session):
    def _make(code="SAVE10", discount_type=Coupon.PERCENTAGE, discount_value="10", **kwargs):
        fields = {
            "min_purchase_amount": Decimal("0"),
            "max_discount_amount": None,
            "expiration_date": None,
            "usage_limit": 0,
            "usage_count": 0,
            "is_active": True,
        }
        fields.update(kwargs)
        for key in ("min_purchase_amount", "max_discount_amount"):
            if fields[key] is not None:
                fields[key] = Decimal(str(fields[key]))
        coupon = Coupon(
            code=code,
            discount_type=discount_type,
            discount_value=Decimal(discount_value),
            **fields,
        )
        db_session.add(coupon)
        db_session.commit()
        return coupon
    return _make


def login(client, employee_id: int, password: str = TEST_PASSWORD) -> str | None:
    """Helper to get a bearer token for an employee."""
    response = client.post('/api/auth/login', json={
        'employee_id': employee_id,
        'password': password,
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def cashier_headers(client, cashier):
    return auth_headers(login(client, cashier.id))


@pytest.fixture
def admin_headers(client, admin):
    return auth_headers(login(client, admin.id))
