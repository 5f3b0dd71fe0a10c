# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/backoffice/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed-demo
#   Load sample items, rental assets, coupons and an admin (password "admin123").
#
# Employees:
# - python -m flask employees list
# - python -m flask employees create --first-name Ana --last-name Ruiz --role Cashier --password "secret1"
#
# Coupons:
# - python -m flask coupons create --code SAVE10 --type percentage --value 10 [--min 0] [--max 50] [--expires 2026-12-31] [--limit 100]
# - python -m flask coupons active

import click
from decimal import Decimal
from flask.cli import with_appcontext

from .errors import BackofficeError
from .extensions import db
from .models import Coupon, Employee, RentalAsset, StockItem
from .services import auth_service
from .services.coupon_service import CouponValidator, create_coupon
from .services.storage import SqlStorage


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset complete.")


DEMO_ITEMS = [
    (1001, "USB-C Cable", Decimal("10.00"), 50, "Electronics"),
    (1002, "Notebook", Decimal("3.50"), 8, "Stationery"),
    (1003, "Desk Lamp", Decimal("24.99"), 0, "Home"),
]

DEMO_RENTALS = [
    (2001, "Pressure Washer", Decimal("50.00"), 5),
    (2002, "Tile Saw", Decimal("35.00"), 2),
]


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Load demo data (skips rows that already exist)."""
    db.create_all()

    for item_id, name, price, qty, category in DEMO_ITEMS:
        if db.session.get(StockItem, item_id) is None:
            db.session.add(StockItem(id=item_id, name=name, price=price, quantity=qty, category=category))
    for rental_id, name, price, qty in DEMO_RENTALS:
        if db.session.get(RentalAsset, rental_id) is None:
            db.session.add(RentalAsset(
                id=rental_id, name=name, price_per_day=price,
                total_quantity=qty, available_quantity=qty,
            ))
    db.session.commit()

    storage = SqlStorage()
    if storage.read_coupon("SAVE10") is None:
        create_coupon(storage, code="SAVE10", discount_type=Coupon.PERCENTAGE, discount_value="10")
    if storage.read_coupon("FIVEOFF") is None:
        create_coupon(
            storage, code="FIVEOFF", discount_type=Coupon.FIXED, discount_value="5",
            min_purchase_amount="25", usage_limit=100,
        )

    if db.session.query(Employee).filter_by(role=Employee.ADMIN).first() is None:
        admin = auth_service.create_employee(
            first_name="Store", last_name="Admin", password="admin123",
            role=Employee.ADMIN, email="admin@backoffice.local",
        )
        click.echo(f"PASS Admin created with employee id {admin.id}")

    click.echo("PASS Demo data loaded.")


# =============================================================================
# EMPLOYEES
# =============================================================================

@click.group('employees')
def employees_group():
    """Employee inspection and bootstrap."""


@employees_group.command('list')
@with_appcontext
def list_employees():
    employees = db.session.query(Employee).order_by(Employee.id).all()
    if not employees:
        click.echo("No employees.")
        return
    for e in employees:
        status = "active" if e.is_active else "inactive"
        click.echo(f"{e.id:>5}  {e.role:<8} {e.full_name:<30} {status}")


@employees_group.command('create')
@click.option('--first-name', prompt=True)
@click.option('--last-name', prompt=True)
@click.option('--role', type=click.Choice(list(Employee.ROLES)), default=Employee.CASHIER, show_default=True)
@click.option('--email', default=None)
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_employee(first_name, last_name, role, email, password):
    try:
        employee = auth_service.create_employee(
            first_name=first_name, last_name=last_name, role=role, email=email, password=password,
        )
    except BackofficeError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Employee {employee.id} created ({employee.role}).")


# =============================================================================
# COUPONS
# =============================================================================

@click.group('coupons')
def coupons_group():
    """Coupon bootstrap and inspection."""


@coupons_group.command('create')
@click.option('--code', required=True)
@click.option('--type', 'discount_type', type=click.Choice([Coupon.PERCENTAGE, Coupon.FIXED]), required=True)
@click.option('--value', required=True, help='Percent (0-100] or fixed amount')
@click.option('--min', 'min_purchase', default=None, help='Minimum purchase amount')
@click.option('--max', 'max_discount', default=None, help='Maximum discount amount')
@click.option('--expires', default=None, help='Expiration date YYYY-MM-DD')
@click.option('--limit', 'usage_limit', type=int, default=0, show_default=True, help='0 = unlimited')
@with_appcontext
def create_coupon_command(code, discount_type, value, min_purchase, max_discount, expires, usage_limit):
    try:
        coupon = create_coupon(
            SqlStorage(),
            code=code,
            discount_type=discount_type,
            discount_value=value,
            min_purchase_amount=min_purchase,
            max_discount_amount=max_discount,
            expiration_date=expires,
            usage_limit=usage_limit,
        )
    except BackofficeError as e:
        raise click.ClickException(e.message)
    click.echo(f"PASS Coupon {coupon.code} created.")


@coupons_group.command('active')
@with_appcontext
def list_active_coupons():
    coupons = CouponValidator(SqlStorage()).list_active_coupons()
    if not coupons:
        click.echo("No active coupons.")
        return
    for c in coupons:
        limit = "unlimited" if c.usage_limit == 0 else f"{c.usage_count}/{c.usage_limit}"
        click.echo(f"{c.code:<20} {c.discount_type:<10} {c.discount_value:>8}  uses {limit}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(employees_group)
    app.cli.add_command(coupons_group)
