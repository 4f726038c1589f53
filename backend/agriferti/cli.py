# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/agriferti/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to agriferti (PowerShell: $env:FLASK_APP="agriferti").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with their owner ids.
# - python -m flask users create --email owner@shop.local --password "Password123!"
#   Create a user (prompts for the password if omitted).
#
# Inventory inspection:
# - python -m flask products list --owner-id <owner id>
#   List an owner's products with stock status.
# - python -m flask products low-stock --owner-id <owner id> [--threshold 10]
#   List products below the low-stock threshold.

import click
from flask import current_app
from flask.cli import with_appcontext

from .errors import ServiceError
from .extensions import db
from .models import User
from .services import products_service, reporting_service
from .services.auth_service import create_user
from .services.entity_store import get_store


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo(f"PASS Database ready ({current_app.config['SQLALCHEMY_DATABASE_URI']})")
    click.echo(f"PASS Entity store backend: {get_store().backend_name}")


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

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()
    db.create_all()

    store = get_store()
    if hasattr(store, "clear"):
        store.clear()

    click.echo("PASS Database reset complete")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@with_appcontext
def list_users():
    users = db.session.query(User).order_by(User.id).all()
    if not users:
        click.echo("No users found.")
        return

    for user in users:
        status = "active" if user.is_active else "inactive"
        click.echo(f"{user.public_id}  email={user.email or '-'}  phone={user.phone_number or '-'}  [{status}]")


@users_group.command('create')
@click.option('--email', default=None, help='Email address')
@click.option('--phone', 'phone_number', default=None, help='Phone number')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_user_command(email, phone_number, password):
    """Create a user and print its owner id."""
    try:
        user = create_user(email=email, phone_number=phone_number, password=password)
    except ServiceError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user {user.email or user.phone_number} (owner id: {user.public_id})")


@click.group('products')
def products_group():
    """Inventory inspection per owner."""


def _print_stock(items):
    for item in items:
        click.echo(f"{item['product_id']:>32}  {item['name']:<30} {item['stock']:>6} {item['unit']:<5} {item['status']}")


@products_group.command('list')
@click.option('--owner-id', required=True, help='Owner id (users list shows them)')
@with_appcontext
def list_products_command(owner_id):
    threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    products = products_service.list_products(owner_id)
    if not products:
        click.echo("No products found.")
        return
    _print_stock(reporting_service.stock_report(products, threshold))
    click.echo(f"\nStock value: {reporting_service.stock_value(products)}")


@products_group.command('low-stock')
@click.option('--owner-id', required=True, help='Owner id (users list shows them)')
@click.option('--threshold', type=int, default=None, help='Low-stock threshold (default LOW_STOCK_THRESHOLD)')
@with_appcontext
def low_stock_command(owner_id, threshold):
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    items = [
        item
        for item in reporting_service.stock_report(products_service.list_products(owner_id), threshold)
        if item["status"] != reporting_service.STOCK_OK
    ]
    if not items:
        click.echo("PASS No products below threshold.")
        return
    _print_stock(items)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
