# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/retailpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--admin-password "Password123"]
#   Idempotent bootstrap: creates tables and the default admin user.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Schema migrations (Flask-Migrate):
# - python -m flask db upgrade
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with role and active status.
# - python -m flask users create --username jane --password "Password123" --role cashier
#   Create a user (prompts if options are omitted).
#
# Catalog inspection:
# - python -m flask products low-stock
#   List active products at or below their reorder threshold.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import ROLES
from .services.auth_service import create_user, PasswordValidationError
from .services.inventory_service import get_low_stock_products
from .validation import ConflictError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--admin-password', default='Password123', help='Password for the default admin user')
@with_appcontext
def init_system(admin_password):
    """
    Initialize the database and the default admin account.

    Safe to re-run: existing tables and users are left untouched.

    SECURITY: Change the admin password immediately in production!
    """
    click.echo("START Initializing RetailPOS...")

    db.create_all()
    click.echo("PASS Tables created")

    username = current_app.config.get("DEFAULT_ADMIN_USERNAME", "admin")
    existing = db.session.query(User).filter_by(username=username).first()
    if existing:
        click.echo(f"PASS Using existing admin user: {existing.username} (ID: {existing.id})")
        return

    try:
        user = create_user(username, admin_password, role="admin")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return

    click.echo(f"PASS Created admin user: {user.username} (ID: {user.id})")


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

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(list(ROLES)), default='cashier', show_default=True, help='Role')
@with_appcontext
def create_user_cli(username, password, role):
    """
    Create a new user.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    """
    try:
        user = create_user(username, password, role=role)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit")
        return
    except (ConflictError, ValueError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created user: {user.username} with role '{user.role}'")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<5} {'Username':<24} {'Role':<10} {'Active'}")
    click.echo("="*60)

    for user in users:
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.username:<24} {user.role:<10} {active_str}")

    click.echo("="*60 + "\n")


@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('low-stock')
@with_appcontext
def low_stock_cli():
    """List active products at or below min_stock."""
    products = get_low_stock_products()

    if not products:
        click.echo("PASS No products are low on stock.")
        return

    click.echo(f"{'ID':<5} {'Name':<32} {'Stock':>6} {'Min':>6}")
    for p in products:
        click.echo(f"{p.id:<5} {p.name[:32]:<32} {p.stock:>6} {p.min_stock:>6}")
    click.echo(f"\nWARN {len(products)} product(s) need restocking")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
