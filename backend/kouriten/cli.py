# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/kouriten/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (use `flask db upgrade` for managed schemas).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system ping
#   Run one datastore keep-alive query and report the result.
#
# Staff accounts:
# - python -m flask staff create --username alice --password "Password123!" --role manager
#   Create a staff login (prompts if options are omitted).
# - python -m flask staff list
#   List staff accounts with role and active status.

import click
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .keepalive import ping_database
from .services.auth_service import STAFF_ROLES, create_staff, list_staff
from .validation import ShopError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask staff create' to add a login.")


@system_group.command('ping')
@with_appcontext
def ping():
    """Check datastore connectivity."""
    try:
        ping_database()
    except SQLAlchemyError as e:
        click.echo(f"FAIL Database ping failed: {e}")
        raise SystemExit(1)
    click.echo("PASS Database reachable.")


@click.group('staff')
def staff_group():
    """Staff account commands."""


@staff_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(STAFF_ROLES)), default='staff', show_default=True, help='Role')
@with_appcontext
def create_staff_cli(username, password, role):
    """
    Create a staff login.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        staff = create_staff(username, password, role)
    except ShopError as e:
        click.echo(f"FAIL Failed to create staff: {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created staff: {staff.username} with role '{staff.role}' (ID: {staff.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@staff_group.command('list')
@with_appcontext
def list_staff_cli():
    """List all staff accounts."""
    accounts = list_staff()

    if not accounts:
        click.echo("No staff found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<5} {'Username':<24} {'Role':<10} {'Active'}")
    click.echo("="*60)

    for staff in accounts:
        active_str = "Yes" if staff.is_active else "No"
        click.echo(f"{staff.id:<5} {staff.username:<24} {staff.role:<10} {active_str}")

    click.echo("="*60 + "\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(staff_group)
