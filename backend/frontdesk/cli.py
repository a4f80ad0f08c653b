# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/frontdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask hotel init-db
#   Create all tables (idempotent).
# - python -m flask hotel reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Room inspection/bootstrap:
# - python -m flask rooms list [--status available]
#   List rooms sorted by floor and room number.
# - python -m flask rooms seed --floors 3 --per-floor 5
#   Create rooms 101..105, 201..205, 301..305 (existing numbers are skipped).
#
# Stay inspection:
# - python -m flask stays show 12
#   Print the reconciled ledger of a stay.

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import Room
from .services import room_service, stay_service
from .services.cache import invalidate_reads
from .services.errors import FrontDeskError
from .services.reconciliation_service import describe_entry, format_amount
from .time_utils import format_display


@click.group('hotel')
def hotel_group():
    """Database bootstrap and repair commands."""


@hotel_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created.")


@hotel_group.command('reset-db')
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

    click.echo("PASS Database reset complete.")


# =============================================================================
# ROOM COMMANDS
# =============================================================================

@click.group('rooms')
def rooms_group():
    """Room inventory commands."""


@rooms_group.command('list')
@click.option('--status', default=None, help='Filter by status (available, occupied, cleaning, maintenance, extension)')
@with_appcontext
def list_rooms(status):
    """List rooms sorted by floor and room number."""
    try:
        rooms = room_service.list_rooms(status=status)
    except (FrontDeskError, ValueError) as e:
        raise click.ClickException(str(e))

    if not rooms:
        click.echo("No rooms found.")
        return

    click.echo(f"\n{'ID':<5} {'Floor':<6} {'Room':<6} {'Status':<12} {'Pending':<8}")
    click.echo("=" * 40)
    for room in rooms:
        pending = "Yes" if room.has_pending_payment else "No"
        click.echo(f"{room.id:<5} {room.floor_label:<6} {room.number:<6} {room.status:<12} {pending:<8}")
    click.echo("")


@rooms_group.command('seed')
@click.option('--floors', type=int, default=3, show_default=True, help='Number of floors')
@click.option('--per-floor', type=int, default=5, show_default=True, help='Rooms per floor')
@with_appcontext
def seed_rooms(floors, per_floor):
    """Create a simple room inventory (floor N gets rooms N01, N02, ...)."""
    created = 0
    for floor in range(1, floors + 1):
        for index in range(1, per_floor + 1):
            number = floor * 100 + index
            if db.session.query(Room).filter_by(room_number=number).first():
                continue
            db.session.add(Room(room_number=number, floor=str(floor), room_type="standard"))
            created += 1
    db.session.commit()
    invalidate_reads()
    click.echo(f"PASS Created {created} rooms.")


# =============================================================================
# STAY COMMANDS
# =============================================================================

@click.group('stays')
def stays_group():
    """Stay inspection commands."""


@stays_group.command('show')
@click.argument('stay_id', type=int)
@with_appcontext
def show_stay(stay_id):
    """Print the reconciled ledger for a stay."""
    try:
        result = stay_service.reconcile_stay(stay_id)
    except FrontDeskError as e:
        raise click.ClickException(str(e))

    symbol = current_app.config.get("CURRENCY_SYMBOL", "₹")
    stay = result["stay"]
    reconciliation = result["reconciliation"]

    click.echo(f"\nStay {stay.id}: {stay.display_name} ({stay.display_phone})")
    click.echo(f"Checked in:  {format_display(stay.checked_in_at)}")
    click.echo(f"Checked out: {format_display(stay.checked_out_at)}")
    click.echo(f"\n{'Date':<12} {'Time':<10} {'Process':<20} {'Cash':>12} {'GPay':>12} {'Rent':>12}")
    click.echo("=" * 82)
    for entry in reconciliation.transactions:
        row = describe_entry(entry)
        click.echo(
            f"{row.date:<12} {row.time:<10} {row.process:<20} "
            f"{format_amount(row.cash_cents, symbol):>12} "
            f"{format_amount(row.gpay_cents, symbol):>12} "
            f"{format_amount(row.rent_cents, symbol):>12}"
        )
    click.echo("=" * 82)
    click.echo(f"Total rent:      {format_amount(reconciliation.total_rent_owed_cents, symbol)}")
    click.echo(f"Total paid:      {format_amount(reconciliation.total_paid_cents, symbol)}")
    click.echo(f"Pending balance: {format_amount(reconciliation.pending_balance_cents, symbol)}")
    click.echo(f"Shop purchases:  {format_amount(result['shop_purchase_total_cents'], symbol)}")
    if reconciliation.discarded_initial_entries:
        click.echo(f"WARN {len(reconciliation.discarded_initial_entries)} extra initial entries not shown")
    click.echo("")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(hotel_group)
    app.cli.add_command(rooms_group)
    app.cli.add_command(stays_group)
