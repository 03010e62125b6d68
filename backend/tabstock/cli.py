# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/tabstock/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP (PowerShell: $env:FLASK_APP="tabstock"; bash: export FLASK_APP=tabstock).
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (no-op for existing ones).
# - python -m flask system seed-demo
#   Insert a few users, products, orders and closed-month debts if the DB is empty.
#
# Inspection:
# - python -m flask inventory list [--all]
#   List products with their current stock.
# - python -m flask inventory movements --limit 20
#   List recent restock movements.
# - python -m flask debts summary [--status paid]
#   Per-user totals over closed months.
# - python -m flask debts live
#   Unpaid closed months + current open month, per user.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, Product, Order, MonthlyDebt
from .models.billing import DEBT_STATUSES, DEBT_STATUS_INVOICED, DEBT_STATUS_PAID
from .services import inventory_service, restock_service, debt_service
from .time_utils import utcnow


def _euros(cents: int) -> str:
    return f"{cents / 100:.2f}"


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables."""
    db.create_all()
    click.echo("PASS Tables created")


@system_group.command('seed-demo')
@with_appcontext
def seed_demo():
    """Seed demo data, only if there are no users yet."""
    if db.session.query(User).first():
        click.echo("WARN  Database already has users, skipping seed")
        return

    alice = User(name="Alice", email="alice@example.org")
    bob = User(name="Bob", email="bob@example.org")
    carol = User(name="Carol", email=None)
    db.session.add_all([alice, bob, carol])
    db.session.add_all([
        Product(name="Cola 33cl", qty=24),
        Product(name="Sparkling water 50cl", qty=12),
        Product(name="Orange juice 25cl", qty=6),
    ])
    db.session.flush()

    current = debt_service.current_month_key()
    db.session.add_all([
        MonthlyDebt(month_key="2025-12", user_id=alice.id, amount_cents=1250, status=DEBT_STATUS_INVOICED),
        MonthlyDebt(month_key="2025-12", user_id=bob.id, amount_cents=800,
                    status=DEBT_STATUS_PAID, paid_at=utcnow()),
        MonthlyDebt(month_key="2026-01", user_id=bob.id, amount_cents=450, status=DEBT_STATUS_INVOICED),
        Order(user_id=alice.id, month_key=current, total_cents=150),
        Order(user_id=carol.id, month_key=current, total_cents=300),
    ])
    db.session.commit()
    click.echo(f"PASS Seeded 3 users, 3 products, 3 debts, 2 orders (open month {current})")


@click.group('inventory')
def inventory_group():
    """Stock inspection commands."""


@inventory_group.command('list')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive products')
@with_appcontext
def list_inventory(include_inactive):
    """List products with current stock."""
    products = inventory_service.list_products(include_inactive=include_inactive)
    if not products:
        click.echo("No products")
        return
    for p in products:
        flag = "" if p.is_active else " (inactive)"
        click.echo(f"{p.id:>5}  {p.qty:>6}  {p.name}{flag}")


@inventory_group.command('movements')
@click.option('--limit', default=20, show_default=True, type=int)
@with_appcontext
def list_movements(limit):
    """List recent restock movements."""
    for move in restock_service.list_movements(limit=limit):
        deltas = ", ".join(f"#{line.product_id}:{line.qty_delta:+d}" for line in move.lines)
        comment = f"  \"{move.comment}\"" if move.comment else ""
        click.echo(f"{move.id}  {move.created_at}  {deltas}{comment}")


@click.group('debts')
def debts_group():
    """Debt ledger inspection commands."""


@debts_group.command('summary')
@click.option('--status', type=click.Choice(DEBT_STATUSES), default=DEBT_STATUS_INVOICED, show_default=True)
@with_appcontext
def debts_summary(status):
    """Per-user totals over closed months."""
    rows = debt_service.summarize_debts(status=status)
    if not rows:
        click.echo(f"No {status} debts")
        return
    for r in rows:
        click.echo(f"{r['user_name']:<24} {r['months_count']:>3} months  {_euros(r['total_cents']):>10}")


@debts_group.command('live')
@click.option('--all', 'include_inactive', is_flag=True, help='Include inactive users')
@with_appcontext
def debts_live(include_inactive):
    """Unpaid closed months + current open month, per user."""
    key, rows = debt_service.live_summary(include_inactive=include_inactive)
    click.echo(f"Open month: {key}")
    for r in rows:
        click.echo(
            f"{r['user_name']:<24} closed {_euros(r['unpaid_closed_cents']):>10}"
            f"  open {_euros(r['open_month_cents']):>10}  total {_euros(r['total_cents']):>10}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(inventory_group)
    app.cli.add_command(debts_group)
