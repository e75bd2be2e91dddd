# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/titan/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to titan (PowerShell: $env:FLASK_APP="titan").
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask db upgrade
#   Apply Alembic migrations (preferred for real databases).
# - python -m flask system init-db
#   Create any missing tables directly from the models (dev/test).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Cashiers:
# - python -m flask cashiers create --email teller@titanbank.local --password "Password123!"
# - python -m flask cashiers list
#
# Customer accounts:
# - python -m flask accounts list [--status pending]
# - python -m flask accounts set-status 1234567890 active
#   New registrations are 'pending'; activate them before they can transfer.
#
# Maintenance:
# - python -m flask maintenance purge-auth
#   Delete expired OTP records and revocation rows of expired tokens.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Account, Cashier
from .models.accounts import VALID_ACCOUNT_STATUSES
from .services import account_service, otp_service, token_service
from .services.auth_service import create_cashier, PasswordValidationError
from .validation import BankError, format_cents


@click.group('system')
def system_group():
    """Schema bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create missing tables from the models."""
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

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('cashiers')
def cashiers_group():
    """Cashier bootstrap and inspection commands."""


@cashiers_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_cashier_cli(email, password):
    """
    Create a cashier.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    try:
        cashier = create_cashier(email=email.strip().lower(), password=password)
        click.echo(f"PASS Created cashier: {cashier.email} (ID: {cashier.id})")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, uppercase, lowercase, digit, special char")
    except ValueError as e:
        click.echo(f"FAIL Failed to create cashier: {str(e)}")


@cashiers_group.command('list')
@with_appcontext
def list_cashiers():
    """List all cashiers."""
    cashiers = db.session.query(Cashier).order_by(Cashier.id).all()

    if not cashiers:
        click.echo("No cashiers found.")
        return

    click.echo("\n" + "="*60)
    click.echo(f"{'ID':<6} {'Email':<40}")
    click.echo("="*60)
    for cashier in cashiers:
        click.echo(f"{cashier.id:<6} {cashier.email:<40}")
    click.echo("="*60 + "\n")


@click.group('accounts')
def accounts_group():
    """Customer account inspection and activation commands."""


@accounts_group.command('list')
@click.option('--status', type=click.Choice(VALID_ACCOUNT_STATUSES), help='Filter by status')
@with_appcontext
def list_accounts(status):
    """List customer accounts with balance and status."""
    query = db.session.query(Account)
    if status:
        query = query.filter_by(status=status)

    accounts = query.order_by(Account.id).all()

    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'Account':<12} {'Email':<35} {'Name':<25} {'Status':<9} {'Balance':>15}")
    click.echo("="*100)
    for account in accounts:
        click.echo(
            f"{account.account_number:<12} {account.email:<35} {account.full_name:<25} "
            f"{account.status:<9} {format_cents(account.balance_cents):>15}"
        )
    click.echo("="*100 + "\n")


@accounts_group.command('set-status')
@click.argument('account_number')
@click.argument('status', type=click.Choice(VALID_ACCOUNT_STATUSES))
@with_appcontext
def set_status_cli(account_number, status):
    """Activate, block, or return an account to pending."""
    try:
        account = account_service.set_account_status(account_number, status)
        click.echo(f"PASS Account {account.account_number} is now '{account.status}'")
    except BankError as e:
        click.echo(f"FAIL {str(e)}")


@click.group('maintenance')
def maintenance_group():
    """Periodic cleanup commands."""


@maintenance_group.command('purge-auth')
@with_appcontext
def purge_auth():
    """Delete expired OTP records and stale token revocations."""
    otps = otp_service.purge_expired_otps()
    tokens = token_service.purge_revoked_tokens()
    click.echo(f"PASS Deleted {otps} expired OTP record(s) and {tokens} revocation row(s).")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(cashiers_group)
    app.cli.add_command(accounts_group)
    app.cli.add_command(maintenance_group)
