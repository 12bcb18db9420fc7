# Overview: Flask CLI command groups for bootstrap, inspection, and repair.

# backend/erp/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: tables, default roles and permissions, departments,
#   locations and chart of accounts. Demo users too when SEED_DEMO_DATA is on.
# - python -m flask system check-stock
#   Compare the stock ledger with the ItemStock cache; exits 1 on mismatch.
#
# User inspection/bootstrap:
# - python -m flask users list
# - python -m flask users create --email a@b.c --name "Full Name" --password "Password123!" --role Manager
# - python -m flask users bootstrap-admin
#   Create/reset the admin from ADMIN_BOOTSTRAP_* settings.
#
# Permission inspection/repair:
# - python -m flask perms list Manager
# - python -m flask perms grant Manager accounts approve
# - python -m flask perms revoke Manager accounts approve

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import MODULES, ACTIONS
from .services import auth_service, permission_service, master_data_service, accounts_service, stock_service
from .services.auth_service import PasswordValidationError
from .validation import ValidationError, ConflictError, NotFoundError


DEFAULT_DEPARTMENTS = (
    ("ADMIN", "Administration"),
    ("PURCHASE", "Procurement"),
    ("SALES", "Sales"),
    ("ACCOUNTS", "Accounts"),
    ("INVENTORY", "Inventory"),
)

DEFAULT_LOCATIONS = (
    ("WH-MAIN", "Main Warehouse", "warehouse"),
    ("SITE-01", "Project Site 1", "site"),
)

# Meets the password policy; demo only
DEMO_PASSWORD = "Password123!"

DEMO_USERS = (
    ("admin@erp.local", "System Admin", "Admin", "ADMIN"),
    ("manager@erp.local", "Department Manager", "Manager", "PURCHASE"),
    ("user@erp.local", "Regular User", "User", "SALES"),
)


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the ERP: tables, roles, departments, locations, accounts.

    Safe to run repeatedly; existing rows are kept.
    """
    click.echo("START Initializing ERP system...")

    db.create_all()
    click.echo("PASS Tables ready")

    result = permission_service.initialize_default_roles()
    click.echo(
        f"PASS Roles: {result['roles_created']} created, "
        f"{result['permissions_added']} permissions added"
    )

    departments = {}
    for code, name in DEFAULT_DEPARTMENTS:
        departments[code] = master_data_service.ensure_department(code, name)
    click.echo(f"PASS Departments: {', '.join(departments)}")

    for code, name, location_type in DEFAULT_LOCATIONS:
        master_data_service.ensure_location(code, name, location_type)
    click.echo(f"PASS Locations: {', '.join(code for code, _, _ in DEFAULT_LOCATIONS)}")

    created = accounts_service.seed_default_accounts()
    click.echo(f"PASS Chart of accounts: {created} accounts created")

    if not current_app.config.get("SEED_DEMO_DATA"):
        click.echo("\nDONE ERP system initialized (demo users skipped; set SEED_DEMO_DATA=1 to add them)")
        return

    click.echo("\nUSERS Creating demo users...")
    for email, full_name, role_name, department_code in DEMO_USERS:
        if db.session.query(User).filter_by(email=email).first():
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            continue
        auth_service.create_user(
            email=email,
            password=DEMO_PASSWORD,
            full_name=full_name,
            role_name=role_name,
            department_id=departments[department_code].id,
        )
        click.echo(f"PASS Created user: {email} with role '{role_name}'")

    click.echo("\n" + "=" * 60)
    click.echo("DONE ERP system initialized")
    click.echo("=" * 60)
    click.echo(f"\nDemo credentials (password for all: {DEMO_PASSWORD}):")
    for email, _, role_name, _ in DEMO_USERS:
        click.echo(f"   {role_name:<8} -> {email}")
    click.echo("\nSECURITY Change these passwords before any shared deployment.")


@system_group.command('check-stock')
@with_appcontext
def check_stock():
    """Report item/location pairs whose cached quantity differs from the ledger sum."""
    mismatches = stock_service.verify_stock_consistency()
    if not mismatches:
        click.echo("PASS Stock cache matches the ledger")
        return

    click.echo(f"FAIL {len(mismatches)} mismatched item/location pairs")
    click.echo(f"{'Item':<8} {'Location':<10} {'Ledger':>10} {'Cached':>10}")
    for row in mismatches:
        click.echo(
            f"{row['item_id']:<8} {row['location_id']:<10} "
            f"{row['ledger_quantity']:>10} {row['stock_quantity']:>10}"
        )
    raise SystemExit(1)


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = auth_service.list_users()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'ID':<5} {'Email':<32} {'Name':<25} {'Status':<10} {'Role'}")
    click.echo("=" * 90)
    for user in users:
        role_name = user.role.name if user.role else "none"
        click.echo(f"{user.id:<5} {user.email:<32} {user.full_name:<25} {user.status:<10} {role_name}")
    click.echo("=" * 90 + "\n")


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--name', 'full_name', prompt='Full name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', 'role_name', default='User', show_default=True)
@with_appcontext
def create_user_cli(email, full_name, password, role_name):
    """Create a user (password is checked against the policy)."""
    try:
        user = auth_service.create_user(
            email=email,
            password=password,
            full_name=full_name,
            role_name=role_name,
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        raise SystemExit(1)
    except (ValidationError, ConflictError) as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS Created user: {user.email} (ID: {user.id}) with role '{role_name}'")


@users_group.command('bootstrap-admin')
@with_appcontext
def bootstrap_admin_cli():
    """
    Create or reset the admin from ADMIN_BOOTSTRAP_EMAIL / ADMIN_BOOTSTRAP_PASSWORD.

    An existing admin is only touched with ADMIN_BOOTSTRAP_ALLOW_RESET, and a
    different existing admin additionally needs ADMIN_BOOTSTRAP_FORCE.
    """
    config = current_app.config
    try:
        user, outcome = auth_service.bootstrap_admin(
            email=config.get("ADMIN_BOOTSTRAP_EMAIL"),
            password=config.get("ADMIN_BOOTSTRAP_PASSWORD"),
            full_name=config.get("ADMIN_BOOTSTRAP_NAME") or "System Admin",
            allow_reset=bool(config.get("ADMIN_BOOTSTRAP_ALLOW_RESET")),
            force=bool(config.get("ADMIN_BOOTSTRAP_FORCE")),
        )
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        raise SystemExit(1)
    except ValidationError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    messages = {
        "created": f"PASS Created admin {user.email}",
        "updated": f"PASS Reset admin {user.email}",
        "skipped_exists": f"WARN  Admin {user.email} exists; set ADMIN_BOOTSTRAP_ALLOW_RESET=1 to reset",
        "skipped_other_admin": f"WARN  Another admin ({user.email}) exists; set ADMIN_BOOTSTRAP_FORCE=1 to override",
    }
    click.echo(messages[outcome])


@click.group('perms')
def perms_group():
    """Permission inspection and repair commands."""


@perms_group.command('list')
@click.argument('role_name')
@with_appcontext
def list_permissions_cli(role_name):
    """List the (module, action) grants of a role."""
    try:
        role = permission_service.get_role_by_name(role_name)
    except NotFoundError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    pairs = sorted(role.permission_pairs())
    click.echo(f"\n{role.name}: {len(pairs)} permissions")
    for module, action in pairs:
        click.echo(f"  {module:<14} {action}")


@perms_group.command('grant')
@click.argument('role_name')
@click.argument('module', type=click.Choice(MODULES))
@click.argument('action', type=click.Choice(ACTIONS))
@with_appcontext
def grant_permission_cli(role_name, module, action):
    """Grant a permission to a role."""
    try:
        role = permission_service.get_role_by_name(role_name)
        granted = permission_service.grant_permission(role, module, action)
    except (NotFoundError, ValidationError) as e:
        click.echo(f"FAIL Error: {e}")
        raise SystemExit(1)
    if granted:
        click.echo(f"PASS Granted '{module}:{action}' to role '{role_name}'")
    else:
        click.echo(f"WARN  Role '{role_name}' already has '{module}:{action}'")


@perms_group.command('revoke')
@click.argument('role_name')
@click.argument('module', type=click.Choice(MODULES))
@click.argument('action', type=click.Choice(ACTIONS))
@with_appcontext
def revoke_permission_cli(role_name, module, action):
    """Revoke a permission from a role."""
    try:
        role = permission_service.get_role_by_name(role_name)
        revoked = permission_service.revoke_permission(role, module, action)
    except (NotFoundError, ValidationError) as e:
        click.echo(f"FAIL Error: {e}")
        raise SystemExit(1)
    if revoked:
        click.echo(f"PASS Revoked '{module}:{action}' from role '{role_name}'")
    else:
        click.echo(f"WARN  Permission '{module}:{action}' was not granted to '{role_name}'")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
