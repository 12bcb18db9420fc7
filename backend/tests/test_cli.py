"""CLI commands: system init, user creation and permission repair."""

from erp.models import ChartOfAccount, ItemStock, Location, Role, User
from erp.services import stock_service


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    first = runner.invoke(args=['system', 'init'])
    second = runner.invoke(args=['system', 'init'])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert "demo users skipped" in first.output
    assert db_session.query(Role).count() == 3
    assert db_session.query(Location).filter_by(code="WH-MAIN").count() == 1
    assert db_session.query(ChartOfAccount).count() == 10
    assert db_session.query(User).count() == 0


def test_system_init_with_demo_users(app, db_session):
    app.config['SEED_DEMO_DATA'] = True
    try:
        result = app.test_cli_runner().invoke(args=['system', 'init'])
    finally:
        app.config['SEED_DEMO_DATA'] = False

    assert result.exit_code == 0, result.output
    emails = {u.email for u in db_session.query(User).all()}
    assert emails == {"admin@erp.local", "manager@erp.local", "user@erp.local"}


def test_users_create_checks_policy(app, setup_roles, db_session):
    runner = app.test_cli_runner()

    weak = runner.invoke(args=[
        'users', 'create', '--email', 'cli@test.local', '--name', 'Cli', '--password', 'weakpass',
    ])
    assert weak.exit_code == 1
    assert "Password validation failed" in weak.output

    ok = runner.invoke(args=[
        'users', 'create', '--email', 'cli@test.local', '--name', 'Cli',
        '--password', 'Password123!', '--role', 'Manager',
    ])
    assert ok.exit_code == 0, ok.output
    assert db_session.query(User).filter_by(email='cli@test.local').one().role.name == 'Manager'


def test_perms_grant_and_revoke(app, setup_roles):
    runner = app.test_cli_runner()

    granted = runner.invoke(args=['perms', 'grant', 'Manager', 'accounts', 'approve'])
    again = runner.invoke(args=['perms', 'grant', 'Manager', 'accounts', 'approve'])
    revoked = runner.invoke(args=['perms', 'revoke', 'Manager', 'accounts', 'approve'])

    assert "PASS Granted" in granted.output
    assert "already has" in again.output
    assert "PASS Revoked" in revoked.output


def test_perms_unknown_role(app, setup_roles):
    result = app.test_cli_runner().invoke(args=['perms', 'list', 'Nobody'])
    assert result.exit_code == 1


def test_check_stock_reports_drift(app, item, warehouse, db_session):
    runner = app.test_cli_runner()
    stock_service.receive(item_id=item.id, location_id=warehouse.id, quantity=5)

    clean = runner.invoke(args=['system', 'check-stock'])
    assert clean.exit_code == 0
    assert "PASS" in clean.output

    stock = db_session.query(ItemStock).one()
    stock.quantity = 7
    db_session.commit()

    drifted = runner.invoke(args=['system', 'check-stock'])
    assert drifted.exit_code == 1
    assert "FAIL 1 mismatched" in drifted.output
