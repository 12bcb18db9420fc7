"""
Pytest fixtures for ERP backend tests.

Provides an in-memory database shared across the session (tables cleared per
test), seeded roles, users per role, master data and a test client.
"""

import pytest

from erp import create_app
from erp.extensions import db
from erp.models import Item, Location, Customer, Supplier
from erp.services import auth_service, permission_service, session_service, login_throttle_service


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_COST': 10,
        'LOGIN_THROTTLE_BACKEND': 'memory',
        'COSTING_METHOD': 'last',
        'ALLOW_SELF_REGISTRATION': True,
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
    """Fresh data for each test: clear all tables and the in-process throttle."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    login_throttle_service._memory_store.clear()

    yield db.session

    db.session.rollback()
    login_throttle_service._memory_store.clear()


@pytest.fixture(scope='function')
def setup_roles(db_session):
    """Seed Admin / Manager / User with their default permissions."""
    permission_service.initialize_default_roles()


def make_user(email: str, role_name: str, password: str = TEST_PASSWORD):
    return auth_service.create_user(
        email=email,
        password=password,
        full_name=email.split("@")[0].title(),
        role_name=role_name,
    )


@pytest.fixture(scope='function')
def admin_user(setup_roles):
    return make_user("admin@test.local", "Admin")


@pytest.fixture(scope='function')
def manager_user(setup_roles):
    return make_user("manager@test.local", "Manager")


@pytest.fixture(scope='function')
def regular_user(setup_roles):
    return make_user("user@test.local", "User")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(session_service.issue_token(admin_user))


@pytest.fixture(scope='function')
def manager_headers(manager_user):
    return auth_headers(session_service.issue_token(manager_user))


@pytest.fixture(scope='function')
def user_headers(regular_user):
    return auth_headers(session_service.issue_token(regular_user))


@pytest.fixture(scope='function')
def warehouse(db_session):
    location = Location(code="WH-MAIN", name="Main Warehouse", type="warehouse")
    db_session.add(location)
    db_session.commit()
    return location


@pytest.fixture(scope='function')
def site(db_session):
    location = Location(code="SITE-01", name="Project Site 1", type="site")
    db_session.add(location)
    db_session.commit()
    return location


@pytest.fixture(scope='function')
def item(db_session):
    item = Item(code="CEM-50", name="Cement 50kg", unit="bag", cost_price_cents=500, sale_price_cents=800)
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(code="C-001", name="Acme Builders")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def supplier(db_session):
    supplier = Supplier(code="S-001", name="Delta Cement", country="BD")
    db_session.add(supplier)
    db_session.commit()
    return supplier
