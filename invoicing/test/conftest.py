"""
Pytest configuration and shared fixtures
"""
import os

os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ['LOG_TO_FILE'] = 'False'
os.environ.setdefault('LOG_LEVEL', 'WARNING')

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from flask import g  # noqa: E402
from sqlalchemy import select  # noqa: E402

from invoicing import create_app  # noqa: E402
from invoicing import db as _db  # noqa: E402
from invoicing.data.core.customer import Customer  # noqa: E402
from invoicing.data.core.tenant import Tenant  # noqa: E402
from invoicing.data.core.user import User  # noqa: E402
from invoicing.data.inventory.inventory_item import InventoryItem  # noqa: E402

TEST_API_KEY = 'tenant-a-test-key'
OTHER_API_KEY = 'tenant-b-test-key'

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret-key',
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'WTF_CSRF_ENABLED': False,
    'RATELIMIT_ENABLED': False,
    'MAIL_ENABLED': False,
    'MAIL_SUPPRESS_SEND': True,
    'INVOICE_DUE_DAYS': 14,
}


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing"""
    app = create_app(TEST_CONFIG)

    @app.teardown_request
    def _forget_request_user(exc):
        # The autouse `db` fixture holds an app context open, which Flask reuses
        # for test-client requests; drop Flask-Login's cached user so each
        # request authenticates afresh, as it would with its own app context.
        g.pop('_login_user', None)

    return app


@pytest.fixture(autouse=True)
def db(app):
    """Fresh schema for every test"""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def seed(db):
    """
    Two tenants. Tenant A owns:
    - Widget X: price 1000, tax 10%, qty 5
    - Gadget Y: price 250, no tax rate, qty 10
    - customer Acme (with email) and customer Initech (no email)
    Tenant B owns one customer and one item.
    """
    tenant = Tenant(name='Tenant A')
    other = Tenant(name='Tenant B')
    db.session.add_all([tenant, other])
    db.session.flush()

    customer = Customer(tenant_id=tenant.id, name='Acme', email='billing@acme.example')
    silent_customer = Customer(tenant_id=tenant.id, name='Initech', email=None)
    other_customer = Customer(tenant_id=other.id, name='Globex', email='ap@globex.example')
    widget = InventoryItem(tenant_id=tenant.id, name='Widget X', hsn_or_sac_code='7318',
                           unit_price=1000, tax_rate=10, quantity=5)
    gadget = InventoryItem(tenant_id=tenant.id, name='Gadget Y', unit_price=250, tax_rate=None, quantity=10)
    foreign = InventoryItem(tenant_id=other.id, name='Foreign Part', unit_price=100, tax_rate=5, quantity=100)

    user = User(tenant_id=tenant.id, email='owner@tenant-a.example')
    user.set_api_key(TEST_API_KEY)
    other_user = User(tenant_id=other.id, email='owner@tenant-b.example')
    other_user.set_api_key(OTHER_API_KEY)

    db.session.add_all([customer, silent_customer, other_customer, widget, gadget, foreign, user, other_user])
    db.session.commit()

    return SimpleNamespace(
        tenant_id=tenant.id,
        other_tenant_id=other.id,
        customer_id=customer.id,
        silent_customer_id=silent_customer.id,
        other_customer_id=other_customer.id,
        widget_id=widget.id,
        gadget_id=gadget.id,
        foreign_item_id=foreign.id,
    )


@pytest.fixture
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {'X-API-Key': TEST_API_KEY}


@pytest.fixture
def other_auth_headers():
    return {'X-API-Key': OTHER_API_KEY}


def stock_of(item_id):
    """Current quantity straight from the database, bypassing the identity map"""
    return _db.session.execute(
        select(InventoryItem.quantity).where(InventoryItem.id == item_id)
    ).scalar_one()


@pytest.fixture
def stock():
    return stock_of
