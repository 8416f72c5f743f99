#!/usr/bin/env python3
"""
Database build for the invoicing service
Creates the tables and optionally loads the demo tenant from demo_data.json
"""

import json
import os
from pathlib import Path

from invoicing import create_app, db
from invoicing.logger import get_logger

logger = get_logger("invoicing.build")

DEMO_DATA_FILE = Path(__file__).parent / 'data' / 'demo_data.json'


def insert_demo_data(api_key=None):
    """
    Insert the demo tenant with its user, customers and inventory.

    Skipped when a tenant with the demo name already exists. The demo user
    is only created when an API key is available (DEMO_API_KEY).

    Returns:
        Tenant or None: The created tenant, None if nothing was inserted
    """
    from invoicing.data.core.customer import Customer
    from invoicing.data.core.tenant import Tenant
    from invoicing.data.core.user import User
    from invoicing.data.inventory.inventory_item import InventoryItem

    if not DEMO_DATA_FILE.exists():
        error_msg = f"Demo data file not found: {DEMO_DATA_FILE}"
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)

    with open(DEMO_DATA_FILE, 'r') as f:
        demo_data = json.load(f)

    if Tenant.query.filter_by(name=demo_data['Tenant']['name']).first():
        logger.info("Demo data already present, skipping insertion")
        return None

    try:
        tenant = Tenant.from_dict(demo_data['Tenant'])
        db.session.add(tenant)
        db.session.flush()

        api_key = api_key or os.environ.get('DEMO_API_KEY')
        if api_key:
            user = User.from_dict(demo_data['User'], tenant_id=tenant.id)
            user.set_api_key(api_key)
            db.session.add(user)
        else:
            logger.warning("DEMO_API_KEY not set; demo tenant has no API user")

        Customer.bulk_create_from_dicts(demo_data['Customers'], tenant_id=tenant.id)
        InventoryItem.bulk_create_from_dicts(demo_data['Inventory_Items'], tenant_id=tenant.id)

        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.error("Demo data insertion failed", exc_info=True)
        raise

    logger.info(f"Inserted demo tenant {tenant.id} ({tenant.name})")
    return tenant


def build_database(app=None, seed_demo_data=True):
    """
    Create all tables and optionally seed demo data.

    Args:
        app: Flask app to build for; a new one is created when omitted
        seed_demo_data (bool): Insert the demo tenant (default: True)
    """
    app = app or create_app()

    with app.app_context():
        logger.info(f"Starting database build (demo data: {seed_demo_data})")
        db.create_all()
        logger.info("Tables created")

        if seed_demo_data:
            insert_demo_data()

        logger.info("Database build completed successfully")
