from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_mail import Mail
import os
from invoicing.logger import get_logger

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
csrf = CSRFProtect()
mail = Mail()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["2000 per day", "300 per hour"],
    storage_uri="memory://"  # Use Redis in production for distributed systems
)


def _env_flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


def create_app(test_config=None):
    from pathlib import Path

    app = Flask(__name__)

    logger = get_logger("invoicing")
    logger.info("Initializing Flask application")

    # Configuration
    # SECURITY: Require SECRET_KEY in environment - no fallback
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY')
    if test_config and test_config.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = test_config['SECRET_KEY']
    if not app.config['SECRET_KEY']:
        logger.critical("SECRET_KEY not set in environment! Application cannot start.")
        raise RuntimeError("SECRET_KEY environment variable is required")

    # Prefer an explicit DATABASE_URL env var; otherwise keep the SQLite
    # database inside the project's `instance/` directory.
    db_env = os.environ.get('DATABASE_URL')
    if test_config and test_config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = test_config['SQLALCHEMY_DATABASE_URI']
    elif db_env:
        app.config['SQLALCHEMY_DATABASE_URI'] = db_env
    else:
        base_dir = Path(__file__).parent.parent
        instance_dir = base_dir / 'instance'
        instance_dir.mkdir(parents=True, exist_ok=True)
        default_db_path = instance_dir / 'invoicing.db'
        app.config['SQLALCHEMY_DATABASE_URI'] = f"sqlite:///{str(default_db_path.resolve())}"

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Document defaults
    app.config['INVOICE_DUE_DAYS'] = int(os.environ.get('INVOICE_DUE_DAYS', '14'))
    app.config['LIST_PAGE_SIZE_MAX'] = int(os.environ.get('LIST_PAGE_SIZE_MAX', '100'))

    # Outgoing mail (notification dispatch), handed to Flask-Mail
    app.config['MAIL_ENABLED'] = _env_flag('MAIL_ENABLED', 'False')
    app.config['MAIL_SERVER'] = os.environ.get('SMTP_HOST', 'localhost')
    app.config['MAIL_PORT'] = int(os.environ.get('SMTP_PORT', '587'))
    app.config['MAIL_USE_TLS'] = _env_flag('SMTP_USE_TLS', 'True')
    app.config['MAIL_USERNAME'] = os.environ.get('SMTP_USER')
    app.config['MAIL_PASSWORD'] = os.environ.get('SMTP_PASSWORD')
    app.config['MAIL_SENDER'] = os.environ.get('MAIL_SENDER', 'billing@localhost')
    app.config['MAIL_DEFAULT_SENDER'] = app.config['MAIL_SENDER']

    # Rate limiting can be switched off for local tooling and tests
    app.config['RATELIMIT_ENABLED'] = _env_flag('RATELIMIT_ENABLED', 'True')

    if test_config:
        app.config.update(test_config)

    logger.debug(f"Database configured: {app.config['SQLALCHEMY_DATABASE_URI'].split(':', 1)[0]}")

    # Initialize extensions with app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    mail.init_app(app)

    logger.debug("Extensions initialized")

    # Import models to ensure they're registered with SQLAlchemy
    from invoicing.data.core.tenant import Tenant
    from invoicing.data.core.user import User
    from invoicing.data.core.customer import Customer
    from invoicing.data.core.tenant_counter import TenantCounter
    from invoicing.data.inventory.inventory_item import InventoryItem
    from invoicing.data.sales.sales_order import SalesOrder
    from invoicing.data.sales.sales_order_item import SalesOrderItem
    from invoicing.data.invoices.invoice import Invoice
    from invoicing.data.invoices.invoice_item import InvoiceItem

    logger.debug("Models imported and registered")

    # Register blueprints
    from invoicing import auth
    from invoicing.presentation.routes import init_app as init_routes

    init_routes(app)

    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Cache-Control'] = 'no-store'
        return response

    logger.info("Flask application initialization complete")

    return app
