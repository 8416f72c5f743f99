"""
JSON API for sales orders, invoices and inventory

Every endpoint requires an authenticated caller; the caller's tenant scopes
all reads and writes.
"""

from flask import Blueprint, request
from flask_login import current_user

from invoicing import login_manager
from invoicing.business.core.requests import require_object
from invoicing.logger import get_logger

logger = get_logger("invoicing.presentation.api")

api_bp = Blueprint('api', __name__)


@api_bp.before_request
def require_api_user():
    if not current_user.is_authenticated:
        return login_manager.unauthorized()
    return None


def json_body(optional=False):
    """Decoded JSON object body; an absent body is {} when optional"""
    payload = request.get_json(silent=True)
    if payload is None and optional:
        return {}
    return require_object(payload)


# Import route modules
from . import sales_orders, invoices, inventory  # noqa: E402,F401
