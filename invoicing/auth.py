from flask import jsonify, request
from flask_login import current_user

from invoicing import db, login_manager
from invoicing.data.core.user import User
from invoicing.logger import get_logger
from invoicing.utils.logging_sanitizer import sanitize_headers

logger = get_logger("invoicing.auth")

API_KEY_HEADER = 'X-API-Key'


def _extract_api_key(req):
    api_key = req.headers.get(API_KEY_HEADER)
    if api_key:
        return api_key.strip()
    authorization = req.headers.get('Authorization', '')
    scheme, _, credentials = authorization.partition(' ')
    if scheme.lower() == 'bearer' and credentials.strip():
        return credentials.strip()
    return None


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.request_loader
def load_user_from_request(req):
    api_key = _extract_api_key(req)
    if not api_key:
        return None

    user = User.find_by_api_key(api_key)
    if user is None:
        logger.warning(f"Rejected API key from {req.remote_addr} for {req.path}; "
                       f"headers: {sanitize_headers(req.headers)}")
        return None
    if user.tenant is not None and not user.tenant.is_active:
        logger.warning(f"API key of user {user.id} belongs to inactive tenant {user.tenant_id}")
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    logger.debug(f"Unauthenticated request to {request.path}")
    response = jsonify({
        'status': 401,
        'message': 'Authentication required',
        'success': False,
    })
    response.status_code = 401
    return response


def current_tenant_id():
    """Tenant of the authenticated caller; the only place the HTTP layer reads it"""
    return current_user.tenant_id
