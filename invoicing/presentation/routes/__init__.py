"""
Routes package for the invoicing service
"""

from invoicing import csrf
from invoicing.logger import get_logger

logger = get_logger("invoicing.routes")


def init_app(app):
    """Register the API blueprint and the JSON error handlers"""
    logger.debug("Initializing route blueprints")

    from .api import api_bp
    from .api.responses import register_error_handlers

    # Token-authenticated JSON API; no browser session to forge
    csrf.exempt(api_bp)
    app.register_blueprint(api_bp, url_prefix='/api/v1')
    register_error_handlers(app)

    @app.get('/health')
    def health():
        return {'status': 'ok'}

    logger.info("Registered api blueprint at /api/v1")
