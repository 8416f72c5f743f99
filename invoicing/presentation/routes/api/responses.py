"""
JSON envelopes and error rendering for the API
"""

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from invoicing.business.core.errors import InternalError, InvoicingDomainError
from invoicing.logger import get_logger

logger = get_logger("invoicing.presentation.api")


def api_response(data=None, message='Success', status=200, warnings=None, meta=None):
    body = {
        'statusCode': status,
        'message': message,
        'data': data,
        'success': status < 400,
    }
    if meta is not None:
        body['meta'] = meta
    if warnings:
        body['warnings'] = list(warnings)
    return jsonify(body), status


def error_response(error: InvoicingDomainError):
    body = error.to_dict()
    body['success'] = False
    return jsonify(body), error.status_code


def register_error_handlers(app):
    """Render every failure as the JSON error envelope; tracebacks only go to the log"""

    @app.errorhandler(InvoicingDomainError)
    def handle_domain_error(error):
        if error.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {error.message}", exc_info=error)
        else:
            logger.info(f"{request.method} {request.path} -> {error.status_code}: {error.message}")
        return error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        body = {
            'status': error.code,
            'message': error.description or error.name,
            'success': False,
        }
        return jsonify(body), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.error(f"Unhandled error on {request.method} {request.path}", exc_info=error)
        return error_response(InternalError("Internal server error"))
