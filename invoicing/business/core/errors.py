"""
Domain exceptions for the order-to-invoice workflow

These exceptions represent business rule violations and domain-specific errors.
They are raised by the business layer and rendered by the API error handlers;
status_code is the HTTP status the presentation layer answers with.
"""


class InvoicingDomainError(Exception):
    """Base exception for all invoicing domain errors"""

    status_code = 400

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_dict(self):
        payload = {
            'status': self.status_code,
            'message': self.message,
        }
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(InvoicingDomainError):
    """Raised when request input is malformed or missing required fields"""
    status_code = 400


class NotFoundError(InvoicingDomainError):
    """Raised when a tenant-scoped entity does not exist for the caller's tenant"""
    status_code = 404


class ConflictError(InvoicingDomainError):
    """Raised on duplicate invoices for a sales order or duplicate unique fields"""
    status_code = 409


class InsufficientStockError(InvoicingDomainError):
    """Raised when one or more items lack quantity; errors lists every shortfall"""
    status_code = 400


class InvalidStateError(InvoicingDomainError):
    """Raised when an action's precondition state is not met"""
    status_code = 400


class InvalidTransitionError(InvoicingDomainError):
    """Raised when a status change is not allowed"""
    status_code = 400


class InternalError(InvoicingDomainError):
    """Raised when persistence or the transaction fails unexpectedly"""
    status_code = 500
