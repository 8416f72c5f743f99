from flask import current_app, request

from invoicing.auth import current_tenant_id
from invoicing.business.core.errors import NotFoundError
from invoicing.business.core.state_machine import InvoiceStateMachine
from invoicing.business.invoices.invoice_manager import InvoiceManager
from invoicing.business.invoices.invoice_requests import InvoiceCreate, InvoicePatch
from invoicing.business.notifications.document_mailer import DocumentMailer
from invoicing.presentation.routes.api import api_bp, json_body, logger
from invoicing.presentation.routes.api.responses import api_response
from invoicing.presentation.routes.api.serializers import serialize_invoice
from invoicing.services.invoice_service import InvoiceFilters
from invoicing.utils.logging_sanitizer import sanitize_payload

STATUS_ACTIONS = {
    'paid': InvoiceStateMachine.PAID,
    'overdue': InvoiceStateMachine.OVERDUE,
    'cancelled': InvoiceStateMachine.CANCELLED,
}


@api_bp.post('/invoices')
def create_invoice():
    payload = json_body()
    logger.debug(f"Create invoice payload: {sanitize_payload(payload)}")
    invoice = InvoiceManager().create(current_tenant_id(), InvoiceCreate.from_payload(payload))
    return api_response(serialize_invoice(invoice), 'Invoice created successfully', 201)


@api_bp.get('/invoices')
def list_invoices():
    filters = InvoiceFilters.from_args(request.args, current_app.config['LIST_PAGE_SIZE_MAX'])
    page = InvoiceManager().list(current_tenant_id(), filters)
    return api_response(
        [serialize_invoice(invoice, include_items=False) for invoice in page.items],
        'Invoices retrieved successfully',
        meta=page.meta(),
    )


@api_bp.get('/invoices/<int:invoice_id>')
def get_invoice(invoice_id):
    invoice = InvoiceManager().get(current_tenant_id(), invoice_id)
    return api_response(serialize_invoice(invoice), 'Invoice retrieved successfully')


@api_bp.patch('/invoices/<int:invoice_id>')
def update_invoice(invoice_id):
    payload = json_body()
    logger.debug(f"Update invoice {invoice_id} payload: {sanitize_payload(payload)}")
    invoice = InvoiceManager().update(current_tenant_id(), invoice_id, InvoicePatch.from_payload(payload))
    return api_response(serialize_invoice(invoice), 'Invoice updated successfully')


@api_bp.patch('/invoices/<int:invoice_id>/status/<action>')
def update_invoice_status(invoice_id, action):
    new_status = STATUS_ACTIONS.get(action)
    if new_status is None:
        raise NotFoundError(f"Unknown status action '{action}'")

    options = json_body(optional=True)
    invoice = InvoiceManager().update_status(current_tenant_id(), invoice_id, new_status)

    warnings = []
    if options.get('notify'):
        receipt = DocumentMailer.from_config(current_app.config).mail_invoice(invoice)
        warnings.extend(receipt.warnings)
    return api_response(
        serialize_invoice(invoice),
        f"Invoice marked as {new_status.lower()}",
        warnings=warnings,
    )


@api_bp.post('/invoices/<int:invoice_id>/mail')
def mail_invoice(invoice_id):
    invoice = InvoiceManager().get(current_tenant_id(), invoice_id)
    receipt = DocumentMailer.from_config(current_app.config).mail_invoice(invoice)
    message = 'Invoice sent' if receipt.delivered else 'Invoice could not be sent'
    return api_response(receipt.to_dict(), message, warnings=receipt.warnings)
