from flask import current_app, request

from invoicing.auth import current_tenant_id
from invoicing.business.core.errors import NotFoundError
from invoicing.business.core.state_machine import SalesOrderStateMachine
from invoicing.business.notifications.document_mailer import DocumentMailer
from invoicing.business.sales.sales_order_manager import SalesOrderManager
from invoicing.business.sales.sales_order_requests import SalesOrderCreate, SalesOrderPatch
from invoicing.presentation.routes.api import api_bp, json_body, logger
from invoicing.presentation.routes.api.responses import api_response
from invoicing.presentation.routes.api.serializers import serialize_sales_order
from invoicing.services.sales_order_service import SalesOrderFilters
from invoicing.utils.logging_sanitizer import sanitize_payload

STATUS_ACTIONS = {
    'accept': SalesOrderStateMachine.ACCEPTED,
    'reject': SalesOrderStateMachine.REJECTED,
}


@api_bp.post('/sales-orders')
def create_sales_order():
    payload = json_body()
    logger.debug(f"Create sales order payload: {sanitize_payload(payload)}")
    order = SalesOrderManager().create(current_tenant_id(), SalesOrderCreate.from_payload(payload))
    return api_response(serialize_sales_order(order), 'Sales order created successfully', 201)


@api_bp.get('/sales-orders')
def list_sales_orders():
    filters = SalesOrderFilters.from_args(request.args, current_app.config['LIST_PAGE_SIZE_MAX'])
    page = SalesOrderManager().list(current_tenant_id(), filters)
    return api_response(
        [serialize_sales_order(order, include_items=False) for order in page.items],
        'Sales orders retrieved successfully',
        meta=page.meta(),
    )


@api_bp.get('/sales-orders/<int:order_id>')
def get_sales_order(order_id):
    order = SalesOrderManager().get(current_tenant_id(), order_id)
    return api_response(serialize_sales_order(order), 'Sales order retrieved successfully')


@api_bp.patch('/sales-orders/<int:order_id>')
def update_sales_order(order_id):
    payload = json_body()
    logger.debug(f"Update sales order {order_id} payload: {sanitize_payload(payload)}")
    order = SalesOrderManager().update(current_tenant_id(), order_id, SalesOrderPatch.from_payload(payload))
    return api_response(serialize_sales_order(order), 'Sales order updated successfully')


@api_bp.patch('/sales-orders/<int:order_id>/status/<action>')
def update_sales_order_status(order_id, action):
    new_status = STATUS_ACTIONS.get(action)
    if new_status is None:
        raise NotFoundError(f"Unknown status action '{action}'")

    options = json_body(optional=True)
    order = SalesOrderManager().update_status(current_tenant_id(), order_id, new_status)

    warnings = []
    if options.get('notify'):
        receipt = DocumentMailer.from_config(current_app.config).mail_sales_order(order)
        warnings.extend(receipt.warnings)
    return api_response(
        serialize_sales_order(order),
        f"Sales order {new_status.lower()} successfully",
        warnings=warnings,
    )


@api_bp.post('/sales-orders/<int:order_id>/mail')
def mail_sales_order(order_id):
    order = SalesOrderManager().get(current_tenant_id(), order_id)
    receipt = DocumentMailer.from_config(current_app.config).mail_sales_order(order)
    message = 'Sales order sent' if receipt.delivered else 'Sales order could not be sent'
    return api_response(receipt.to_dict(), message, warnings=receipt.warnings)
