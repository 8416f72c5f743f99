def _customer_summary(customer):
    if customer is None:
        return None
    return {'id': customer.id, 'name': customer.name, 'email': customer.email}


def serialize_sales_order(order, include_items=True):
    data = order.to_dict(exclude={'tenant_id'}, include_items=False)
    data['customer'] = _customer_summary(order.customer)
    if include_items:
        data['items'] = [item.to_dict(exclude={'sales_order_id'}) for item in order.items]
    return data


def serialize_invoice(invoice, include_items=True):
    data = invoice.to_dict(exclude={'tenant_id'}, include_items=False)
    data['customer'] = _customer_summary(invoice.customer)
    if include_items:
        data['items'] = [item.to_dict(exclude={'invoice_id'}) for item in invoice.items]
    return data
