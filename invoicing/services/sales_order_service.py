"""
Sales Order Service
Read-only queries for sales orders of one tenant.
"""

from dataclasses import dataclass
from typing import List, Optional

from invoicing.business.core.errors import NotFoundError
from invoicing.business.core.requests import FieldErrors
from invoicing.business.core.state_machine import SalesOrderStateMachine
from invoicing.data.sales.sales_order import SalesOrder

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass
class SalesOrderFilters:
    customer_id: Optional[int] = None
    status: Optional[str] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_args(cls, args, max_limit: int = MAX_PAGE_SIZE) -> "SalesOrderFilters":
        """Build filters from a query-string mapping (werkzeug MultiDict or dict)"""
        errors = FieldErrors()
        filters = cls(
            customer_id=arg_int(args, 'customer_id', errors, minimum=1),
            status=(args.get('status') or None),
            page=arg_int(args, 'page', errors, minimum=1) or 1,
            limit=arg_int(args, 'limit', errors, minimum=1) or DEFAULT_PAGE_SIZE,
        )
        if filters.status is not None:
            filters.status = filters.status.upper()
            if filters.status not in SalesOrderStateMachine.STATUSES:
                errors.add('status', f"must be one of {', '.join(sorted(SalesOrderStateMachine.STATUSES))}")
        if filters.limit > max_limit:
            errors.add('limit', f'must be at most {max_limit}')
        errors.raise_if_any("Invalid query parameters")
        return filters


@dataclass
class Page:
    items: List
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    def meta(self) -> dict:
        return {'total': self.total, 'page': self.page, 'limit': self.limit, 'pages': self.pages}


def arg_int(args, key, errors: FieldErrors, minimum: Optional[int] = None) -> Optional[int]:
    raw = args.get(key)
    if raw in (None, ''):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        errors.add(key, 'must be an integer')
        return None
    if minimum is not None and value < minimum:
        errors.add(key, f'must be at least {minimum}')
        return None
    return value


class SalesOrderService:

    @staticmethod
    def get_order(tenant_id: int, order_id: int) -> SalesOrder:
        """
        Raises:
            NotFoundError: If the order does not exist for the tenant
        """
        order = SalesOrder.for_tenant(tenant_id).filter(SalesOrder.id == order_id).first()
        if order is None:
            raise NotFoundError(f"Sales order {order_id} not found")
        return order

    @staticmethod
    def list_orders(tenant_id: int, filters: Optional[SalesOrderFilters] = None) -> Page:
        """
        List a tenant's sales orders, newest first.

        Args:
            tenant_id: Owning tenant
            filters: Optional customer/status filters and pagination

        Returns:
            Page of SalesOrder rows
        """
        filters = filters or SalesOrderFilters()
        query = SalesOrder.for_tenant(tenant_id)
        if filters.customer_id is not None:
            query = query.filter(SalesOrder.customer_id == filters.customer_id)
        if filters.status is not None:
            query = query.filter(SalesOrder.status == filters.status)

        total = query.count()
        orders = (
            query.order_by(SalesOrder.created_at.desc(), SalesOrder.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
            .all()
        )
        return Page(orders, total, filters.page, filters.limit)
