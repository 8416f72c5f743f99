"""
Per-tenant document numbers

Each tenant has one counter row holding the highest number issued per
document kind, whether reserved here or supplied explicitly by a caller.
Reserving a number is a single relative UPDATE inside the caller's
transaction, so the row lock serialises concurrent writers and a rollback
also returns the number.
"""

from __future__ import annotations

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError

from invoicing.business.core.errors import ValidationError
from invoicing.data.core.tenant_counter import TenantCounter
from invoicing.logger import get_logger

logger = get_logger("invoicing.business.numbering")


class DocumentKind:
    ORDER = 'ORDER'
    INVOICE = 'INVOICE'


_COUNTER_COLUMNS = {
    DocumentKind.ORDER: TenantCounter.next_order_number,
    DocumentKind.INVOICE: TenantCounter.next_invoice_number,
}


class DocumentNumberingService:

    def next_number(self, uow, tenant_id: int, kind: str) -> int:
        """
        Reserve the next number for a document kind.

        Args:
            uow: Enclosing UnitOfWork; the reservation commits or rolls back with it
            tenant_id: Owning tenant
            kind: DocumentKind.ORDER or DocumentKind.INVOICE

        Returns:
            int: 1 for the first document of that kind, then strictly increasing
        """
        column = self._column(kind)
        session = uow.session
        self._ensure_counter(session, tenant_id)
        session.execute(
            update(TenantCounter)
            .where(TenantCounter.tenant_id == tenant_id)
            .values({column: column + 1})
            .execution_options(synchronize_session=False)
        )
        number = session.execute(
            select(column).where(TenantCounter.tenant_id == tenant_id)
        ).scalar_one()
        logger.debug(f"Reserved {kind} number {number} for tenant {tenant_id}")
        return number

    def record_explicit(self, uow, tenant_id: int, kind: str, number: int) -> None:
        """
        Raise the counter to an explicitly supplied number so later reservations
        continue above it. Never lowers the counter.
        """
        column = self._column(kind)
        session = uow.session
        self._ensure_counter(session, tenant_id)
        session.execute(
            update(TenantCounter)
            .where(TenantCounter.tenant_id == tenant_id)
            .values({column: case((column < number, number), else_=column)})
            .execution_options(synchronize_session=False)
        )
        logger.debug(f"Counter for {kind} of tenant {tenant_id} moved to at least {number}")

    def peek(self, session, tenant_id: int, kind: str) -> int:
        """Last number issued for a kind, 0 if none; does not reserve anything"""
        column = self._column(kind)
        value = session.execute(
            select(column).where(TenantCounter.tenant_id == tenant_id)
        ).scalar_one_or_none()
        return value or 0

    @staticmethod
    def _column(kind: str):
        column = _COUNTER_COLUMNS.get(kind)
        if column is None:
            raise ValidationError(f"Unknown document kind '{kind}'")
        return column

    @staticmethod
    def _ensure_counter(session, tenant_id: int) -> None:
        dialect = session.get_bind().dialect.name
        seed = {'tenant_id': tenant_id, 'next_invoice_number': 0, 'next_order_number': 0}

        if dialect in ('sqlite', 'postgresql'):
            if dialect == 'sqlite':
                from sqlalchemy.dialects.sqlite import insert
            else:
                from sqlalchemy.dialects.postgresql import insert
            session.execute(
                insert(TenantCounter).values(**seed).on_conflict_do_nothing(index_elements=['tenant_id'])
            )
            return

        exists = session.execute(
            select(TenantCounter.tenant_id).where(TenantCounter.tenant_id == tenant_id)
        ).scalar_one_or_none()
        if exists is not None:
            return
        try:
            with session.begin_nested():
                session.execute(TenantCounter.__table__.insert().values(**seed))
        except IntegrityError:
            # Another transaction created it first
            logger.debug(f"Counter row for tenant {tenant_id} already created")
