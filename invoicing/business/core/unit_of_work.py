"""
Unit of work

Single transactional boundary for every multi-step financial mutation:
stock adjustments, document numbering and document writes either commit
together or not at all. The object is passed explicitly to the inventory
ledger and the numbering service so they write through the same session.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from invoicing import db
from invoicing.business.core.errors import ConflictError, InternalError
from invoicing.logger import get_logger

logger = get_logger("invoicing.business.core.unit_of_work")


class UnitOfWork:
    """
    Context manager around the request's SQLAlchemy session.

    - clean exit: commit
    - any exception: rollback, then re-raise
    - IntegrityError (on flush or commit) surfaces as ConflictError
    - any other SQLAlchemyError surfaces as InternalError
    """

    def __init__(self, session=None, *, label: str = "unit of work",
                 conflict_message: str = "A record with the same unique values already exists"):
        self.session = session or db.session
        self.label = label
        self.conflict_message = conflict_message

    def __enter__(self) -> "UnitOfWork":
        logger.debug(f"Begin {self.label}")
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.session.rollback()
            logger.debug(f"Rolled back {self.label}: {exc_type.__name__}")
            self._translate(exc)
            return False

        try:
            self.session.commit()
        except SQLAlchemyError as commit_error:
            self.session.rollback()
            logger.warning(f"Commit failed for {self.label}: {commit_error.__class__.__name__}")
            self._translate(commit_error)
            raise
        logger.debug(f"Committed {self.label}")
        return False

    def flush(self) -> None:
        self.session.flush()

    def _translate(self, exc) -> None:
        if isinstance(exc, IntegrityError):
            raise ConflictError(self.conflict_message) from exc
        if isinstance(exc, SQLAlchemyError):
            logger.error(f"Persistence failure in {self.label}", exc_info=exc)
            raise InternalError("Unexpected persistence failure") from exc
