"""
State machines for sales order and invoice status

Encodes valid transitions and provides guard hooks.
Keeps "what is allowed" separate from "how persistence occurs".

Both documents share one rule: once a document has left PENDING it can never
return to it. Moves between the non-pending states are not restricted.
"""

from typing import FrozenSet
from invoicing.business.core.errors import InvalidTransitionError, ValidationError


class DocumentStateMachine:
    """
    Base state machine for document status.

    Subclasses list their STATUSES; PENDING is the initial state.
    """

    PENDING = 'PENDING'

    STATUSES: FrozenSet[str] = frozenset({PENDING})
    DOCUMENT_LABEL = 'Document'

    @classmethod
    def validate_status(cls, status: str) -> None:
        """
        Raises:
            ValidationError: If status is not one of STATUSES
        """
        if status not in cls.STATUSES:
            allowed = ', '.join(sorted(cls.STATUSES))
            raise ValidationError(
                f"Invalid status '{status}'. Must be one of: {allowed}",
                errors=[{'field': 'status', 'message': f'must be one of {allowed}'}],
            )

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """
        Check if transition is valid.

        Args:
            from_status: Current status
            to_status: Target status

        Returns:
            bool: True if transition is allowed
        """
        if to_status not in cls.STATUSES:
            return False
        # Allow staying in same state (no-op)
        if from_status == to_status:
            return True
        # Leaving PENDING is one-way
        if to_status == cls.PENDING:
            return False
        return True

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """
        Validate transition and raise exception if invalid.

        Raises:
            ValidationError: If to_status is unknown
            InvalidTransitionError: If transition is not allowed
        """
        cls.validate_status(to_status)
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(
                f"Cannot change {cls.DOCUMENT_LABEL.lower()} status back to {cls.PENDING} "
                f"once it has been {from_status}"
            )

    @classmethod
    def get_allowed_transitions(cls, from_status: str) -> FrozenSet[str]:
        """Get set of allowed target statuses from current status"""
        return frozenset(s for s in cls.STATUSES if cls.can_transition(from_status, s))


class SalesOrderStateMachine(DocumentStateMachine):
    """
    PENDING -> ACCEPTED | REJECTED.
    Stock is never touched by order status changes.
    """

    ACCEPTED = 'ACCEPTED'
    REJECTED = 'REJECTED'

    STATUSES = frozenset({DocumentStateMachine.PENDING, ACCEPTED, REJECTED})
    DOCUMENT_LABEL = 'Sales order'


class InvoiceStateMachine(DocumentStateMachine):
    """
    PENDING -> PAID | OVERDUE | CANCELLED.
    Stock was committed when the invoice was written; status changes have no stock effect.
    """

    PAID = 'PAID'
    OVERDUE = 'OVERDUE'
    CANCELLED = 'CANCELLED'

    STATUSES = frozenset({DocumentStateMachine.PENDING, PAID, OVERDUE, CANCELLED})
    DOCUMENT_LABEL = 'Invoice'
