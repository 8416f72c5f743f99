"""
Customer notifications for sales orders and invoices

Mail goes out through Flask-Mail after the document change has committed.
A delivery failure is logged and reported back as a warning; it never
undoes the change.
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from flask_mail import Mail, Message

from invoicing import mail
from invoicing.logger import get_logger

logger = get_logger("invoicing.business.notifications")


def format_amount(minor_units: int) -> str:
    return f"{(Decimal(minor_units or 0) / 100).quantize(Decimal('0.01'))}"


@dataclass(frozen=True)
class NotificationReceipt:
    delivered: bool
    recipient: Optional[str] = None
    warning: Optional[str] = None

    @property
    def warnings(self) -> list:
        return [self.warning] if self.warning else []

    def to_dict(self) -> dict:
        return {'delivered': self.delivered, 'recipient': self.recipient}


class MailTransport:
    """Delivers one plain-text message"""

    def send(self, sender: str, recipient: str, subject: str, body: str) -> None:
        raise NotImplementedError


class FlaskMailTransport(MailTransport):
    """Sends through the app's Flask-Mail extension (MAIL_SERVER, MAIL_PORT, ...)"""

    def __init__(self, mail: Mail):
        self.mail = mail

    def send(self, sender: str, recipient: str, subject: str, body: str) -> None:
        self.mail.send(Message(subject=subject, sender=sender, recipients=[recipient], body=body))


class LogMailTransport(MailTransport):
    """Used when outgoing mail is disabled; records what would have been sent"""

    def send(self, sender: str, recipient: str, subject: str, body: str) -> None:
        logger.info(f"Mail disabled, not sending '{subject}' to {recipient}")


class DocumentMailer:

    def __init__(self, transport: MailTransport, sender: str):
        self.transport = transport
        self.sender = sender

    @classmethod
    def from_config(cls, config) -> "DocumentMailer":
        if config.get('MAIL_ENABLED'):
            transport = FlaskMailTransport(mail)
        else:
            transport = LogMailTransport()
        return cls(transport, config.get('MAIL_SENDER', 'billing@localhost'))

    def mail_sales_order(self, order) -> NotificationReceipt:
        subject = f"Sales order #{order.order_number} - {order.status}"
        lines = [
            f"Sales order #{order.order_number}",
            f"Status: {order.status}",
        ]
        if order.place_of_supply:
            lines.append(f"Place of supply: {order.place_of_supply}")
        return self._deliver(order.customer, subject, self._compose(lines, order))

    def mail_invoice(self, invoice) -> NotificationReceipt:
        subject = f"Invoice #{invoice.invoice_number} - {invoice.status}"
        lines = [
            f"Invoice #{invoice.invoice_number}",
            f"Status: {invoice.status}",
            f"Issue date: {invoice.issue_date.isoformat()}",
            f"Due date: {invoice.due_date.isoformat()}",
        ]
        return self._deliver(invoice.customer, subject, self._compose(lines, invoice))

    @staticmethod
    def _compose(header_lines, document) -> str:
        body = list(header_lines)
        body.append('')
        for item in document.items:
            name = item.inventory_item.name if item.inventory_item else f"Item {item.inventory_item_id}"
            body.append(f"  {name}: {item.quantity} x {format_amount(item.unit_price)} "
                        f"= {format_amount(item.amount)} (tax {item.tax_rate:g}%)")
        body.append('')
        body.append(f"Subtotal: {format_amount(document.sub_total)}")
        body.append(f"Tax: {format_amount(document.tax_amount)}")
        body.append(f"Total: {format_amount(document.total)}")
        if document.notes:
            body.extend(['', f"Notes: {document.notes}"])
        if document.terms:
            body.extend(['', f"Terms: {document.terms}"])
        return '\n'.join(body)

    def _deliver(self, customer, subject: str, body: str) -> NotificationReceipt:
        recipient = customer.email if customer is not None else None
        if not recipient:
            warning = "Customer has no email address; notification not sent"
            logger.warning(f"{warning} ({subject})")
            return NotificationReceipt(False, None, warning)

        try:
            self.transport.send(self.sender, recipient, subject, body)
        except (smtplib.SMTPException, OSError) as e:
            warning = f"Failed to send notification to {recipient}"
            logger.error(f"{warning}: {e}", exc_info=True)
            return NotificationReceipt(False, recipient, warning)

        logger.info(f"Sent '{subject}' to {recipient}")
        return NotificationReceipt(True, recipient)
