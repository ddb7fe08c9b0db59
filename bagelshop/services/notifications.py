"""Order notification emails (fire-and-forget)"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from ..core.config import settings
from ..models.checkout import Order
from .pricing import format_dollars

logger = logging.getLogger(__name__)


class EmailPort(ABC):
    """Abstract interface for email dispatch adapters"""

    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> dict:
        """
        Send an email message.

        Returns:
            dict with keys: message_id, status ("sent" or "failed"), error (optional)
        """
        ...


class FakeEmailAdapter(EmailPort):
    """Email adapter that records messages in memory"""

    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, to: str, subject: str, body: str) -> dict:
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": self.failure_reason}

        message_id = f"email-{uuid.uuid4().hex[:12]}"
        self.sent_emails.append({"message_id": message_id, "to": to, "subject": subject, "body": body})
        return {"message_id": message_id, "status": "sent"}


_email_channel: Optional[EmailPort] = None


def get_email_channel() -> EmailPort:
    global _email_channel
    if _email_channel is None:
        _email_channel = FakeEmailAdapter()
    return _email_channel


def set_email_channel(channel: EmailPort) -> None:
    global _email_channel
    _email_channel = channel


def reset_email_channel() -> None:
    global _email_channel
    _email_channel = None


def order_placed_email(order: Order) -> tuple[str, str]:
    """Subject and body for an order confirmation"""
    lines = [f"Hi {order.shipping_address.full_name},", "", "Thanks for your order!", ""]
    for line in order.cart.lines:
        lines.append(f"  {line.quantity} x {line.display_name}")
    lines.append("")
    if order.cart.promo_code:
        lines.append(f"Promo {order.cart.promo_code}: -${format_dollars(order.cart.discount_amount)}")
    lines.append(f"Total: ${format_dollars(order.cart.final_price)}")
    if order.cart.desired_ship_date:
        lines.append(f"Ships on: {order.cart.desired_ship_date.isoformat()}")
    lines.append("")
    lines.append(f"Track your order at {settings.storefront_url}/#/orders/{order.order_id}")
    return f"Order {order.order_id} placed", "\n".join(lines)


def send_order_placed(order: Order) -> None:
    """Send the order confirmation; failures are logged, never raised"""
    subject, body = order_placed_email(order)
    try:
        result = get_email_channel().send(order.shipping_address.email, subject, body)
    except Exception:
        logger.exception(f"Order {order.order_id} confirmation email raised")
        return
    if result.get("status") != "sent":
        logger.warning(f"Order {order.order_id} confirmation email failed: {result.get('error')}")
    else:
        logger.info(f"Order {order.order_id} confirmation email sent")
