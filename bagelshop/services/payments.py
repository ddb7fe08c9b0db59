"""Payment gateway port and the in-memory fake used for development and tests.

get_gateway() / set_gateway() swap implementations without touching the
checkout code.
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from ..core.config import settings


class PaymentGatewayError(Exception):
    """The payment gateway could not complete a request"""


@dataclass
class PaymentIntent:
    """Opaque payment attempt handle"""
    id: str
    client_secret: str
    amount_cents: int
    currency: str
    metadata: dict[str, str] = field(default_factory=dict)
    status: str = "requires_payment_method"


class PaymentGateway(ABC):
    """Abstract payment gateway interface"""

    @abstractmethod
    def create_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> PaymentIntent:
        """Create a payment intent for an amount in cents"""
        ...

    @abstractmethod
    def update_intent_amount(
        self,
        intent_id: str,
        amount_cents: int,
        metadata: Optional[dict[str, str]] = None,
    ) -> PaymentIntent:
        """Change the amount (and optionally the metadata) of an unpaid intent"""
        ...

    @abstractmethod
    def get_intent(self, intent_id: str) -> Optional[PaymentIntent]:
        ...

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify that a raw webhook body is authentically from the gateway"""
        ...


class FakePaymentGateway(PaymentGateway):
    """Configurable in-memory payment gateway"""

    def __init__(self, webhook_secret: Optional[str] = None) -> None:
        self.intents: dict[str, PaymentIntent] = {}
        self.should_succeed: bool = True
        self.failure_reason: str = "Payment gateway unavailable"
        self.webhook_secret = (webhook_secret or settings.webhook_secret).encode()
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Payment gateway unavailable") -> None:
        """Configure gateway behavior at runtime"""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def _check(self) -> None:
        if not self.should_succeed:
            raise PaymentGatewayError(self.failure_reason)

    def create_intent(
        self,
        amount_cents: int,
        currency: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> PaymentIntent:
        self.calls.append({"method": "create_intent", "amount_cents": amount_cents, "currency": currency})
        self._check()

        intent_id = f"pi_fake_{uuid.uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid.uuid4().hex[:12]}",
            amount_cents=amount_cents,
            currency=currency,
            metadata=dict(metadata or {}),
        )
        self.intents[intent_id] = intent
        return intent

    def update_intent_amount(
        self,
        intent_id: str,
        amount_cents: int,
        metadata: Optional[dict[str, str]] = None,
    ) -> PaymentIntent:
        self.calls.append({"method": "update_intent_amount", "intent_id": intent_id, "amount_cents": amount_cents})
        self._check()

        intent = self.intents.get(intent_id)
        if intent is None:
            raise PaymentGatewayError(f"No such payment intent: {intent_id}")
        intent.amount_cents = amount_cents
        if metadata:
            intent.metadata.update(metadata)
        return intent

    def get_intent(self, intent_id: str) -> Optional[PaymentIntent]:
        return self.intents.get(intent_id)

    def _webhook_mac(self, payload: bytes) -> hmac.HMAC:
        mac = hmac.HMAC(self.webhook_secret, hashes.SHA256())
        mac.update(payload)
        return mac

    def sign_webhook(self, payload: bytes) -> str:
        """Hex HMAC-SHA256 of a webhook body, as the gateway sends it"""
        return self._webhook_mac(payload).finalize().hex()

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        try:
            self._webhook_mac(payload).verify(bytes.fromhex(signature))
        except (InvalidSignature, ValueError):
            return False
        return True


_current_gateway: Optional[PaymentGateway] = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakePaymentGateway."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = FakePaymentGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
