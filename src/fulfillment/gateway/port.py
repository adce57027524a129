"""Payment gateway port (abstract interface).

The fulfillment domain never charges customers itself. It only needs to
trust a "payment succeeded" notification and read the facts it carries.
Adapters verify the notification and translate it into PaymentConfirmed.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class CardMetadata:
    payment_method_type: str | None = None
    card_brand: str | None = None
    card_last4: str | None = None


@dataclass(frozen=True)
class PaymentConfirmed:
    """A verified, successful package payment."""

    customer_id: str
    package_id: str
    payment_intent_id: str
    gateway_customer_id: str | None
    amount_paid: int  # minor currency units
    currency: str
    card: CardMetadata = CardMetadata()


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...

    @abstractmethod
    def parse_payment_confirmed(self, payload: Mapping) -> PaymentConfirmed:
        """Translate a verified success notification into PaymentConfirmed."""
        ...
