"""Fake payment gateway for development and testing.

Accepts the signature ``test-signature`` and reads notifications shaped like
the gateway's ``payment_intent.succeeded`` event, flattened.
"""

from collections.abc import Mapping

from protean.exceptions import ValidationError

from fulfillment.gateway.port import CardMetadata, PaymentConfirmed, PaymentGateway

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        self.calls.append({"method": "verify_webhook_signature", "signature": signature})
        return signature == TEST_SIGNATURE

    def parse_payment_confirmed(self, payload: Mapping) -> PaymentConfirmed:
        self.calls.append({"method": "parse_payment_confirmed", "payment_intent_id": payload.get("payment_intent_id")})

        metadata = payload.get("metadata") or {}
        missing = [
            name
            for name, value in (
                ("payment_intent_id", payload.get("payment_intent_id")),
                ("amount_paid", payload.get("amount_paid")),
                ("metadata.customer_id", metadata.get("customer_id")),
                ("metadata.package_id", metadata.get("package_id")),
            )
            if value in (None, "")
        ]
        if missing:
            raise ValidationError({name: ["This field is required"] for name in missing})

        card = payload.get("card") or {}
        return PaymentConfirmed(
            customer_id=str(metadata["customer_id"]),
            package_id=str(metadata["package_id"]),
            payment_intent_id=str(payload["payment_intent_id"]),
            gateway_customer_id=payload.get("gateway_customer_id"),
            amount_paid=int(payload["amount_paid"]),
            currency=str(payload.get("currency") or "usd").lower(),
            card=CardMetadata(
                payment_method_type=card.get("payment_method_type"),
                card_brand=card.get("brand"),
                card_last4=card.get("last4"),
            ),
        )
