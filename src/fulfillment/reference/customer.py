"""Customer reference data — the delivery address and gateway identity."""

from protean.fields import String

from fulfillment.domain import fulfillment


@fulfillment.aggregate
class Customer:
    full_name = String(required=True, max_length=200)
    email = String(max_length=254)
    phone = String(max_length=30)
    address = String(max_length=255)
    city = String(max_length=100)
    postal_code = String(max_length=20)
    current_location = String(max_length=255)
    gateway_customer_id = String(max_length=255)

    def address_line(self) -> str:
        """Single-line address suitable for geocoding."""
        parts = [self.address, self.city, self.postal_code]
        return ", ".join(part.strip() for part in parts if part and part.strip())
