"""Operational calendar events."""

from protean.fields import Boolean, DateTime, Identifier, String, Text

from fulfillment.domain import fulfillment


@fulfillment.event(part_of="OperationalDate")
class OperationalDateSet:
    """An administrator enabled or disabled deliveries on a calendar day."""

    __version__ = 1

    day = String(required=True, max_length=10)
    is_delivery_enabled = Boolean(required=True)
    notes = Text()
    set_by = Identifier()
    updated_at = DateTime(required=True)
