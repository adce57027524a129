"""Operational calendar management — command and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, Text

from fulfillment.domain import fulfillment
from fulfillment.operational_date.calendar import OperationalCalendar
from fulfillment.operational_date.operational_date import OperationalDate


@fulfillment.command(part_of="OperationalDate")
class SetOperationalDates:
    """Enable or disable deliveries on one or more calendar days."""

    entries = Text(required=True)  # JSON list of {date, is_delivery_enabled, notes?}
    admin_id = Identifier()


@fulfillment.command_handler(part_of=OperationalDate)
class OperationalDateHandler:
    @handle(SetOperationalDates)
    def set_operational_dates(self, command):
        try:
            entries = json.loads(command.entries)
        except json.JSONDecodeError as exc:
            raise ValidationError({"entries": ["Entries must be a JSON list"]}) from exc
        if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
            raise ValidationError({"entries": ["Entries must be a JSON list of objects"]})

        records = OperationalCalendar().upsert_many(entries, admin_id=command.admin_id)
        return [record.id for record in records]
