"""OperationalDate aggregate — one record per calendar day.

A day's record says whether deliveries may run on that day. Days without a
record are "not configured", which the scheduler treats the same as
disabled. The aggregate identity is the ``YYYY-MM-DD`` key of the day, so two
records for the same day cannot exist.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, Date, DateTime, Identifier, Text

from fulfillment.domain import fulfillment
from fulfillment.operational_date.events import OperationalDateSet
from fulfillment.utils.dates import normalize_day

# Sentinel for "notes not provided" (leave unchanged) vs None (clear)
NOTES_UNCHANGED = object()


@fulfillment.aggregate
class OperationalDate:
    id = Identifier(identifier=True)
    date = Date(required=True)
    is_delivery_enabled = Boolean(required=True, default=False)
    notes = Text()
    set_by = Identifier()
    updated_at = DateTime()

    @classmethod
    def configure(cls, day, is_delivery_enabled: bool, notes=None, set_by: str | None = None):
        """Create the record for a day that has never been configured."""
        calendar_day = normalize_day(day)
        record = cls(
            id=calendar_day.isoformat(),
            date=calendar_day,
            is_delivery_enabled=bool(is_delivery_enabled),
            notes=_clean_notes(notes),
            set_by=set_by,
            updated_at=datetime.now(UTC),
        )
        record._record_change()
        return record

    def reconfigure(self, is_delivery_enabled: bool, notes=NOTES_UNCHANGED, set_by: str | None = None) -> None:
        """Overwrite the day's flag. Notes are only touched when given."""
        self.is_delivery_enabled = bool(is_delivery_enabled)
        if notes is not NOTES_UNCHANGED:
            self.notes = _clean_notes(notes)
        if set_by:
            self.set_by = set_by
        self.updated_at = datetime.now(UTC)
        self._record_change()

    def _record_change(self) -> None:
        self.raise_(
            OperationalDateSet(
                day=self.id,
                is_delivery_enabled=self.is_delivery_enabled,
                notes=self.notes,
                set_by=self.set_by,
                updated_at=self.updated_at,
            )
        )


def _clean_notes(notes) -> str | None:
    if notes is None or notes is NOTES_UNCHANGED:
        return None
    text = str(notes).strip()
    return text or None
