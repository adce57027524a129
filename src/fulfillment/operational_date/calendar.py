"""Operational calendar service.

Administrators mark individual days as delivery-enabled or disabled. The
scheduler only needs ``is_delivery_enabled``; the other operations back the
admin API.
"""

from collections.abc import Iterable, Mapping

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from fulfillment.operational_date.operational_date import NOTES_UNCHANGED, OperationalDate
from fulfillment.utils.dates import day_key, normalize_day

logger = structlog.get_logger(__name__)


class OperationalCalendar:
    def _repo(self):
        return current_domain.repository_for(OperationalDate)

    def upsert_many(self, entries: Iterable[Mapping], admin_id: str | None = None) -> list[OperationalDate]:
        """Insert or update one record per entry, returned in input order.

        Each entry carries ``date`` and ``is_delivery_enabled`` and optionally
        ``notes``. A missing ``notes`` key leaves existing notes alone; None or
        a blank string clears them.
        """
        entries = list(entries)
        if not entries:
            raise ValidationError({"dates": ["At least one date entry is required"]})

        # Validate everything before writing anything
        prepared = []
        for index, entry in enumerate(entries):
            if "is_delivery_enabled" not in entry or entry["is_delivery_enabled"] is None:
                raise ValidationError({f"dates[{index}].is_delivery_enabled": ["This field is required"]})
            day = normalize_day(entry.get("date"), field=f"dates[{index}].date")
            if any(day == seen for seen, _, _ in prepared):
                raise ValidationError({f"dates[{index}].date": [f"Duplicate entry for {day.isoformat()}"]})
            prepared.append((day, bool(entry["is_delivery_enabled"]), entry.get("notes", NOTES_UNCHANGED)))

        repo = self._repo()
        results = []
        for day, enabled, notes in prepared:
            record = repo.for_day(day.isoformat())
            if record is None:
                record = OperationalDate.configure(
                    day,
                    is_delivery_enabled=enabled,
                    notes=None if notes is NOTES_UNCHANGED else notes,
                    set_by=admin_id,
                )
            else:
                record.reconfigure(enabled, notes=notes, set_by=admin_id)
            repo.add(record)
            results.append(record)

        logger.info(
            "operational_dates_set",
            count=len(results),
            admin_id=admin_id,
            enabled=sum(1 for r in results if r.is_delivery_enabled),
        )
        return results

    def query_range(self, start, end) -> list[OperationalDate]:
        """All configured days between ``start`` and ``end`` inclusive."""
        start_day = normalize_day(start, field="start")
        end_day = normalize_day(end, field="end")
        if start_day > end_day:
            raise ValidationError({"start": ["Start date must be on or before end date"]})
        span = (end_day - start_day).days + 1
        return self._repo().in_range(start_day.isoformat(), end_day.isoformat(), max_days=span)

    def get_status(self, day) -> OperationalDate | None:
        """The record for a day, or None when the day is not configured."""
        return self._repo().for_day(day_key(day))

    def is_delivery_enabled(self, day) -> bool:
        record = self.get_status(day)
        return bool(record and record.is_delivery_enabled)
