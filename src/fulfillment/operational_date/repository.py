"""Repository for the OperationalDate aggregate."""

from fulfillment.domain import fulfillment
from fulfillment.operational_date.operational_date import OperationalDate


@fulfillment.repository(part_of=OperationalDate)
class OperationalDateRepository:
    def for_day(self, key: str) -> OperationalDate | None:
        """Return the record for a ``YYYY-MM-DD`` key, or None."""
        return self._dao.query.filter(id=key).all().first

    def in_range(self, start_key: str, end_key: str, max_days: int) -> list[OperationalDate]:
        """Records between two day keys, inclusive, oldest first."""
        records = self._dao.query.filter(id__gte=start_key, id__lte=end_key).limit(max_days).all().items
        return sorted(records, key=lambda record: record.id)
