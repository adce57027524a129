"""Delivery date scheduler.

Converts "N deliveries starting from day X" into concrete calendar dates by
walking forward one day at a time and keeping the days the operational
calendar has enabled. The result is ascending and, for a fixed calendar,
always the same.
"""

from datetime import date, timedelta
from typing import Protocol

import structlog
from protean.exceptions import ValidationError

from fulfillment.errors import SchedulingError
from fulfillment.utils.dates import normalize_day

logger = structlog.get_logger(__name__)

DEFAULT_SEARCH_WINDOW_DAYS = 90


class DeliveryCalendar(Protocol):
    def is_delivery_enabled(self, day: date) -> bool: ...


class DeliveryDateScheduler:
    def __init__(self, calendar: DeliveryCalendar, max_search_window_days: int = DEFAULT_SEARCH_WINDOW_DAYS):
        self.calendar = calendar
        self.max_search_window_days = max_search_window_days

    def compute_schedule(
        self,
        first_candidate_date,
        count: int,
        max_search_window_days: int | None = None,
    ) -> list[date]:
        """Return ``count`` enabled days on or after ``first_candidate_date``.

        Only days within ``max_search_window_days`` of the first candidate are
        considered. Raises SchedulingError when the window holds too few
        enabled days; no partial schedule is ever returned.
        """
        window = self.max_search_window_days if max_search_window_days is None else max_search_window_days
        if count is None or count < 1:
            raise ValidationError({"count": ["At least one delivery is required"]})
        if window < 1:
            raise ValidationError({"max_search_window_days": ["Search window must be at least one day"]})

        start = normalize_day(first_candidate_date, field="first_candidate_date")
        schedule: list[date] = []
        for offset in range(window):
            day = start + timedelta(days=offset)
            if self._is_enabled(day):
                schedule.append(day)
                if len(schedule) == count:
                    return schedule

        logger.warning(
            "delivery_schedule_exhausted",
            start=start.isoformat(),
            requested=count,
            found=len(schedule),
            window_days=window,
        )
        raise SchedulingError(requested=count, found=len(schedule), window_days=window)

    def _is_enabled(self, day: date) -> bool:
        try:
            return bool(self.calendar.is_delivery_enabled(day))
        except Exception as exc:  # noqa: BLE001
            # One unreadable day must not abort the whole scan
            logger.warning("calendar_lookup_failed", day=day.isoformat(), error=str(exc))
            return False
