from __future__ import annotations

from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Optional, Union

from boxstock.timeutil import Timestamp, parse_timestamp

DATE_RANGES = ("all", "today", "yesterday", "week", "month", "quarter", "custom")

DateInput = Union[date, str, None]


def _to_date(value: DateInput) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


class DateRangeFilter:
    """
    Decides whether a timestamp falls in the selected window.

    Bounds are computed as wall-clock times in ``tz`` (local time when None).
    Aware timestamps are converted into that zone before comparing. A range
    name outside DATE_RANGES filters nothing.
    """

    def __init__(
        self,
        selected_range: str = "all",
        start_date: DateInput = None,
        end_date: DateInput = None,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.selected_range = selected_range
        self.start_date = _to_date(start_date)
        self.end_date = _to_date(end_date)
        self.tz = tz
        self._clock = clock

    def change_range(self, value: str) -> None:
        self.selected_range = value
        if value != "custom":
            self.start_date = None
            self.end_date = None

    def set_custom_range(self, start_date: DateInput, end_date: DateInput) -> None:
        self.selected_range = "custom"
        self.start_date = _to_date(start_date)
        self.end_date = _to_date(end_date)

    def _now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        return datetime.now(self.tz) if self.tz else datetime.now()

    def _wall_clock(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value
        return value.astimezone(self.tz).replace(tzinfo=None)

    def is_in_range(self, timestamp: Timestamp) -> bool:
        ts = self._wall_clock(parse_timestamp(timestamp))

        if self.start_date and self.end_date:
            start = datetime.combine(self.start_date, time.min)
            end = datetime.combine(self.end_date, time(23, 59, 59, 999000))
            return start <= ts <= end

        if self.selected_range == "all":
            return True

        today = datetime.combine(self._wall_clock(self._now()).date(), time.min)
        yesterday = today - timedelta(days=1)
        # weekday(): Monday == 0, so Sunday-based index is (weekday + 1) % 7
        week_start = today - timedelta(days=(today.weekday() + 1) % 7)
        month_start = today.replace(day=1)
        quarter_start = today.replace(month=((today.month - 1) // 3) * 3 + 1, day=1)

        if self.selected_range == "today":
            return ts >= today
        if self.selected_range == "yesterday":
            return yesterday <= ts < today
        if self.selected_range == "week":
            return ts >= week_start
        if self.selected_range == "month":
            return ts >= month_start
        if self.selected_range == "quarter":
            return ts >= quarter_start
        return True

    __call__ = is_in_range
