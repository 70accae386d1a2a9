"""
Aggregate statistics over persisted cycle records.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time, timedelta
from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple

from .models import CycleRecord
from .storage import Storage

TREND_WINDOW_DAYS = 30


@dataclass(frozen=True)
class DailyStatistics:
    """Aggregates for one day (or an arbitrary range anchored at `date`)."""
    date: date
    total_cycles: int = 0
    completed_cycles: int = 0
    total_focus_minutes: int = 0
    total_break_minutes: int = 0
    micro_breaks_count: int = 0
    average_completion_rate: float = 0.0

    @property
    def completion_ratio(self) -> float:
        """Share of cycles that ran to completion."""
        if self.total_cycles == 0:
            return 0.0
        return self.completed_cycles / self.total_cycles

    @property
    def average_focus_minutes(self) -> int:
        if self.completed_cycles == 0:
            return 0
        return self.total_focus_minutes // self.completed_cycles


class Trend(NamedTuple):
    """Relative change of the last window against the window before it."""
    focus_time_improvement: float
    completion_rate_improvement: float


def _improvement(current: float, previous: float) -> float:
    if previous > 0:
        return (current - previous) / previous
    return 1.0 if current > 0 else 0.0


def _day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, dt_time.min)
    return start, datetime.combine(day, dt_time.max)


class Statistics:
    """
    Statistics queries over the cycle records in Storage.

    Break time is approximated as completed cycles x the configured break
    duration, not measured from actual long breaks.
    """

    def __init__(self, storage: Storage):
        self.storage = storage

    def summarize(
        self,
        records: Iterable[CycleRecord],
        day: date,
        break_minutes: Optional[int] = None
    ) -> DailyStatistics:
        """Fold records into a DailyStatistics value."""
        records = list(records)
        if break_minutes is None:
            break_minutes = self.storage.load_settings().break_duration

        completed = sum(1 for r in records if r.was_completed)
        average_rate = 0.0
        if records:
            average_rate = sum(r.completion_rate for r in records) / len(records)

        return DailyStatistics(
            date=day,
            total_cycles=len(records),
            completed_cycles=completed,
            total_focus_minutes=sum(r.actual_minutes for r in records),
            total_break_minutes=completed * break_minutes,
            micro_breaks_count=sum(r.micro_breaks_count for r in records),
            average_completion_rate=average_rate,
        )

    def statistics_for_day(self, day: Optional[date] = None) -> DailyStatistics:
        """Get statistics for a single calendar day (today by default)."""
        day = day or date.today()
        start, end = _day_bounds(day)
        return self.summarize(self.storage.get_cycle_records(start, end), day)

    def statistics_for_last_7_days(self, today: Optional[date] = None) -> List[DailyStatistics]:
        """Get one entry per day for the past week, oldest first."""
        today = today or date.today()
        start, _ = _day_bounds(today - timedelta(days=6))
        _, end = _day_bounds(today)
        records = self.storage.get_cycle_records(start, end)
        break_minutes = self.storage.load_settings().break_duration

        by_day: Dict[date, List[CycleRecord]] = defaultdict(list)
        for record in records:
            by_day[record.date.date()].append(record)

        days = [today - timedelta(days=offset) for offset in range(6, -1, -1)]
        return [self.summarize(by_day.get(d, []), d, break_minutes) for d in days]

    def statistics_for_range(self, start: datetime, end: datetime) -> DailyStatistics:
        """Get statistics for records ending within [start, end]."""
        return self.summarize(self.storage.get_cycle_records(start, end), start.date())

    def trend_30_days(self, today: Optional[date] = None) -> Trend:
        """
        Compare the last 30 days with the 30 days before them.

        Each ratio is (current - previous) / previous. With no previous
        activity the ratio is 1.0 if there is current activity, else 0.0.
        """
        today = today or date.today()
        current_start, _ = _day_bounds(today - timedelta(days=TREND_WINDOW_DAYS - 1))
        _, current_end = _day_bounds(today)
        previous_start, _ = _day_bounds(today - timedelta(days=2 * TREND_WINDOW_DAYS - 1))
        _, previous_end = _day_bounds(today - timedelta(days=TREND_WINDOW_DAYS))

        current = self.statistics_for_range(current_start, current_end)
        previous = self.statistics_for_range(previous_start, previous_end)

        return Trend(
            focus_time_improvement=_improvement(
                current.total_focus_minutes, previous.total_focus_minutes
            ),
            completion_rate_improvement=_improvement(
                current.average_completion_rate, previous.average_completion_rate
            ),
        )

    def peak_focus_hours(self, top_n: int = 4) -> List[Tuple[int, float]]:
        """
        Rank hours of the day by focused time.

        Focus seconds are bucketed by the hour each cycle started. The score
        is the bucket total relative to the busiest hour, in [0, 1].
        Returns at most top_n (hour, score) pairs, best first.
        """
        totals: Dict[int, int] = defaultdict(int)
        for record in self.storage.load_all_cycle_records():
            totals[record.started_at.hour] += record.actual_seconds

        best = max(totals.values(), default=0)
        if best <= 0 or top_n <= 0:
            return []

        ranked = sorted(
            ((hour, seconds / best) for hour, seconds in totals.items() if seconds > 0),
            key=lambda item: (-item[1], item[0]),
        )
        return ranked[:top_n]

    def weekly_pattern(self, days: int = TREND_WINDOW_DAYS, today: Optional[date] = None) -> Dict[str, int]:
        """Focus minutes per weekday name over the last `days` days."""
        today = today or date.today()
        start, _ = _day_bounds(today - timedelta(days=days - 1))
        _, end = _day_bounds(today)

        pattern: Dict[str, int] = defaultdict(int)
        for record in self.storage.get_cycle_records(start, end):
            pattern[record.date.strftime('%A')] += record.actual_minutes
        return dict(pattern)
