"""
Data models for the ZoneClock application.
Uses dataclasses for clean, type-annotated data structures.
"""

import random
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Dict, Optional

from .settings import MicroBreakInterval

# Every micro-break lasts exactly this long; never configurable.
MICRO_BREAK_SECONDS = 10


def _new_id() -> str:
    return str(uuid.uuid4())


def draw_micro_break_interval(
    rng: random.Random,
    interval: Optional[MicroBreakInterval] = None
) -> int:
    """Draw the seconds until the next micro-break, bounds inclusive."""
    if interval is None:
        interval = MicroBreakInterval()
    return rng.randint(interval.min_seconds, interval.max_seconds)


class AppState(Enum):
    """Application-level session states."""
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FOCUSING = "focusing"
    RESTING = "resting"


class TimerPhase(Enum):
    """Phases of the tick engine."""
    IDLE = auto()
    FOCUSING = auto()
    MICRO_BREAK = auto()
    LONG_BREAK = auto()


class CycleStatus(Enum):
    """Status of a focus cycle."""
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"


class LongBreakStatus(Enum):
    """Status of a long break."""
    ACTIVE = "active"
    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass
class Cycle:
    """
    One focus cycle with its pause bookkeeping.

    Owned by the SessionManager while in flight. Methods called from a
    status that forbids them return False and change nothing.
    """
    planned_minutes: int = 90
    start_ts: float = field(default_factory=time.time)
    id: str = field(default_factory=_new_id)
    status: CycleStatus = CycleStatus.ACTIVE
    end_ts: Optional[float] = None
    actual_seconds: int = 0
    paused_seconds: int = 0
    micro_break_count: int = 0
    pause_start_ts: Optional[float] = None

    @property
    def planned_seconds(self) -> int:
        return self.planned_minutes * 60

    @property
    def is_terminal(self) -> bool:
        return self.status in (CycleStatus.COMPLETED, CycleStatus.STOPPED)

    def pause(self, now: Optional[float] = None) -> bool:
        if self.status != CycleStatus.ACTIVE:
            return False
        self.status = CycleStatus.PAUSED
        self.pause_start_ts = time.time() if now is None else now
        return True

    def resume(self, now: Optional[float] = None) -> bool:
        if self.status != CycleStatus.PAUSED or self.pause_start_ts is None:
            return False
        now = time.time() if now is None else now
        self.paused_seconds += max(0, int(now - self.pause_start_ts))
        self.pause_start_ts = None
        self.status = CycleStatus.ACTIVE
        return True

    def stop(self, now: Optional[float] = None) -> bool:
        if self.status not in (CycleStatus.ACTIVE, CycleStatus.PAUSED):
            return False
        now = time.time() if now is None else now
        if self.status == CycleStatus.PAUSED and self.pause_start_ts is not None:
            self.paused_seconds += max(0, int(now - self.pause_start_ts))
            self.pause_start_ts = None
        self._finish(CycleStatus.STOPPED, now)
        return True

    def complete(self, now: Optional[float] = None) -> bool:
        if self.status != CycleStatus.ACTIVE:
            return False
        self._finish(CycleStatus.COMPLETED, time.time() if now is None else now)
        return True

    def _finish(self, status: CycleStatus, now: float):
        self.status = status
        self.end_ts = now
        self.actual_seconds = max(0, int(now - self.start_ts) - self.paused_seconds)

    def record_micro_break(self):
        self.micro_break_count += 1

    def current_duration(self, now: Optional[float] = None) -> int:
        """Focused seconds so far (live while in flight, recorded once terminal)."""
        if self.is_terminal:
            return self.actual_seconds
        now = time.time() if now is None else now
        elapsed = int(now - self.start_ts) - self.paused_seconds
        if self.status == CycleStatus.PAUSED and self.pause_start_ts is not None:
            elapsed -= int(now - self.pause_start_ts)
        return max(0, elapsed)

    def completion_rate(self, now: Optional[float] = None) -> float:
        """Fraction of the planned duration spent focusing, clamped to [0, 1]."""
        if self.planned_seconds <= 0:
            return 0.0
        return min(1.0, max(0.0, self.current_duration(now) / self.planned_seconds))

    def remaining_seconds(self, now: Optional[float] = None) -> int:
        return max(0, self.planned_seconds - self.current_duration(now))

    def progress(self, now: Optional[float] = None) -> float:
        return self.completion_rate(now)


@dataclass(frozen=True)
class MicroBreak:
    """A fixed-length pause triggered during an active cycle."""
    cycle_id: str
    sequence: int
    next_interval: int
    trigger_ts: float = field(default_factory=time.time)
    id: str = field(default_factory=_new_id)
    duration: int = field(default=MICRO_BREAK_SECONDS, init=False)


@dataclass
class LongBreak:
    """Rest period following a completed cycle."""
    cycle_id: str
    duration_minutes: int = 20
    start_ts: float = field(default_factory=time.time)
    id: str = field(default_factory=_new_id)
    status: LongBreakStatus = LongBreakStatus.ACTIVE
    end_ts: Optional[float] = None

    def complete(self, now: Optional[float] = None):
        self.status = LongBreakStatus.COMPLETED
        self.end_ts = time.time() if now is None else now

    def skip(self, now: Optional[float] = None):
        self.status = LongBreakStatus.SKIPPED
        self.end_ts = time.time() if now is None else now

    def remaining_seconds(self, now: Optional[float] = None) -> int:
        now = time.time() if now is None else now
        return max(0, self.duration_minutes * 60 - int(now - self.start_ts))

    def progress(self, now: Optional[float] = None) -> float:
        planned = self.duration_minutes * 60
        if planned <= 0:
            return 0.0
        now = time.time() if now is None else now
        return min(1.0, max(0.0, (now - self.start_ts) / planned))


@dataclass(frozen=True)
class CycleRecord:
    """
    Immutable snapshot of a terminal cycle.
    Stored in the database for statistics.
    """
    cycle_id: str
    started_at: datetime
    date: datetime  # when the cycle ended
    planned_minutes: int
    actual_seconds: int
    micro_breaks_count: int
    completion_rate: float
    was_completed: bool
    id: str = field(default_factory=_new_id)

    @classmethod
    def from_cycle(cls, cycle: Cycle) -> "CycleRecord":
        """Build the record for a completed or stopped cycle."""
        if not cycle.is_terminal:
            raise ValueError(f"Cycle {cycle.id} is still {cycle.status.value}")
        end_ts = cycle.end_ts if cycle.end_ts is not None else time.time()
        return cls(
            cycle_id=cycle.id,
            started_at=datetime.fromtimestamp(cycle.start_ts),
            date=datetime.fromtimestamp(end_ts),
            planned_minutes=cycle.planned_minutes,
            actual_seconds=cycle.actual_seconds,
            micro_breaks_count=cycle.micro_break_count,
            completion_rate=cycle.completion_rate(),
            was_completed=cycle.status == CycleStatus.COMPLETED,
        )

    @property
    def actual_minutes(self) -> int:
        return self.actual_seconds // 60

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cycle_id": self.cycle_id,
            "started_at": self.started_at.isoformat(),
            "date": self.date.isoformat(),
            "planned_minutes": self.planned_minutes,
            "actual_seconds": self.actual_seconds,
            "micro_breaks_count": self.micro_breaks_count,
            "completion_rate": self.completion_rate,
            "was_completed": self.was_completed,
        }


@dataclass(frozen=True)
class TimerSnapshot:
    """
    Current timer state passed to UI components on every tick.
    """
    phase: TimerPhase = TimerPhase.IDLE
    is_running: bool = False
    elapsed_seconds: int = 0
    remaining_seconds: int = 0
    total_seconds: Optional[int] = None
    micro_break_countdown: int = 0

    @property
    def progress(self) -> float:
        """Return progress as a fraction (0 when no determinate total)."""
        if not self.total_seconds:
            return 0.0
        return self.elapsed_seconds / self.total_seconds

    def format_remaining(self) -> str:
        """Format remaining time as MM:SS."""
        return format_mm_ss(self.remaining_seconds)

    def format_elapsed(self) -> str:
        """Format elapsed time as MM:SS."""
        return format_mm_ss(self.elapsed_seconds)


def format_mm_ss(seconds: int) -> str:
    minutes = seconds // 60
    seconds = seconds % 60
    return f"{minutes:02d}:{seconds:02d}"
