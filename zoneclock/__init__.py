# Core package for the ZoneClock focus timer
from .controller import FocusController
from .errors import AppError, ErrorKind, Result, StorageError
from .models import AppState, Cycle, CycleRecord, LongBreak, MicroBreak, TimerPhase
from .session_manager import SessionManager
from .settings import Settings
from .statistics import DailyStatistics, Statistics, Trend
from .storage import Storage
from .timer_engine import TimerEngine

__all__ = [
    'AppError', 'AppState', 'Cycle', 'CycleRecord', 'DailyStatistics',
    'ErrorKind', 'FocusController', 'LongBreak', 'MicroBreak', 'Result',
    'SessionManager', 'Settings', 'Statistics', 'Storage', 'StorageError',
    'TimerEngine', 'TimerPhase', 'Trend',
]
