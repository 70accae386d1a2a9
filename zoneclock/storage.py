"""
SQLite storage module for the ZoneClock application.
Handles settings, flags, and completed-cycle records.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from .config import resolve_db_path
from .errors import StorageError
from .models import CycleRecord
from .settings import Settings

logger = logging.getLogger(__name__)

# Keys in the settings table
KEY_SETTINGS = "settings"
KEY_DO_NOT_DISTURB = "do_not_disturb"
KEY_NOTIFICATION_ENABLED = "notification_enabled"
KEY_ONBOARDING_COMPLETED = "onboarding_completed"
KEY_CURRENT_CYCLE_ID = "current_cycle_id"


class Storage:
    """
    Database storage manager.
    Handles all SQLite operations for settings and cycle records.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Initialize storage with database path.

        Args:
            db_path: Optional custom path for database file.
                    If None, uses $ZONECLOCK_DB or the app data directory.
        """
        self.db_path = str(resolve_db_path(db_path))
        self._init_database()

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections; one transaction per use."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self):
        """Initialize database schema if tables don't exist."""
        with self._get_connection() as conn:
            cursor = conn.cursor()

            # Key/value table for the settings blob and flags
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS cycle_records (
                    id TEXT PRIMARY KEY,
                    cycle_id TEXT UNIQUE NOT NULL,
                    started_at TEXT NOT NULL,
                    ended_at TEXT NOT NULL,
                    planned_minutes INTEGER NOT NULL,
                    actual_sec INTEGER NOT NULL,
                    micro_breaks INTEGER NOT NULL DEFAULT 0,
                    completion_rate REAL NOT NULL,
                    was_completed INTEGER NOT NULL
                )
            ''')

            cursor.execute('''
                CREATE INDEX IF NOT EXISTS idx_cycle_records_ended
                ON cycle_records(ended_at)
            ''')

    # ==================== Key/value ====================

    def get_value(self, key: str) -> Optional[str]:
        """Get a raw stored value, or None if missing."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT value FROM settings WHERE key = ?', (key,))
            row = cursor.fetchone()
            return row['value'] if row else None

    def set_value(self, key: str, value: str):
        with self._get_connection() as conn:
            conn.execute('''
                INSERT OR REPLACE INTO settings (key, value)
                VALUES (?, ?)
            ''', (key, value))

    def delete_value(self, key: str):
        with self._get_connection() as conn:
            conn.execute('DELETE FROM settings WHERE key = ?', (key,))

    def get_flag(self, key: str, default: bool = False) -> bool:
        value = self.get_value(key)
        if value is None:
            return default
        return value.lower() == 'true'

    def set_flag(self, key: str, value: bool):
        self.set_value(key, str(bool(value)).lower())

    # ==================== Settings ====================

    def load_settings(self) -> Settings:
        """
        Get application settings.
        Falls back to defaults when the stored blob is missing, corrupt or invalid.
        """
        raw = self.get_value(KEY_SETTINGS)
        if raw is None:
            return Settings()

        try:
            settings = Settings.from_dict(json.loads(raw))
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            logger.warning("Stored settings are corrupt, using defaults: %s", e)
            return Settings()

        errors = settings.validate()
        if errors:
            logger.warning("Stored settings are invalid, using defaults: %s", "; ".join(errors))
            return Settings()
        return settings

    def save_settings(self, settings: Settings):
        """Save application settings as a JSON blob, mirroring its flags."""
        with self._get_connection() as conn:
            conn.executemany('''
                INSERT OR REPLACE INTO settings (key, value)
                VALUES (?, ?)
            ''', [
                (KEY_SETTINGS, json.dumps(settings.to_dict())),
                (KEY_NOTIFICATION_ENABLED, str(settings.notification_enabled).lower()),
                (KEY_DO_NOT_DISTURB, str(settings.dnd_enabled).lower()),
            ])

    # ==================== Cycle records ====================

    def save_cycle_record(self, record: CycleRecord):
        """Insert a cycle record in a single transaction."""
        with self._get_connection() as conn:
            conn.execute('''
                INSERT INTO cycle_records
                (id, cycle_id, started_at, ended_at, planned_minutes, actual_sec,
                 micro_breaks, completion_rate, was_completed)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (
                record.id,
                record.cycle_id,
                record.started_at.isoformat(),
                record.date.isoformat(),
                record.planned_minutes,
                record.actual_seconds,
                record.micro_breaks_count,
                record.completion_rate,
                1 if record.was_completed else 0
            ))
        logger.info(
            "Saved cycle record: %ss, completed=%s",
            record.actual_seconds,
            record.was_completed,
        )

    def load_all_cycle_records(self) -> List[CycleRecord]:
        """Get all cycle records, oldest first."""
        return self.get_cycle_records()

    def get_cycle_records(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> List[CycleRecord]:
        """
        Get cycle records whose end time falls in an inclusive range.

        Args:
            start_date: Only records ending at or after this moment.
            end_date: Only records ending at or before this moment.
        """
        query = 'SELECT * FROM cycle_records WHERE 1=1'
        params = []

        if start_date is not None:
            query += ' AND ended_at >= ?'
            params.append(start_date.isoformat())

        if end_date is not None:
            query += ' AND ended_at <= ?'
            params.append(end_date.isoformat())

        query += ' ORDER BY ended_at'

        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [self._row_to_record(row) for row in cursor.fetchall()]

    def record_count(self) -> int:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM cycle_records')
            return cursor.fetchone()[0]

    def clear_all_records(self):
        """Delete every cycle record."""
        with self._get_connection() as conn:
            conn.execute('DELETE FROM cycle_records')
        logger.info("All cycle records cleared")

    def _row_to_record(self, row: sqlite3.Row) -> CycleRecord:
        """Convert a database row to a CycleRecord object."""
        return CycleRecord(
            id=row['id'],
            cycle_id=row['cycle_id'],
            started_at=datetime.fromisoformat(row['started_at']),
            date=datetime.fromisoformat(row['ended_at']),
            planned_minutes=row['planned_minutes'],
            actual_seconds=row['actual_sec'],
            micro_breaks_count=row['micro_breaks'],
            completion_rate=row['completion_rate'],
            was_completed=bool(row['was_completed'])
        )
