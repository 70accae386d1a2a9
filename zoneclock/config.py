"""
Runtime configuration: data locations and logging.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

APP_DIR_NAME = "ZoneClock"
DB_FILE_NAME = "zoneclock.db"

ENV_DATA_DIR = "ZONECLOCK_DATA_DIR"
ENV_DB_PATH = "ZONECLOCK_DB"
ENV_LOG_LEVEL = "ZONECLOCK_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_app_data_dir() -> Path:
    """
    Get the appropriate application data directory based on OS.
    Creates the directory if it doesn't exist.
    """
    override = os.environ.get(ENV_DATA_DIR)
    if override:
        app_dir = Path(override).expanduser()
        app_dir.mkdir(parents=True, exist_ok=True)
        return app_dir

    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', Path.home()))
    elif os.name == 'posix':
        # macOS uses ~/Library/Application Support, Linux uses ~/.local/share
        if os.uname().sysname == 'Darwin':
            base = Path.home() / 'Library' / 'Application Support'
        else:
            base = Path(os.environ.get('XDG_DATA_HOME', Path.home() / '.local' / 'share'))
    else:
        base = Path.home()

    app_dir = base / APP_DIR_NAME
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def resolve_db_path(db_path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit path, then $ZONECLOCK_DB, then the app data directory."""
    raw = db_path or os.environ.get(ENV_DB_PATH)
    if raw:
        path = Path(raw).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
    return get_app_data_dir() / DB_FILE_NAME


def resolve_log_level(level: Optional[str] = None) -> int:
    name = (level or os.environ.get(ENV_LOG_LEVEL) or "INFO").upper()
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: Optional[str] = None):
    """Configure root logging once at startup."""
    logging.basicConfig(level=resolve_log_level(level), format=LOG_FORMAT)
