"""Database manager for the archive's SQLite database."""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional
from config import Config, get_migrations_dir

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def to_db_timestamp(value: datetime) -> str:
    """Format a datetime the way SQLite's CURRENT_TIMESTAMP stores it (UTC).

    Aware datetimes are converted to UTC; naive ones are taken to be UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp into a naive UTC datetime."""
    return datetime.fromisoformat(value) if value else None


def utc_now() -> datetime:
    """Current time as a naive UTC datetime, comparable with stored timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DatabaseManager:
    """Opens connections to the archive database.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: Config):
        self.config = config

    @contextmanager
    def connect(self):
        """Open a connection with foreign keys enforced, closing it afterwards.

        Yields:
            sqlite3.Connection: Database connection.
        """
        db_path = self.config.db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path)
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def get_db_path(self):
        """Get the current database path."""
        return self.config.db_path

    def get_migrations_dir(self):
        """Get the directory holding the *.sql migrations."""
        return get_migrations_dir()
