"""Activity log service for database operations."""

import json
import sqlite3
from datetime import datetime
from typing import Optional
from db.manager import to_db_timestamp
from models.activity_log import ActivityLog, ActivityLogPage
from logger import get_logger

logger = get_logger()


class ActivityLogService:
    """Service for recording and querying user activity."""

    def __init__(self, db_manager):
        """Initialize the activity log service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def log(
        self,
        action_type: str,
        details: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> Optional[int]:
        """Record an action.

        A failure to write the log entry is logged and otherwise ignored, so
        the action being recorded is never undone by it.

        Args:
            action_type: Action name, e.g. "CREATE_CATEGORY".
            details: Optional JSON-serializable details.
            user_id: Optional ID of the acting user.

        Returns:
            The new log entry's ID, or None if it could not be written.
        """
        try:
            payload = json.dumps(details, ensure_ascii=False) if details is not None else None
            with self.db_manager.connect() as conn:
                cursor = conn.execute(
                    "INSERT INTO activity_logs (user_id, action_type, details) VALUES (?, ?, ?)",
                    (user_id, action_type, payload),
                )
                conn.commit()
                return cursor.lastrowid
        except (sqlite3.Error, TypeError, ValueError) as e:
            logger.error(f"Failed to log activity {action_type}: {e}")
            return None

    def find(
        self,
        user_id: Optional[str] = None,
        action_type: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> ActivityLogPage:
        """Get one page of activity logs, newest first.

        Args:
            user_id: Optional user filter.
            action_type: Optional action filter.
            start: Optional inclusive lower bound on created_at.
            end: Optional inclusive upper bound on created_at.
                Both bounds are compared in UTC, which is how SQLite stamps
                created_at. Aware datetimes are converted; naive ones are
                taken to be UTC already.
            page: 1-based page number.
            page_size: Entries per page.

        Returns:
            ActivityLogPage with the entries and the total matching count.
        """
        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be positive")

        conditions = []
        params: list = []
        if user_id:
            conditions.append("user_id = ?")
            params.append(user_id)
        if action_type:
            conditions.append("action_type = ?")
            params.append(action_type)
        if start:
            conditions.append("created_at >= ?")
            params.append(to_db_timestamp(start))
        if end:
            conditions.append("created_at <= ?")
            params.append(to_db_timestamp(end))

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        with self.db_manager.connect() as conn:
            total = conn.execute(
                f"SELECT COUNT(*) FROM activity_logs {where_clause}", params
            ).fetchone()[0]

            rows = conn.execute(
                f"""
                SELECT id, user_id, action_type, details, created_at
                FROM activity_logs
                {where_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                [*params, page_size, (page - 1) * page_size],
            ).fetchall()

        return ActivityLogPage(
            items=[self._row_to_activity_log(row) for row in rows],
            total=total,
            page=page,
            page_size=page_size,
        )

    def _row_to_activity_log(self, row: tuple) -> ActivityLog:
        """Convert a database row to an ActivityLog object."""
        return ActivityLog(
            id=row[0],
            user_id=row[1],
            action_type=row[2],
            details=json.loads(row[3]) if row[3] else None,
            created_at=datetime.fromisoformat(row[4]),
        )
