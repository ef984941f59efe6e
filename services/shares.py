"""External share service for database operations.

A share is a public link to a set of projects. It can be deactivated at any
time and may carry an expiry time after which it stops working.
"""

import re
import secrets
import string
import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from db.manager import from_db_timestamp, to_db_timestamp, utc_now
from models.share import ExternalShare
from logger import get_logger

logger = get_logger()

SHARE_ID_ALPHABET = string.ascii_letters + string.digits
SHARE_ID_LENGTH = 12
SHARE_ID_ATTEMPTS = 10
CUSTOM_SHARE_ID = re.compile(r"^[A-Za-z0-9]{4,20}$")

_SELECT_COLUMNS = """
    SELECT id, share_id, is_active, expires_at, view_count, created_by,
           created_at, last_accessed_at
    FROM external_shares
"""


def generate_share_id() -> str:
    """Random URL-safe slug of SHARE_ID_LENGTH letters and digits."""
    return "".join(secrets.choice(SHARE_ID_ALPHABET) for _ in range(SHARE_ID_LENGTH))


class ShareService:
    """Service for managing external share links."""

    def __init__(self, db_manager):
        """Initialize the share service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(
        self,
        project_ids: Iterable[str],
        expires_at: Optional[datetime] = None,
        created_by: Optional[str] = None,
    ) -> ExternalShare:
        """Create a share link for the given projects.

        Args:
            project_ids: Existing project IDs, in display order. Repeated IDs
                are ignored.
            expires_at: Optional expiry; must be in the future. Naive values
                are taken to be UTC.
            created_by: Optional ID of the creating user.

        Returns:
            The created ExternalShare.

        Raises:
            ValueError: If no project is given, a project does not exist or
                the expiry is not in the future.
        """
        project_ids = list(dict.fromkeys(project_ids or []))
        if not project_ids:
            raise ValueError("Select at least one project to share")
        expires_text = self._validate_expiry(expires_at)

        share_pk = str(uuid.uuid4())
        with self.db_manager.connect() as conn:
            self._validate_projects(conn, project_ids)
            share_id = self._unused_share_id(conn)
            conn.execute(
                """
                INSERT INTO external_shares (id, share_id, expires_at, created_by)
                VALUES (?, ?, ?, ?)
                """,
                (share_pk, share_id, expires_text, created_by),
            )
            self._link_projects(conn, share_pk, project_ids)
            conn.commit()

        logger.debug(f"Created share {share_id} for {len(project_ids)} project(s)")
        return self.find(share_pk)

    def find(self, share_pk: str) -> Optional[ExternalShare]:
        """Get a share by its ID.

        Args:
            share_pk: The share's primary key.

        Returns:
            ExternalShare if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"{_SELECT_COLUMNS} WHERE id = ?", (share_pk,)
            ).fetchone()

            if row:
                return self._row_to_share(conn, row)
            return None

    def find_by_share_id(self, share_id: str) -> Optional[ExternalShare]:
        """Get a share by its public slug."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"{_SELECT_COLUMNS} WHERE share_id = ?", (share_id,)
            ).fetchone()

            if row:
                return self._row_to_share(conn, row)
            return None

    def find_all(
        self,
        is_active: Optional[bool] = None,
        is_expired: Optional[bool] = None,
    ) -> List[ExternalShare]:
        """Get share links, newest first.

        Args:
            is_active: Optional filter on the active flag.
            is_expired: True for links past their expiry, False for links
                without one or not yet expired, None for both.

        Returns:
            List of ExternalShare objects.
        """
        conditions = []
        params: list = []
        if is_active is not None:
            conditions.append("is_active = ?")
            params.append(1 if is_active else 0)
        if is_expired is True:
            conditions.append("expires_at IS NOT NULL AND expires_at < ?")
            params.append(to_db_timestamp(utc_now()))
        elif is_expired is False:
            conditions.append("(expires_at IS NULL OR expires_at >= ?)")
            params.append(to_db_timestamp(utc_now()))

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"{_SELECT_COLUMNS} {where_clause} ORDER BY created_at DESC, rowid DESC",
                params,
            ).fetchall()
            return [self._row_to_share(conn, row) for row in rows]

    def update(
        self,
        share_pk: str,
        expires_at: Optional[datetime] = None,
        clear_expiry: bool = False,
        is_active: Optional[bool] = None,
        share_id: Optional[str] = None,
        project_ids: Optional[Iterable[str]] = None,
    ) -> ExternalShare:
        """Change a share's expiry, active flag, slug or projects.

        Args:
            share_pk: The share's primary key.
            expires_at: New expiry; must be in the future.
            clear_expiry: Remove the expiry so the link never expires.
            is_active: New active flag.
            share_id: New public slug, 4 to 20 letters and digits.
            project_ids: New project list, replacing the current one.

        Returns:
            The updated ExternalShare.

        Raises:
            ValueError: If nothing is given to update or a value is invalid.
            Exception: If the share is not found.
        """
        if expires_at is not None and clear_expiry:
            raise ValueError("Give either a new expiry or clear_expiry, not both")

        updates = []
        params: list = []

        if expires_at is not None:
            updates.append("expires_at = ?")
            params.append(self._validate_expiry(expires_at))
        elif clear_expiry:
            updates.append("expires_at = NULL")

        if is_active is not None:
            updates.append("is_active = ?")
            params.append(1 if is_active else 0)

        if share_id is not None:
            if not CUSTOM_SHARE_ID.match(share_id):
                raise ValueError("Share ID must be 4 to 20 letters and digits")
            updates.append("share_id = ?")
            params.append(share_id)

        if project_ids is not None:
            project_ids = list(dict.fromkeys(project_ids))
            if not project_ids:
                raise ValueError("Select at least one project to share")

        if not updates and project_ids is None:
            raise ValueError("Nothing to update")

        with self.db_manager.connect() as conn:
            if not conn.execute(
                "SELECT 1 FROM external_shares WHERE id = ?", (share_pk,)
            ).fetchone():
                raise Exception(f"Share with ID {share_pk} not found")

            if share_id is not None and conn.execute(
                "SELECT 1 FROM external_shares WHERE share_id = ? AND id != ?",
                (share_id, share_pk),
            ).fetchone():
                raise ValueError(f"Share ID {share_id} is already in use")

            if project_ids is not None:
                self._validate_projects(conn, project_ids)
                conn.execute("DELETE FROM share_projects WHERE share_id = ?", (share_pk,))
                self._link_projects(conn, share_pk, project_ids)

            updates.append("updated_at = CURRENT_TIMESTAMP")
            conn.execute(
                f"UPDATE external_shares SET {', '.join(updates)} WHERE id = ?",
                [*params, share_pk],
            )
            conn.commit()

        return self.find(share_pk)

    def deactivate(self, share_pk: str) -> ExternalShare:
        """Turn a share link off. The link and its history are kept.

        Raises:
            Exception: If the share is not found.
        """
        return self.update(share_pk, is_active=False)

    def delete(self, share_pk: str) -> bool:
        """Delete a share link.

        Args:
            share_pk: The share's primary key.

        Returns:
            True if the share was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM external_shares WHERE id = ?", (share_pk,)
            )
            conn.commit()
            return cursor.rowcount > 0

    def access(self, share_id: str) -> ExternalShare:
        """Open a share link as an outside viewer would.

        Counts the view and records the access time.

        Args:
            share_id: The public slug.

        Returns:
            The ExternalShare, with the updated view count.

        Raises:
            ValueError: If the link does not exist, is deactivated or has
                expired.
        """
        share = self.find_by_share_id(share_id)
        if share is None:
            raise ValueError(f"Share link {share_id} does not exist")
        if not share.is_active:
            raise ValueError(f"Share link {share_id} has been deactivated")
        if share.is_expired(utc_now()):
            raise ValueError(f"Share link {share_id} has expired")

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                UPDATE external_shares
                SET view_count = view_count + 1, last_accessed_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (share.id,),
            )
            conn.commit()

        return self.find(share.id)

    def _validate_expiry(self, expires_at: Optional[datetime]) -> Optional[str]:
        if expires_at is None:
            return None
        expires_text = to_db_timestamp(expires_at)
        if expires_text <= to_db_timestamp(utc_now()):
            raise ValueError("Expiry time must be in the future")
        return expires_text

    def _validate_projects(self, conn, project_ids: List[str]) -> None:
        placeholders = ", ".join("?" for _ in project_ids)
        found = {
            row[0]
            for row in conn.execute(
                f"SELECT id FROM projects WHERE id IN ({placeholders})", project_ids
            )
        }
        missing = [project_id for project_id in project_ids if project_id not in found]
        if missing:
            raise ValueError(f"Project(s) not found: {', '.join(missing)}")

    def _unused_share_id(self, conn) -> str:
        for _ in range(SHARE_ID_ATTEMPTS):
            share_id = generate_share_id()
            if not conn.execute(
                "SELECT 1 FROM external_shares WHERE share_id = ?", (share_id,)
            ).fetchone():
                return share_id
        raise Exception("Could not generate a unique share ID, please retry")

    def _link_projects(self, conn, share_pk: str, project_ids: List[str]) -> None:
        conn.executemany(
            "INSERT INTO share_projects (share_id, project_id, display_order) VALUES (?, ?, ?)",
            [(share_pk, project_id, order) for order, project_id in enumerate(project_ids)],
        )

    def _row_to_share(self, conn, row: tuple) -> ExternalShare:
        """Convert a database row to an ExternalShare, loading its projects."""
        project_ids = [
            r[0]
            for r in conn.execute(
                """
                SELECT project_id FROM share_projects
                WHERE share_id = ? ORDER BY display_order, project_id
                """,
                (row[0],),
            )
        ]
        return ExternalShare(
            id=row[0],
            share_id=row[1],
            project_ids=project_ids,
            is_active=bool(row[2]),
            expires_at=from_db_timestamp(row[3]),
            view_count=row[4],
            created_by=row[5],
            created_at=from_db_timestamp(row[6]),
            last_accessed_at=from_db_timestamp(row[7]),
        )
