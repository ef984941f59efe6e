"""Bookmark service for database operations."""

import uuid
from typing import List, Optional

from db.manager import from_db_timestamp
from models.bookmark import Bookmark

_SELECT_COLUMNS = """
    SELECT b.id, b.user_id, b.content_id, c.title, b.memo, b.created_at
    FROM bookmarks b
    JOIN contents c ON c.id = b.content_id
"""


class BookmarkService:
    """Service for managing each user's bookmarked contents."""

    def __init__(self, db_manager):
        """Initialize the bookmark service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def add(self, user_id: str, content_id: str, memo: Optional[str] = None) -> Bookmark:
        """Bookmark a content for a user.

        Bookmarking the same content again keeps the one bookmark and
        replaces its memo.

        Args:
            user_id: Owner of the bookmark.
            content_id: Content to bookmark.
            memo: Optional note.

        Returns:
            The bookmark.

        Raises:
            ValueError: If the user is missing or the content does not exist.
        """
        if not user_id:
            raise ValueError("A user is required to bookmark a content")
        memo = memo or None

        with self.db_manager.connect() as conn:
            if not conn.execute(
                "SELECT 1 FROM contents WHERE id = ?", (content_id,)
            ).fetchone():
                raise ValueError(f"Content with ID {content_id} not found")

            conn.execute(
                """
                INSERT INTO bookmarks (id, user_id, content_id, memo)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (user_id, content_id) DO UPDATE
                SET memo = excluded.memo, updated_at = CURRENT_TIMESTAMP
                """,
                (str(uuid.uuid4()), user_id, content_id, memo),
            )
            conn.commit()

            row = conn.execute(
                f"{_SELECT_COLUMNS} WHERE b.user_id = ? AND b.content_id = ?",
                (user_id, content_id),
            ).fetchone()
            return self._row_to_bookmark(row)

    def find(self, bookmark_id: str) -> Optional[Bookmark]:
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"{_SELECT_COLUMNS} WHERE b.id = ?", (bookmark_id,)
            ).fetchone()

            if row:
                return self._row_to_bookmark(row)
            return None

    def find_all(self, user_id: str) -> List[Bookmark]:
        """Get a user's bookmarks, newest first.

        Args:
            user_id: Owner of the bookmarks.

        Returns:
            List of Bookmark objects.
        """
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"{_SELECT_COLUMNS} WHERE b.user_id = ? ORDER BY b.created_at DESC, b.rowid DESC",
                (user_id,),
            ).fetchall()
            return [self._row_to_bookmark(row) for row in rows]

    def update_memo(self, bookmark_id: str, user_id: str, memo: Optional[str]) -> Bookmark:
        """Change the memo on one of a user's bookmarks.

        Raises:
            Exception: If the user has no bookmark with this ID.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE bookmarks SET memo = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND user_id = ?
                """,
                (memo or None, bookmark_id, user_id),
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise Exception(f"Bookmark with ID {bookmark_id} not found")

        return self.find(bookmark_id)

    def remove(self, bookmark_id: str, user_id: str) -> bool:
        """Remove one of a user's bookmarks.

        Args:
            bookmark_id: The bookmark ID.
            user_id: Owner of the bookmark; other users' bookmarks are untouched.

        Returns:
            True if the bookmark was removed, False if the user has none with
            this ID.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM bookmarks WHERE id = ? AND user_id = ?",
                (bookmark_id, user_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_bookmark(self, row: tuple) -> Bookmark:
        return Bookmark(
            id=row[0],
            user_id=row[1],
            content_id=row[2],
            content_title=row[3],
            memo=row[4],
            created_at=from_db_timestamp(row[5]),
        )
