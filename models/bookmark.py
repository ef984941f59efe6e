"""Bookmark models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Bookmark:
    """A content saved by one user, with an optional private memo.

    Attributes:
        id: Unique identifier (UUID text).
        user_id: Owner of the bookmark.
        content_id: Bookmarked content.
        content_title: Title of the bookmarked content.
        memo: Optional note.
        created_at: Timestamp when the bookmark was added.
    """

    id: str
    user_id: str
    content_id: str
    content_title: str = ""
    memo: Optional[str] = None
    created_at: Optional[datetime] = None
