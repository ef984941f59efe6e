"""External share link models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class ExternalShare:
    """A link that lets people outside the archive view selected projects.

    Attributes:
        id: Unique identifier (UUID text).
        share_id: Public 12-character slug used in the share URL.
        project_ids: Shared projects, in display order.
        is_active: False once the link has been deactivated.
        expires_at: UTC time the link stops working, None for no expiry.
        view_count: How many times the link has been opened.
        created_by: ID of the user who created the link.
        created_at: Timestamp when the link was created (UTC).
        last_accessed_at: When the link was last opened (UTC).
    """

    id: str
    share_id: str
    project_ids: List[str] = field(default_factory=list)
    is_active: bool = True
    expires_at: Optional[datetime] = None
    view_count: int = 0
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None

    @property
    def share_url(self) -> str:
        return f"/share/{self.share_id}"

    def is_expired(self, now: datetime) -> bool:
        """Whether the link has expired at the given naive UTC time."""
        return self.expires_at is not None and self.expires_at < now
