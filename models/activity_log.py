"""Activity log models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class ActivityLog:
    """One recorded user action.

    Attributes:
        id: Unique identifier (auto-generated).
        user_id: Who performed the action, if known.
        action_type: Action name, e.g. "CREATE_CATEGORY".
        details: Arbitrary JSON-serializable details about the action.
        created_at: Timestamp when the action was recorded.
    """

    id: int
    user_id: Optional[str]
    action_type: str
    details: Optional[dict]
    created_at: datetime


@dataclass
class ActivityLogPage:
    """One page of activity logs plus paging totals."""

    items: List[ActivityLog] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.page_size) if self.page_size else 0
