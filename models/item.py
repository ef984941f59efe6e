"""Archive item models: contents (single assets) and projects (asset groups)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class Item:
    """An archived item filed under one or more categories.

    Attributes:
        id: Unique identifier (UUID text).
        title: Item title.
        description: Optional free-text description.
        category_ids: Categories the item is filed under, in assignment order.
        created_at: Timestamp when the item was created.
    """

    id: str
    title: str
    description: Optional[str] = None
    category_ids: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class Content(Item):
    """A single uploaded asset (image, video, document)."""


@dataclass
class Project(Item):
    """A group of related assets uploaded together."""
