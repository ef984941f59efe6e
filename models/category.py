"""Category model for the asset archive's category tree."""

from dataclasses import dataclass, field
from typing import List, Optional

HOLDING = "HOLDING"
BANK = "BANK"
OWNER_GROUPS = (HOLDING, BANK)

CONTENT_MODE = "content"
PROJECT_MODE = "project"
COUNT_MODES = (CONTENT_MODE, PROJECT_MODE)


@dataclass
class CategoryNode:
    """Represents one category, either as a flat record or as a tree node.

    Attributes:
        id: Unique identifier (UUID text).
        name: Display label.
        owner_group: Top-level partition, "HOLDING" or "BANK".
        parent_id: Optional parent category ID; None for roots.
        order: Sort key among siblings (ascending).
        content_count: Pre-aggregated number of contents, if known.
        project_count: Pre-aggregated number of projects, if known.
        children: Child nodes, filled in by category_tree.build_tree().
    """

    id: str
    name: str
    owner_group: str
    parent_id: Optional[str] = None
    order: int = 0
    content_count: Optional[int] = None
    project_count: Optional[int] = None
    children: List["CategoryNode"] = field(default_factory=list)

    def item_count(self, mode: str) -> Optional[int]:
        """Get the count shown for a display mode ("content" or "project")."""
        if mode == CONTENT_MODE:
            return self.content_count
        if mode == PROJECT_MODE:
            return self.project_count
        raise ValueError(f"Unknown count mode: {mode}")

    @property
    def is_leaf(self) -> bool:
        return not self.children
