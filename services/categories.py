"""Category service for database operations."""

import uuid
from typing import Dict, List, Optional
from models.category import OWNER_GROUPS, CategoryNode
from services.items import ITEM_TABLES
from logger import get_logger

logger = get_logger()

DEFAULT_CATEGORIES: Dict[str, List[str]] = {
    "HOLDING": ["CSR", "브랜드", "스포츠", "기타"],
    "BANK": ["브랜드 PR", "상품&서비스", "땡겨요", "기타"],
}

# Each category is paired with itself and all of its descendants. UNION (not
# UNION ALL) stops the recursion if the parent links ever form a cycle.
_SUBTREE_CTE = """
    WITH RECURSIVE subtree(root_id, category_id) AS (
        SELECT id, id FROM categories
        UNION
        SELECT s.root_id, c.id
        FROM categories c
        JOIN subtree s ON c.parent_id = s.category_id
    )
"""

_SELECT_COLUMNS = "SELECT id, name, owner_group, parent_id, sort_order FROM categories"


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self, owner_group: Optional[str] = None) -> List[CategoryNode]:
        """Get categories as a flat list, with content and project counts.

        A category's counts cover the distinct items filed under it or under
        any of its descendants.

        Args:
            owner_group: Optional "HOLDING" or "BANK" filter.

        Returns:
            List of CategoryNode objects ordered by sort order, then name.
        """
        counts = []
        for mode in ("content", "project"):
            _, link_table, item_column = ITEM_TABLES[mode]
            counts.append(
                f"""
                (SELECT COUNT(DISTINCT l.{item_column})
                 FROM subtree s
                 JOIN {link_table} l ON l.category_id = s.category_id
                 WHERE s.root_id = c.id)
                """
            )

        query = f"""
            {_SUBTREE_CTE}
            SELECT c.id, c.name, c.owner_group, c.parent_id, c.sort_order,
                   {counts[0]}, {counts[1]}
            FROM categories c
        """
        params = []
        if owner_group:
            query += " WHERE c.owner_group = ?"
            params.append(owner_group)
        query += " ORDER BY c.sort_order ASC, c.name ASC"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()

            return [
                CategoryNode(
                    id=row[0],
                    name=row[1],
                    owner_group=row[2],
                    parent_id=row[3],
                    order=row[4],
                    content_count=row[5],
                    project_count=row[6],
                )
                for row in rows
            ]

    def find(self, category_id: str) -> Optional[CategoryNode]:
        """Get a single category by ID (without counts).

        Args:
            category_id: The category ID to find.

        Returns:
            CategoryNode if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"{_SELECT_COLUMNS} WHERE id = ?", (category_id,)
            ).fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def find_by_name(
        self, name: str, owner_group: str, parent_id: Optional[str] = None
    ) -> Optional[CategoryNode]:
        """Get a category by name among the children of parent_id.

        Args:
            name: The category name to find (case-sensitive).
            owner_group: Owner group the category belongs to.
            parent_id: Parent category ID, None for top-level categories.

        Returns:
            CategoryNode if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                {_SELECT_COLUMNS}
                WHERE name = ? AND owner_group = ? AND parent_id IS ?
                """,
                (name, owner_group, parent_id),
            ).fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def create(
        self,
        name: str,
        owner_group: str,
        parent_id: Optional[str] = None,
        order: int = 0,
    ) -> CategoryNode:
        """Create a new category.

        Args:
            name: Category name.
            owner_group: "HOLDING" or "BANK".
            parent_id: Optional parent category ID; the parent must exist and
                belong to the same owner group.
            order: Sort key among siblings.

        Returns:
            The created CategoryNode.

        Raises:
            ValueError: If the name is empty or already taken among its
                siblings, the owner group is unknown, or the parent is missing
                or in another group.
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Category name cannot be empty")
        if owner_group not in OWNER_GROUPS:
            raise ValueError(
                f"Invalid owner group: {owner_group} (expected one of {', '.join(OWNER_GROUPS)})"
            )

        if parent_id:
            parent = self.find(parent_id)
            if parent is None:
                raise ValueError(f"Parent category with ID {parent_id} not found")
            if parent.owner_group != owner_group:
                raise ValueError(
                    f"Parent category belongs to {parent.owner_group}, not {owner_group}"
                )
        else:
            parent_id = None

        if self.find_by_name(name, owner_group, parent_id):
            raise ValueError(
                f"Category '{name}' already exists at this level of {owner_group}"
            )

        category_id = str(uuid.uuid4())
        with self.db_manager.connect() as conn:
            conn.execute(
                """
                INSERT INTO categories (id, name, owner_group, parent_id, sort_order)
                VALUES (?, ?, ?, ?, ?)
                """,
                (category_id, name, owner_group, parent_id, order),
            )
            conn.commit()

        return CategoryNode(
            id=category_id,
            name=name,
            owner_group=owner_group,
            parent_id=parent_id,
            order=order,
        )

    def update(
        self,
        category_id: str,
        name: Optional[str] = None,
        order: Optional[int] = None,
    ) -> CategoryNode:
        """Rename a category and/or change its sort order.

        Args:
            category_id: The category ID to update.
            name: New name, or None to keep the current one.
            order: New sort key, or None to keep the current one.

        Returns:
            The updated CategoryNode.

        Raises:
            ValueError: If there is nothing to update or the new name is taken
                by a sibling.
            Exception: If the category is not found.
        """
        updates = []
        params: list = []

        if name is not None:
            name = name.strip()
            if not name:
                raise ValueError("Category name cannot be empty")
            current = self.find(category_id)
            if current and current.name != name and self.find_by_name(
                name, current.owner_group, current.parent_id
            ):
                raise ValueError(
                    f"Category '{name}' already exists at this level of {current.owner_group}"
                )
            updates.append("name = ?")
            params.append(name)

        if order is not None:
            updates.append("sort_order = ?")
            params.append(order)

        if not updates:
            raise ValueError("Nothing to update: provide a name or an order")

        updates.append("updated_at = CURRENT_TIMESTAMP")
        params.append(category_id)

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"UPDATE categories SET {', '.join(updates)} WHERE id = ?", params
            )
            conn.commit()

            if cursor.rowcount == 0:
                raise Exception(f"Category with ID {category_id} not found")

        return self.find(category_id)

    def delete(self, category_id: str) -> bool:
        """Delete a category by ID.

        Args:
            category_id: The category ID to delete.

        Returns:
            True if category was deleted, False if not found.

        Raises:
            ValueError: If the category still has children, or contents or
                projects are filed under it.
        """
        with self.db_manager.connect() as conn:
            child_count = conn.execute(
                "SELECT COUNT(*) FROM categories WHERE parent_id = ?", (category_id,)
            ).fetchone()[0]
            if child_count > 0:
                raise ValueError("Cannot delete a category that has subcategories")

            for mode, (_, link_table, _) in ITEM_TABLES.items():
                usage = conn.execute(
                    f"SELECT COUNT(*) FROM {link_table} WHERE category_id = ?",
                    (category_id,),
                ).fetchone()[0]
                if usage > 0:
                    raise ValueError(
                        f"Category is used by {usage} {mode}(s) and cannot be deleted"
                    )

            cursor = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            conn.commit()
            return cursor.rowcount > 0

    def init_defaults(self) -> int:
        """Create the default top-level categories of each owner group.

        Categories that already exist (same name and group) are skipped.

        Returns:
            Number of categories created.
        """
        created = 0
        for owner_group, names in DEFAULT_CATEGORIES.items():
            for index, name in enumerate(names, start=1):
                if self.find_by_name(name, owner_group):
                    logger.debug(f"Default category '{name}' ({owner_group}) exists")
                    continue
                self.create(name, owner_group, order=index)
                created += 1

        logger.debug(f"Created {created} default categories")
        return created

    def count_distinct(self, mode: str, owner_group: Optional[str] = None) -> int:
        """Count contents or projects, each item once however many categories hold it.

        Args:
            mode: "content" or "project".
            owner_group: Optional group; only items filed under at least one
                of its categories are counted.

        Returns:
            The distinct item count.
        """
        if mode not in ITEM_TABLES:
            raise ValueError(f"Unknown count mode: {mode}")
        item_table, link_table, item_column = ITEM_TABLES[mode]

        with self.db_manager.connect() as conn:
            if owner_group is None:
                row = conn.execute(f"SELECT COUNT(*) FROM {item_table}").fetchone()
            else:
                row = conn.execute(
                    f"""
                    SELECT COUNT(DISTINCT l.{item_column})
                    FROM {link_table} l
                    JOIN categories c ON c.id = l.category_id
                    WHERE c.owner_group = ?
                    """,
                    (owner_group,),
                ).fetchone()
            return row[0]

    def _row_to_category(self, row: tuple) -> CategoryNode:
        return CategoryNode(
            id=row[0],
            name=row[1],
            owner_group=row[2],
            parent_id=row[3],
            order=row[4],
        )
