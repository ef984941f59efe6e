"""Shared service for contents and projects.

Contents and projects are stored the same way: an item table plus a link
table to categories. ItemService holds the logic once; ContentService and
ProjectService only pick the tables and the model class.
"""

import uuid
from datetime import datetime
from typing import Iterable, List, Optional, Type

from models.item import Content, Item, Project

MAX_CATEGORIES_PER_ITEM = 3

# mode -> (item table, link table, item column in the link table)
ITEM_TABLES = {
    "content": ("contents", "content_categories", "content_id"),
    "project": ("projects", "project_categories", "project_id"),
}


class ItemService:
    """Service for managing items of one kind.

    Args:
        db_manager: Database manager instance for database operations.
        mode: "content" or "project".
        model: Dataclass used for returned items.
    """

    def __init__(self, db_manager, mode: str, model: Type[Item]):
        self.db_manager = db_manager
        self.mode = mode
        self.model = model
        self.item_table, self.link_table, self.item_column = ITEM_TABLES[mode]

    def create(
        self,
        title: str,
        category_ids: Iterable[str],
        description: Optional[str] = None,
    ) -> Item:
        """Create an item filed under the given categories.

        Args:
            title: Item title.
            category_ids: Between 1 and MAX_CATEGORIES_PER_ITEM existing
                category IDs. Repeated IDs are ignored.
            description: Optional description.

        Returns:
            The created item.

        Raises:
            ValueError: If the title is empty or the categories are invalid.
        """
        title = (title or "").strip()
        if not title:
            raise ValueError(f"{self.mode.capitalize()} title cannot be empty")

        item_id = str(uuid.uuid4())
        with self.db_manager.connect() as conn:
            category_ids = self._validate_categories(conn, category_ids)
            conn.execute(
                f"INSERT INTO {self.item_table} (id, title, description) VALUES (?, ?, ?)",
                (item_id, title, description),
            )
            self._link_categories(conn, item_id, category_ids)
            conn.commit()

        return self.find(item_id)

    def find(self, item_id: str) -> Optional[Item]:
        """Get a single item by ID.

        Args:
            item_id: The item ID to find.

        Returns:
            The item if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT id, title, description, created_at FROM {self.item_table} WHERE id = ?",
                (item_id,),
            ).fetchone()

            if row:
                return self._row_to_item(conn, row)
            return None

    def find_all(self, category_id: Optional[str] = None) -> List[Item]:
        """Get all items, newest first.

        Args:
            category_id: Optional category to filter by (direct links only).

        Returns:
            List of items.
        """
        query = f"SELECT id, title, description, created_at FROM {self.item_table} i"
        params = []
        if category_id:
            query += f"""
                WHERE EXISTS (
                    SELECT 1 FROM {self.link_table} l
                    WHERE l.{self.item_column} = i.id AND l.category_id = ?
                )
            """
            params.append(category_id)
        query += " ORDER BY i.created_at DESC, i.rowid DESC"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [self._row_to_item(conn, row) for row in rows]

    def set_categories(self, item_id: str, category_ids: Iterable[str]) -> Item:
        """Replace the categories an item is filed under.

        Raises:
            ValueError: If the categories are invalid.
            Exception: If the item is not found.
        """
        with self.db_manager.connect() as conn:
            exists = conn.execute(
                f"SELECT 1 FROM {self.item_table} WHERE id = ?", (item_id,)
            ).fetchone()
            if not exists:
                raise Exception(f"{self.mode.capitalize()} with ID {item_id} not found")

            category_ids = self._validate_categories(conn, category_ids)
            conn.execute(
                f"DELETE FROM {self.link_table} WHERE {self.item_column} = ?", (item_id,)
            )
            self._link_categories(conn, item_id, category_ids)
            conn.commit()

        return self.find(item_id)

    def delete(self, item_id: str) -> bool:
        """Delete an item and its category links.

        Returns:
            True if the item was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            conn.execute(
                f"DELETE FROM {self.link_table} WHERE {self.item_column} = ?", (item_id,)
            )
            cursor = conn.execute(f"DELETE FROM {self.item_table} WHERE id = ?", (item_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _validate_categories(self, conn, category_ids: Iterable[str]) -> List[str]:
        unique_ids = list(dict.fromkeys(category_ids or []))
        if not unique_ids:
            raise ValueError("Select at least one category")
        if len(unique_ids) > MAX_CATEGORIES_PER_ITEM:
            raise ValueError(
                f"A {self.mode} can be filed under at most {MAX_CATEGORIES_PER_ITEM} categories"
            )

        placeholders = ", ".join("?" for _ in unique_ids)
        found = {
            row[0]
            for row in conn.execute(
                f"SELECT id FROM categories WHERE id IN ({placeholders})", unique_ids
            )
        }
        missing = [category_id for category_id in unique_ids if category_id not in found]
        if missing:
            raise ValueError(f"Categories not found: {', '.join(missing)}")
        return unique_ids

    def _link_categories(self, conn, item_id: str, category_ids: List[str]) -> None:
        conn.executemany(
            f"INSERT INTO {self.link_table} ({self.item_column}, category_id) VALUES (?, ?)",
            [(item_id, category_id) for category_id in category_ids],
        )

    def _row_to_item(self, conn, row: tuple) -> Item:
        category_ids = [
            link[0]
            for link in conn.execute(
                f"""
                SELECT category_id FROM {self.link_table}
                WHERE {self.item_column} = ?
                ORDER BY rowid
                """,
                (row[0],),
            )
        ]
        return self.model(
            id=row[0],
            title=row[1],
            description=row[2],
            category_ids=category_ids,
            created_at=datetime.fromisoformat(row[3]) if row[3] else None,
        )


class ContentService(ItemService):
    """Service for managing contents."""

    def __init__(self, db_manager):
        super().__init__(db_manager, "content", Content)


class ProjectService(ItemService):
    """Service for managing projects."""

    def __init__(self, db_manager):
        super().__init__(db_manager, "project", Project)
