"""Helper utilities for tests."""

from pathlib import Path
import sqlite3

from models.category import CategoryNode


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        conn.executescript(migration_file.read_text(encoding="utf-8"))

    conn.commit()


def node(node_id, parent_id=None, owner_group="HOLDING", order=0, **counts):
    """Build a flat category record with terse defaults."""
    return CategoryNode(
        id=node_id,
        name=f"Category {node_id}",
        owner_group=owner_group,
        parent_id=parent_id,
        order=order,
        content_count=counts.get("content_count"),
        project_count=counts.get("project_count"),
    )


def shape(forest):
    """Reduce a forest to nested (id, [children]) tuples for comparisons."""
    return [(n.id, shape(n.children)) for n in forest]


def log_lines(caplog):
    """Messages captured from the application logger, in order."""
    return [record.getMessage() for record in caplog.records]
