"""Tests for schema migrations against a real database file."""

from cli.migrate import apply_pending, get_available_migrations
from db.manager import DatabaseManager
from services.base import Services


class TestMigrations:
    """Tests for applying migrations with DatabaseManager."""

    def test_apply_pending_once(self, test_config):
        """Test that migrations apply once and are then recorded."""
        db_manager = DatabaseManager(test_config)

        assert apply_pending(db_manager) == len(get_available_migrations(db_manager))
        assert apply_pending(db_manager) == 0
        assert test_config.db_path.exists()

    def test_services_on_migrated_file(self, test_config):
        """Test the services container against a file database."""
        db_manager = DatabaseManager(test_config)
        apply_pending(db_manager)
        services = Services(test_config)

        created = services.categories.init_defaults()

        assert created == 8
        assert len(services.categories.find_all("BANK")) == 4

    def test_foreign_keys_enforced(self, test_config):
        """Test that connections enforce category references."""
        db_manager = DatabaseManager(test_config)
        apply_pending(db_manager)

        with db_manager.connect() as conn:
            enabled = conn.execute("PRAGMA foreign_keys").fetchone()[0]

        assert enabled == 1
