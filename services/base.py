"""Base services container for dependency injection."""

from config import Config
from db.manager import DatabaseManager


class Services:
    """Container for all application services.

    Tests pass their own db_manager to run against an in-memory database.

    Args:
        config: Application configuration object.
        db_manager: Optional database manager for testing. If provided, it is
            used instead of one built from config.
    """

    def __init__(self, config: Config, db_manager=None):
        self.config = config
        self.db_manager = db_manager or DatabaseManager(config)

        # Lazy import to avoid circular dependencies
        from services.activity_logs import ActivityLogService
        from services.bookmarks import BookmarkService
        from services.categories import CategoryService
        from services.items import ContentService, ProjectService
        from services.shares import ShareService

        self.categories = CategoryService(self.db_manager)
        self.contents = ContentService(self.db_manager)
        self.projects = ProjectService(self.db_manager)
        self.activity_logs = ActivityLogService(self.db_manager)
        self.shares = ShareService(self.db_manager)
        self.bookmarks = BookmarkService(self.db_manager)
