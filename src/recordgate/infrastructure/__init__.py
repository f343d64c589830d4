"""Infrastructure layer - Database and file storage implementations.

This layer contains all external dependencies including:
- Database adapters (SQLAlchemy)
- Storage (local filesystem)
"""

from recordgate.infrastructure.persistence.database import (
    Base,
    DatabaseManager,
    get_db_manager,
    init_database,
)

__all__ = [
    "Base",
    "DatabaseManager",
    "get_db_manager",
    "init_database",
]
