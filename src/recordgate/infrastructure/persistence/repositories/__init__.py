"""Repositories over the bookkeeping tables."""

from recordgate.infrastructure.persistence.repositories.permission_repository import (
    PermissionRepository,
)
from recordgate.infrastructure.persistence.repositories.settings_repository import (
    SettingsRepository,
)
from recordgate.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = ["PermissionRepository", "SettingsRepository", "UserRepository"]
