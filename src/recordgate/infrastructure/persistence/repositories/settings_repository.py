"""Settings repository for application-level settings.

Settings are stored per scope as text. Values that parse as JSON are
returned decoded.
"""

import json
from typing import Any, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.engine import Connection

from recordgate.core.config import Settings, get_settings
from recordgate.infrastructure.persistence.models import SettingModel

GLOBAL_SCOPE = "global"
STATUS_MAPPING_KEY = "status_mapping"


def _decode(value: Optional[str]) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError:
        return value


class SettingsRepository:
    """Synchronous settings provider using SQLAlchemy Core.

    Stored settings override the process configuration: the global status
    mapping, for instance, falls back to ``Settings.default_status_mapping``
    when none is stored.
    """

    def __init__(self, connection: Connection, settings: Optional[Settings] = None) -> None:
        """Initialize the repository.

        Args:
            connection: Active SQLAlchemy connection.
            settings: Process configuration used for fallbacks.
        """
        self.connection = connection
        self.settings = settings or get_settings()

    def get(self, key: str, scope: str = GLOBAL_SCOPE, default: Any = None) -> Any:
        """Get a single setting value."""
        result = self.connection.execute(
            select(SettingModel.value).where(SettingModel.scope == scope, SettingModel.key == key)
        )
        row = result.first()
        if row is None:
            return default
        return _decode(row.value)

    def get_all(self, scope: str = GLOBAL_SCOPE) -> dict[str, Any]:
        """Get every setting of a scope as a dictionary."""
        rows = self.connection.execute(
            select(SettingModel.key, SettingModel.value)
            .where(SettingModel.scope == scope)
            .order_by(SettingModel.key)
        ).all()
        return {row.key: _decode(row.value) for row in rows}

    def set(self, key: str, value: Any, scope: str = GLOBAL_SCOPE) -> None:
        """Create or replace a setting."""
        stored = value if isinstance(value, str) else json.dumps(value)
        result = self.connection.execute(
            update(SettingModel)
            .where(SettingModel.scope == scope, SettingModel.key == key)
            .values(value=stored)
        )
        if result.rowcount == 0:
            self.connection.execute(insert(SettingModel).values(scope=scope, key=key, value=stored))

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get a global setting, falling back to the process configuration."""
        value = self.get(key)
        if value is not None:
            return value
        return getattr(self.settings, key, default)

    def get_global_status_mapping(self) -> list[dict[str, Any]]:
        """Get the status mapping used by collections that declare none."""
        stored = self.get(STATUS_MAPPING_KEY)
        if stored:
            return stored
        return list(self.settings.default_status_mapping)
