"""SQLAlchemy models for the RecordGate bookkeeping tables.

All models inherit from the Base class defined in database.py. The tables
they map are managed collections: the schema catalog derives their
descriptors from these models.
"""

from recordgate.infrastructure.persistence.models.collection import (
    COLLECTIONS_TABLE,
    CollectionModel,
)
from recordgate.infrastructure.persistence.models.collection_preset import (
    COLLECTION_PRESETS_TABLE,
    CollectionPresetModel,
)
from recordgate.infrastructure.persistence.models.field import FIELDS_TABLE, FieldModel
from recordgate.infrastructure.persistence.models.file import FILES_TABLE, FileModel
from recordgate.infrastructure.persistence.models.permission import (
    PERMISSIONS_TABLE,
    PermissionModel,
)
from recordgate.infrastructure.persistence.models.setting import SETTINGS_TABLE, SettingModel
from recordgate.infrastructure.persistence.models.user import USERS_TABLE, UserModel

__all__ = [
    "COLLECTIONS_TABLE",
    "COLLECTION_PRESETS_TABLE",
    "FIELDS_TABLE",
    "FILES_TABLE",
    "PERMISSIONS_TABLE",
    "SETTINGS_TABLE",
    "USERS_TABLE",
    "CollectionModel",
    "CollectionPresetModel",
    "FieldModel",
    "FileModel",
    "PermissionModel",
    "SettingModel",
    "UserModel",
]
