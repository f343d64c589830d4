"""Domain entities."""

from recordgate.domain.entities.collection import (
    Collection,
    Field,
    FieldType,
    Relationship,
    RelationshipType,
)
from recordgate.domain.entities.event_context import EventContext, NotifyResult
from recordgate.domain.entities.permission import Permission, PermissionLevel
from recordgate.domain.entities.status_mapping import StatusEntry, StatusMapping

__all__ = [
    "Collection",
    "Field",
    "FieldType",
    "Relationship",
    "RelationshipType",
    "EventContext",
    "NotifyResult",
    "Permission",
    "PermissionLevel",
    "StatusEntry",
    "StatusMapping",
]
