"""Schema catalog: collection and field descriptors.

SqlSchemaCatalog reads user collection definitions from the collections and
fields bookkeeping tables. The bookkeeping tables themselves are managed
collections whose descriptors are derived from their SQLAlchemy models.

SchemaAccessor is the per-gateway view over a catalog. It caches the
descriptor of the gateway's own collection for the gateway's lifetime.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy import Boolean, Date, DateTime, Integer, Numeric, Table, select
from sqlalchemy.engine import Connection

from recordgate.core.exceptions import FieldNotFoundError, SchemaNotFoundError
from recordgate.core.logging import get_logger
from recordgate.domain.entities.collection import (
    Collection,
    Field,
    FieldType,
    Relationship,
    RelationshipType,
)
from recordgate.domain.entities.status_mapping import StatusMapping
from recordgate.infrastructure.persistence.database import Base
from recordgate.infrastructure.persistence.models import CollectionModel, FieldModel

logger = get_logger(__name__)


class SchemaCatalog(ABC):
    """Source of collection descriptors."""

    @abstractmethod
    def get_collection(self, name: str) -> Collection:
        """Get a collection descriptor.

        Raises:
            SchemaNotFoundError: If the collection is unknown.
        """

    def get_field(self, collection: str, field: str) -> Field:
        """Get a field descriptor.

        Raises:
            FieldNotFoundError: If the field is unknown.
        """
        descriptor = self.get_collection(collection).get_field(field)
        if descriptor is None:
            raise FieldNotFoundError(collection, field)
        return descriptor

    def has_field(self, collection: str, field: str, include_alias: bool = True) -> bool:
        descriptor = self.get_collection(collection).get_field(field)
        if descriptor is None:
            return False
        return include_alias or not descriptor.is_alias()

    def get_alias_field_names(self, collection: str) -> list[str]:
        return [f.name for f in self.get_collection(collection).get_alias_fields()]

    def get_non_alias_field_names(self, collection: str) -> list[str]:
        return self.get_collection(collection).get_non_alias_field_names()


def _field_type_from_column(column: Any) -> FieldType:
    if column.info.get("json"):
        return FieldType.JSON
    if isinstance(column.type, Boolean):
        return FieldType.BOOLEAN
    if isinstance(column.type, Integer):
        return FieldType.INTEGER
    if isinstance(column.type, Numeric):
        return FieldType.DECIMAL
    if isinstance(column.type, DateTime):
        return FieldType.DATETIME
    if isinstance(column.type, Date):
        return FieldType.DATE
    return FieldType.STRING


def collection_from_table(table: Table) -> Collection:
    """Derive a managed collection descriptor from a model table."""
    fields = []
    for column in table.columns:
        auto_increment = column.primary_key and column is table.autoincrement_column
        fields.append(
            Field(
                name=column.name,
                type=_field_type_from_column(column),
                nullable=bool(column.nullable),
                primary_key=column.primary_key,
                auto_increment=auto_increment,
                unique=bool(column.unique),
                system_date=bool(column.info.get("system_date")),
                owner=bool(column.info.get("owner")),
                status=bool(column.info.get("status")),
            )
        )
    return Collection(name=table.name, fields=fields, managed=True)


def field_from_row(row: Any) -> Field:
    """Build a field descriptor from a fields table row."""
    relationship = None
    relationship_type = RelationshipType.parse(row.relationship_type)
    if relationship_type is not None:
        relationship = Relationship(
            type=relationship_type,
            related_collection=row.related_collection,
            junction_table=row.junction_table,
            junction_key_left=row.junction_key_left,
            junction_key_right=row.junction_key_right,
        )

    return Field(
        name=row.field,
        type=FieldType(str(row.type or FieldType.STRING.value).lower()),
        nullable=bool(row.nullable),
        default_value=row.default_value,
        primary_key=bool(row.primary_key),
        auto_increment=bool(row.auto_increment),
        unique=bool(row.unique),
        system_date=bool(row.system_date),
        status=bool(row.status_field),
        owner=bool(row.owner_field),
        relationship=relationship,
        datatype=row.datatype,
        length=row.length,
        note=row.note,
    )


class SqlSchemaCatalog(SchemaCatalog):
    """Schema catalog backed by the bookkeeping tables.

    Example:
        catalog = SqlSchemaCatalog(connection)
        articles = catalog.get_collection("articles")
        articles.primary_key_name  # "id"
    """

    def __init__(self, connection: Connection) -> None:
        """Initialize with a synchronous SQLAlchemy Connection.

        Args:
            connection: Connection used for catalog reads.
        """
        self.connection = connection

    def get_collection(self, name: str) -> Collection:
        if name in Base.metadata.tables:
            return collection_from_table(Base.metadata.tables[name])

        collection_row = self.connection.execute(
            select(CollectionModel.__table__).where(CollectionModel.collection == name)
        ).first()

        field_rows = self.connection.execute(
            select(FieldModel.__table__)
            .where(FieldModel.collection == name)
            .order_by(FieldModel.sort, FieldModel.id)
        ).all()

        if collection_row is None and not field_rows:
            raise SchemaNotFoundError(name)

        status_mapping = None
        note = None
        if collection_row is not None:
            note = collection_row.note
            if collection_row.status_mapping:
                status_mapping = StatusMapping.from_data(json.loads(collection_row.status_mapping))

        logger.debug("Collection schema loaded", collection_name=name, field_count=len(field_rows))
        return Collection(
            name=name,
            fields=[field_from_row(row) for row in field_rows],
            status_mapping=status_mapping,
            note=note,
        )


class SchemaAccessor:
    """Per-gateway view of the schema catalog.

    Only the gateway's own collection is cached. Other collections are read
    through on every call, so a gateway always sees their current schema.
    """

    def __init__(self, catalog: SchemaCatalog, collection_name: str, policy: Any = None) -> None:
        self.catalog = catalog
        self.collection_name = collection_name
        self.policy = policy
        self._own: Optional[Collection] = None

    def get_collection(self, name: Optional[str] = None, skip_acl: bool = True) -> Collection:
        """Get a collection descriptor, the gateway's own by default.

        Args:
            name: Collection name.
            skip_acl: When False and a policy is attached, the actor must be
                able to read the collection.

        Raises:
            SchemaNotFoundError: If the collection is unknown.
            ForbiddenReadError: If the ACL check fails.
        """
        name = name or self.collection_name
        if not skip_acl and self.policy is not None:
            self.policy.enforce_read_once(name)

        if name != self.collection_name:
            return self.catalog.get_collection(name)

        if self._own is None:
            self._own = self.catalog.get_collection(name)
        return self._own

    def get_field(self, field: str, collection: Optional[str] = None, skip_acl: bool = True) -> Field:
        descriptor = self.get_collection(collection, skip_acl).get_field(field)
        if descriptor is None:
            raise FieldNotFoundError(collection or self.collection_name, field)
        return descriptor

    def has_field(self, field: str, collection: Optional[str] = None, include_alias: bool = True) -> bool:
        descriptor = self.get_collection(collection).get_field(field)
        if descriptor is None:
            return False
        return include_alias or not descriptor.is_alias()

    def get_alias_field_names(self, collection: Optional[str] = None) -> list[str]:
        return [f.name for f in self.get_collection(collection).get_alias_fields()]

    def get_non_alias_field_names(self, collection: Optional[str] = None) -> list[str]:
        return self.get_collection(collection).get_non_alias_field_names()
