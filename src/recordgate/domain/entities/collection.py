"""Collection and field entities for dynamic schema definitions.

A Collection describes one table of the store: its ordered fields and the
special-purpose fields the access layer relies on (primary key, status,
owner, system dates). Collections are produced by the schema catalog and
are read-only for the rest of the layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from recordgate.domain.entities.status_mapping import StatusMapping


class FieldType(str, Enum):
    """Supported field kinds."""

    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"
    JSON = "json"
    ARRAY = "array"
    FILE = "file"
    ALIAS = "alias"
    M2O = "m2o"
    O2M = "o2m"
    M2M = "m2m"


class RelationshipType(str, Enum):
    """Relationship kinds a field can take part in."""

    MANY_TO_ONE = "m2o"
    ONE_TO_MANY = "o2m"
    MANY_TO_MANY = "m2m"

    @classmethod
    def parse(cls, value: Any) -> Optional["RelationshipType"]:
        """Parse a relationship type, accepting legacy spellings.

        ``MANYTOONE``, ``many_to_one`` and ``m2o`` all map to MANY_TO_ONE.
        Unknown or empty values give None.
        """
        if not value:
            return None
        if isinstance(value, cls):
            return value
        normalized = str(value).lower().replace("_", "").replace("-", "")
        return _RELATIONSHIP_ALIASES.get(normalized)


_RELATIONSHIP_ALIASES = {
    "m2o": RelationshipType.MANY_TO_ONE,
    "manytoone": RelationshipType.MANY_TO_ONE,
    "o2m": RelationshipType.ONE_TO_MANY,
    "onetomany": RelationshipType.ONE_TO_MANY,
    "m2m": RelationshipType.MANY_TO_MANY,
    "manytomany": RelationshipType.MANY_TO_MANY,
}

NUMERIC_TYPES = frozenset({FieldType.INTEGER, FieldType.DECIMAL})
DATE_TIME_TYPES = frozenset({FieldType.TIMESTAMP, FieldType.DATETIME})
ALIAS_TYPES = frozenset({FieldType.ALIAS, FieldType.O2M, FieldType.M2M})


@dataclass
class Relationship:
    """Relationship descriptor of a field.

    Attributes:
        type: many-to-one, one-to-many or many-to-many.
        related_collection: The collection on the other side.
        junction_table: Junction collection for many-to-many relations.
        junction_key_left: Junction column pointing to this collection.
        junction_key_right: Junction column pointing to the related collection
            (the local column for many-to-one).
    """

    type: RelationshipType
    related_collection: Optional[str] = None
    junction_table: Optional[str] = None
    junction_key_left: Optional[str] = None
    junction_key_right: Optional[str] = None


@dataclass
class Field:
    """A field of a collection.

    Attributes:
        name: Field (column) name.
        type: Field kind.
        nullable: Whether NULL is accepted.
        default_value: Default applied by the store.
        primary_key: Whether this is the collection's primary key.
        auto_increment: Whether the store generates the value.
        unique: Whether values must be unique.
        system_date: Whether the field records a system date
            (created/modified on).
        status: Whether this is the collection's status field.
        owner: Whether this field records the creating user.
        relationship: Optional relationship descriptor.
        datatype: Explicit SQL type, overriding the type default.
        length: Length or precision used in DDL.
        note: Free text description.
    """

    name: str
    type: FieldType = FieldType.STRING
    nullable: bool = True
    default_value: Any = None
    primary_key: bool = False
    auto_increment: bool = False
    unique: bool = False
    system_date: bool = False
    status: bool = False
    owner: bool = False
    relationship: Optional[Relationship] = None
    datatype: Optional[str] = None
    length: Optional[str] = None
    note: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Field name is required")
        if not isinstance(self.type, FieldType):
            self.type = FieldType(str(self.type).lower())

    def is_alias(self) -> bool:
        """Whether the field has no physical column."""
        if self.type in ALIAS_TYPES:
            return True
        return self.relationship is not None and self.relationship.type in (
            RelationshipType.ONE_TO_MANY,
            RelationshipType.MANY_TO_MANY,
        )

    def is_json(self) -> bool:
        return self.type is FieldType.JSON

    def is_array(self) -> bool:
        return self.type is FieldType.ARRAY

    def is_numeric(self) -> bool:
        return self.type in NUMERIC_TYPES

    def is_date_time(self) -> bool:
        """Whether the field is a timestamp/datetime field."""
        return self.type in DATE_TIME_TYPES

    def accepts_structured_value(self) -> bool:
        """Whether a list/dict value may be written to this field."""
        return self.is_json() or self.is_array()


@dataclass
class Collection:
    """A named schema unit, analogous to a table.

    Attributes:
        name: Collection (table) name.
        fields: Ordered field list.
        managed: Whether this is a system collection owned by the layer.
        status_mapping: Collection-specific status mapping, if any.
        note: Free text description.
    """

    name: str
    fields: list[Field] = field(default_factory=list)
    managed: bool = False
    status_mapping: Optional[StatusMapping] = None
    note: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Collection name is required")

        names = [f.name for f in self.fields]
        if len(names) != len(set(names)):
            raise ValueError(f"Collection '{self.name}' has duplicate field names")

        for flag in ("primary_key", "status", "owner"):
            flagged = [f.name for f in self.fields if getattr(f, flag)]
            if len(flagged) > 1:
                raise ValueError(
                    f"Collection '{self.name}' has more than one {flag} field: {', '.join(flagged)}"
                )

        self._fields_by_name = {f.name: f for f in self.fields}

    def get_field(self, name: str) -> Optional[Field]:
        return self._fields_by_name.get(name)

    def has_field(self, name: str) -> bool:
        return name in self._fields_by_name

    @property
    def primary_field(self) -> Optional[Field]:
        return next((f for f in self.fields if f.primary_key), None)

    @property
    def primary_key_name(self) -> Optional[str]:
        primary = self.primary_field
        return primary.name if primary else None

    @property
    def status_field(self) -> Optional[Field]:
        return next((f for f in self.fields if f.status), None)

    def has_status_field(self) -> bool:
        return self.status_field is not None

    @property
    def owner_field(self) -> Optional[Field]:
        """The field recording which user created the record."""
        return next((f for f in self.fields if f.owner), None)

    def get_field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def get_alias_fields(self) -> list[Field]:
        return [f for f in self.fields if f.is_alias()]

    def get_non_alias_fields(self) -> list[Field]:
        return [f for f in self.fields if not f.is_alias()]

    def get_non_alias_field_names(self) -> list[str]:
        return [f.name for f in self.get_non_alias_fields()]

    def has_system_date_field(self) -> bool:
        return any(f.system_date for f in self.fields)
