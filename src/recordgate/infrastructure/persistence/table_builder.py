"""Dynamic table builder for collection schemas.

Turns collection descriptors into SQLAlchemy Table objects (used to build
typed statements) and generates the DDL the gateway needs: creating a
collection table, adding, dropping and removing columns.
"""

from typing import Any, Optional

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
    inspect,
    text,
)
from sqlalchemy.engine import Connection, Dialect
from sqlalchemy.schema import CreateTable, DropTable
from sqlalchemy.types import TypeEngine

from recordgate.core.logging import get_logger
from recordgate.domain.entities.collection import Collection, Field, FieldType
from recordgate.infrastructure.persistence.database import Base

logger = get_logger(__name__)


# SQL type used in DDL when a column definition names no explicit datatype
FIELD_TYPE_TO_SQL = {
    FieldType.STRING.value: "VARCHAR",
    FieldType.INTEGER.value: "INTEGER",
    FieldType.DECIMAL.value: "DECIMAL",
    FieldType.BOOLEAN.value: "BOOLEAN",
    FieldType.TIMESTAMP.value: "TIMESTAMP",
    FieldType.DATETIME.value: "DATETIME",
    FieldType.DATE.value: "DATE",
    FieldType.TIME.value: "TIME",
    FieldType.JSON.value: "TEXT",
    FieldType.ARRAY.value: "TEXT",
    FieldType.FILE.value: "INTEGER",
    FieldType.M2O.value: "INTEGER",
}

INTEGER_TYPES = frozenset({"INT", "INTEGER", "TINYINT", "SMALLINT", "MEDIUMINT", "BIGINT", "SERIAL"})
FLOATING_POINT_TYPES = frozenset({"FLOAT", "DOUBLE", "REAL", "DECIMAL", "NUMERIC"})
BOOLEAN_TYPES = frozenset({"BOOL", "BOOLEAN", "BIT"})

DEFAULT_STRING_LENGTH = 255


def _base_type(data_type: str) -> str:
    return data_type.split("(")[0].strip().upper()


def _string_length(length: Optional[str]) -> int:
    if length and str(length).isdigit():
        return int(length)
    return DEFAULT_STRING_LENGTH


def _column_type(field: Field) -> TypeEngine:
    if field.type in (FieldType.INTEGER, FieldType.M2O, FieldType.FILE):
        return Integer()
    if field.type is FieldType.DECIMAL:
        return Numeric(asdecimal=False)
    if field.type is FieldType.BOOLEAN:
        return Boolean(create_constraint=False)
    if field.is_date_time():
        return DateTime()
    if field.type is FieldType.DATE:
        return Date()
    if field.type in (FieldType.JSON, FieldType.ARRAY):
        return Text()
    return String(_string_length(field.length))


def _server_default(field: Field) -> Any:
    value = field.default_value
    if value is None:
        return func.now() if field.system_date else None
    if isinstance(value, bool):
        return text("1" if value else "0")
    if isinstance(value, (int, float)):
        return text(str(value))
    return str(value)


class TableBuilder:
    """Builds Table objects and DDL from collection descriptors."""

    @classmethod
    def build_table(cls, collection: Collection, metadata: Optional[MetaData] = None) -> Table:
        """Build the SQLAlchemy Table of a collection.

        Managed collections reuse the table of their model. Alias fields have
        no column and are skipped.

        Args:
            collection: The collection descriptor.
            metadata: MetaData to attach the table to. A fresh one by default.

        Returns:
            The Table object.
        """
        if collection.managed and collection.name in Base.metadata.tables:
            return Base.metadata.tables[collection.name]

        columns = []
        for field in collection.get_non_alias_fields():
            columns.append(
                Column(
                    field.name,
                    _column_type(field),
                    primary_key=field.primary_key,
                    autoincrement=bool(field.primary_key and field.auto_increment),
                    nullable=field.nullable and not field.primary_key,
                    unique=field.unique or None,
                    server_default=_server_default(field),
                )
            )
        return Table(collection.name, metadata if metadata is not None else MetaData(), *columns)

    @classmethod
    def build_create_table_ddl(cls, collection: Collection, dialect: Dialect) -> str:
        """Build the CREATE TABLE statement of a collection for a dialect."""
        return str(CreateTable(cls.build_table(collection)).compile(dialect=dialect)).strip()

    @classmethod
    def create_table(cls, connection: Connection, collection: Collection) -> None:
        """Create the physical table of a collection.

        Args:
            connection: SQLAlchemy connection.
            collection: The collection descriptor.
        """
        logger.info("Creating collection table", collection_name=collection.name)
        cls.build_table(collection).create(connection)
        logger.info("Collection table created successfully", collection_name=collection.name)

    @classmethod
    def table_exists(cls, connection: Connection, table_name: str) -> bool:
        return inspect(connection).has_table(table_name)

    @classmethod
    def is_floating_point_type(cls, data_type: str) -> bool:
        return _base_type(data_type) in FLOATING_POINT_TYPES

    @classmethod
    def cast_default_value(cls, value: Any, data_type: str) -> Any:
        """Cast a default value to the Python type matching a SQL type.

        Numbers become int/float, booleans become 1/0, anything else a
        string. Values that fail to convert are kept as strings.
        """
        base = _base_type(data_type)
        try:
            if base in INTEGER_TYPES:
                return int(value)
            if base in FLOATING_POINT_TYPES:
                return float(value)
        except (TypeError, ValueError):
            return str(value)
        if base in BOOLEAN_TYPES:
            if isinstance(value, str):
                return 0 if value.strip().lower() in ("", "0", "false") else 1
            return 1 if value else 0
        return str(value)

    @classmethod
    def build_column_def(cls, column_data: dict[str, Any], dialect: Dialect) -> str:
        """Build a column definition for ADD COLUMN.

        Args:
            column_data: Field definition with ``field``, ``type`` and the
                optional ``datatype``, ``length``, ``default_value``,
                ``nullable`` and ``note`` keys.
            dialect: Dialect used for identifier quoting.

        Returns:
            The column definition, e.g. ``"title" VARCHAR(100) DEFAULT 'x'``.
        """
        preparer = dialect.identifier_preparer
        name = column_data["field"]
        field_type = str(column_data.get("type") or FieldType.STRING.value).lower()
        data_type = column_data.get("datatype") or FIELD_TYPE_TO_SQL.get(field_type, "VARCHAR")
        data_type = str(data_type).upper()

        length = column_data.get("length")
        if length is None and _base_type(data_type) == "VARCHAR":
            length = DEFAULT_STRING_LENGTH
        if length is not None and str(length) != "":
            char_length = str(length)
            # Enum/set value lists are quoted per value, precision pairs are not
            if "," in char_length and not cls.is_floating_point_type(data_type):
                char_length = ",".join(
                    "'{}'".format(value.strip().strip("'\"").replace("'", "''"))
                    for value in char_length.split(",")
                )
            data_type = f"{data_type}({char_length})"

        parts = [preparer.quote(name), data_type]

        if column_data.get("nullable") is False:
            parts.append("NOT NULL")

        default = column_data.get("default_value")
        if default is not None and default != "":
            value = cls.cast_default_value(default, data_type)
            if isinstance(value, str):
                value = "'{}'".format(value.replace("'", "''"))
            parts.append(f"DEFAULT {value}")

        note = column_data.get("note")
        if note and dialect.name == "mysql":
            parts.append("COMMENT '{}'".format(str(note).replace("'", "''")))

        return " ".join(parts)

    @classmethod
    def build_add_column_ddl(cls, table_name: str, column_data: dict[str, Any], dialect: Dialect) -> str:
        preparer = dialect.identifier_preparer
        column_def = cls.build_column_def(column_data, dialect)
        return f"ALTER TABLE {preparer.quote(table_name)} ADD COLUMN {column_def}"

    @classmethod
    def build_drop_column_ddl(cls, table_name: str, column_name: str, dialect: Dialect) -> str:
        preparer = dialect.identifier_preparer
        return f"ALTER TABLE {preparer.quote(table_name)} DROP COLUMN {preparer.quote(column_name)}"

    @classmethod
    def build_drop_table_ddl(cls, table_name: str, dialect: Dialect) -> str:
        return str(DropTable(Table(table_name, MetaData())).compile(dialect=dialect)).strip()
