"""Unit tests for TableBuilder."""

import pytest
from sqlalchemy import DateTime, Integer, Numeric, String, Text, inspect
from sqlalchemy.dialects import mysql, sqlite

from recordgate.domain.entities.collection import Collection, Field, FieldType
from recordgate.infrastructure.persistence.models import FileModel
from recordgate.infrastructure.persistence.schema_catalog import collection_from_table
from recordgate.infrastructure.persistence.table_builder import TableBuilder

SQLITE = sqlite.dialect()


def test_build_column_def_string_with_length():
    """Test building a varchar column with length, NOT NULL and default."""
    column_def = TableBuilder.build_column_def(
        {"field": "title", "type": "string", "length": "100", "nullable": False, "default_value": "Untitled"},
        SQLITE,
    )
    assert column_def == "title VARCHAR(100) NOT NULL DEFAULT 'Untitled'"


def test_build_column_def_default_varchar_length():
    """Test that a varchar without length gets the default length."""
    assert TableBuilder.build_column_def({"field": "title"}, SQLITE) == "title VARCHAR(255)"


def test_build_column_def_integer_default():
    """Test that numeric defaults are rendered unquoted."""
    column_def = TableBuilder.build_column_def({"field": "views", "type": "integer", "default_value": "5"}, SQLITE)
    assert column_def == "views INTEGER DEFAULT 5"


def test_build_column_def_decimal_precision():
    """Test that a precision pair is not quoted."""
    column_def = TableBuilder.build_column_def(
        {"field": "price", "type": "decimal", "length": "10,2", "default_value": "1.5"}, SQLITE
    )
    assert column_def == "price DECIMAL(10,2) DEFAULT 1.5"


def test_build_column_def_enum_values_quoted():
    """Test that enum value lists are quoted per value."""
    column_def = TableBuilder.build_column_def(
        {"field": "kind", "datatype": "enum", "length": "small, 'medium',large"}, SQLITE
    )
    assert column_def == "kind ENUM('small','medium','large')"


def test_build_column_def_boolean_default():
    column_def = TableBuilder.build_column_def(
        {"field": "featured", "type": "boolean", "default_value": "false"}, SQLITE
    )
    assert column_def == "featured BOOLEAN DEFAULT 0"


def test_build_column_def_json_is_text():
    assert TableBuilder.build_column_def({"field": "meta", "type": "json"}, SQLITE) == "meta TEXT"


def test_build_column_def_escapes_quotes_in_default():
    column_def = TableBuilder.build_column_def({"field": "title", "default_value": "it's"}, SQLITE)
    assert column_def == "title VARCHAR(255) DEFAULT 'it''s'"


def test_build_column_def_comment_only_on_mysql():
    """Test that notes become column comments on MySQL only."""
    data = {"field": "title", "note": "Main title"}
    assert TableBuilder.build_column_def(data, mysql.dialect()) == "title VARCHAR(255) COMMENT 'Main title'"
    assert TableBuilder.build_column_def(data, SQLITE) == "title VARCHAR(255)"


def test_alter_ddl():
    """Test generating ADD/DROP COLUMN and DROP TABLE statements."""
    assert (
        TableBuilder.build_add_column_ddl("articles", {"field": "subtitle"}, SQLITE)
        == "ALTER TABLE articles ADD COLUMN subtitle VARCHAR(255)"
    )
    assert TableBuilder.build_drop_column_ddl("articles", "subtitle", SQLITE) == (
        "ALTER TABLE articles DROP COLUMN subtitle"
    )
    assert TableBuilder.build_drop_table_ddl("articles", SQLITE) == "DROP TABLE articles"


@pytest.mark.parametrize(
    ("value", "data_type", "expected"),
    [
        ("7", "INT", 7),
        ("7", "bigint(20)", 7),
        ("x", "INTEGER", "x"),
        ("2.5", "FLOAT", 2.5),
        ("true", "BOOLEAN", 1),
        ("0", "BIT", 0),
        (False, "BOOL", 0),
        (3, "VARCHAR(10)", "3"),
    ],
)
def test_cast_default_value(value, data_type, expected):
    """Test casting default values by SQL type."""
    assert TableBuilder.cast_default_value(value, data_type) == expected


def test_build_table_maps_field_types():
    """Test that field kinds become SQLAlchemy column types and aliases are skipped."""
    collection = Collection(
        name="products",
        fields=[
            Field(name="id", type=FieldType.INTEGER, primary_key=True, auto_increment=True),
            Field(name="name", length="80", nullable=False),
            Field(name="price", type=FieldType.DECIMAL),
            Field(name="meta", type=FieldType.JSON),
            Field(name="created_on", type=FieldType.DATETIME, system_date=True),
            Field(name="tags", type=FieldType.M2M),
        ],
    )

    table = TableBuilder.build_table(collection)

    assert table.name == "products"
    assert list(table.c.keys()) == ["id", "name", "price", "meta", "created_on"]
    assert table.c.id.primary_key
    assert isinstance(table.c.id.type, Integer)
    assert isinstance(table.c.name.type, String)
    assert table.c.name.type.length == 80
    assert table.c.name.nullable is False
    assert isinstance(table.c.price.type, Numeric)
    assert isinstance(table.c.meta.type, Text)
    assert isinstance(table.c.created_on.type, DateTime)
    assert table.c.created_on.server_default is not None


def test_build_table_reuses_managed_model_table():
    """Test that managed collections map to their model table."""
    collection = collection_from_table(FileModel.__table__)
    assert TableBuilder.build_table(collection) is FileModel.__table__


def test_create_table_and_table_exists(connection):
    """Test creating a collection table on a live connection."""
    collection = Collection(
        name="notes",
        fields=[
            Field(name="id", type=FieldType.INTEGER, primary_key=True, auto_increment=True),
            Field(name="body", default_value="empty"),
        ],
    )

    assert not TableBuilder.table_exists(connection, "notes")
    TableBuilder.create_table(connection, collection)

    assert TableBuilder.table_exists(connection, "notes")
    assert [column["name"] for column in inspect(connection).get_columns("notes")] == ["id", "body"]
