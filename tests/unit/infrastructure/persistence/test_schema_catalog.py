"""Tests for the schema catalog and the per-gateway schema accessor."""

from unittest.mock import MagicMock

import pytest

from recordgate.core.exceptions import FieldNotFoundError, ForbiddenReadError, SchemaNotFoundError
from recordgate.domain.entities.collection import Collection, Field, FieldType, RelationshipType
from recordgate.domain.entities.permission import Permission
from recordgate.domain.services.access_policy import AccessPolicy
from recordgate.infrastructure.persistence.models import FILES_TABLE
from recordgate.infrastructure.persistence.schema_catalog import SchemaAccessor, SqlSchemaCatalog


class TestSqlSchemaCatalog:
    """Tests for catalog reads from the bookkeeping tables."""

    def test_user_collection(self, connection, articles):
        collection = SqlSchemaCatalog(connection).get_collection("articles")

        assert collection.managed is False
        assert collection.get_field_names()[:3] == ["id", "title", "email"]
        assert collection.primary_key_name == "id"
        assert collection.primary_field.auto_increment
        assert collection.status_field.name == "status"
        assert collection.status_field.default_value == "draft"
        assert collection.owner_field.name == "author"
        assert collection.get_field("title").length == "100"
        assert collection.get_field("email").unique
        assert collection.get_field("created_on").system_date
        assert collection.get_alias_fields()[0].name == "comments"

    def test_relationship_is_parsed(self, connection, articles):
        comments = SqlSchemaCatalog(connection).get_collection("articles").get_field("comments")

        assert comments.is_alias()
        assert comments.relationship.type is RelationshipType.ONE_TO_MANY
        assert comments.relationship.related_collection == "comments"

    def test_status_mapping(self, connection, create_collection):
        create_collection(
            "posts",
            [{"field": "id", "type": "integer", "primary_key": True}],
            status_mapping=[{"value": 1, "name": "Live", "published": True}, {"value": 0, "name": "Hidden"}],
        )

        collection = SqlSchemaCatalog(connection).get_collection("posts")

        assert collection.status_mapping.get_all_statuses_value() == [1, 0]
        assert collection.status_mapping.get_published_statuses_value() == [1]

    def test_managed_collection_from_model(self, connection):
        collection = SqlSchemaCatalog(connection).get_collection(FILES_TABLE)

        assert collection.managed is True
        assert collection.primary_key_name == "id"
        assert collection.primary_field.auto_increment
        assert collection.owner_field.name == "uploaded_by"
        assert collection.get_field("uploaded_on").type is FieldType.DATETIME
        assert collection.get_field("uploaded_on").system_date
        assert collection.get_field("filesize").type is FieldType.INTEGER

    def test_unknown_collection(self, connection):
        with pytest.raises(SchemaNotFoundError):
            SqlSchemaCatalog(connection).get_collection("missing")

    def test_get_field(self, connection, articles):
        catalog = SqlSchemaCatalog(connection)

        assert catalog.get_field("articles", "views").type is FieldType.INTEGER
        assert catalog.has_field("articles", "comments")
        assert not catalog.has_field("articles", "comments", include_alias=False)
        assert "comments" not in catalog.get_non_alias_field_names("articles")
        with pytest.raises(FieldNotFoundError):
            catalog.get_field("articles", "missing")


class TestSchemaAccessor:
    """Tests for SchemaAccessor caching and ACL checks."""

    def _catalog(self):
        catalog = MagicMock()
        catalog.get_collection.side_effect = lambda name: Collection(
            name=name, fields=[Field(name="id", type=FieldType.INTEGER, primary_key=True), Field(name="title")]
        )
        return catalog

    def test_own_collection_is_cached(self):
        catalog = self._catalog()
        accessor = SchemaAccessor(catalog, "articles")

        first = accessor.get_collection()
        second = accessor.get_collection("articles")

        assert first is second
        catalog.get_collection.assert_called_once_with("articles")

    def test_other_collections_read_through(self):
        catalog = self._catalog()
        accessor = SchemaAccessor(catalog, "articles")

        accessor.get_collection("tags")
        accessor.get_collection("tags")

        assert catalog.get_collection.call_count == 2

    def test_acl_check_when_requested(self):
        policy = AccessPolicy(user_id=1, group_id=1, permissions=[Permission("articles", read="mine")])
        accessor = SchemaAccessor(self._catalog(), "articles", policy)

        accessor.get_collection("articles", skip_acl=False)
        accessor.get_collection("tags")
        with pytest.raises(ForbiddenReadError):
            accessor.get_collection("tags", skip_acl=False)

    def test_get_field(self):
        accessor = SchemaAccessor(self._catalog(), "articles")

        assert accessor.get_field("title").name == "title"
        assert accessor.has_field("title")
        assert accessor.get_non_alias_field_names() == ["id", "title"]
        with pytest.raises(FieldNotFoundError):
            accessor.get_field("missing")
