"""Tests for RecordGateway schema mutations, status mappings and settings."""

import pytest
from sqlalchemy import inspect, insert, select

from recordgate.core.exceptions import (
    CollectionHasNoStatusError,
    ForbiddenAlterError,
    StatusMappingEmptyError,
    StatusMappingWrongValueTypeError,
)
from recordgate.domain.entities.collection import RelationshipType
from recordgate.infrastructure.persistence.models import (
    CollectionModel,
    CollectionPresetModel,
    FieldModel,
    PermissionModel,
)
from recordgate.infrastructure.persistence.record_gateway import (
    DEFAULT_FIELD_SORT,
    get_column_from_identifier,
    get_column_identifier,
    get_table_from_identifier,
)


def _columns(connection, table: str) -> list[str]:
    return [column["name"] for column in inspect(connection).get_columns(table)]


def _field_row(connection, collection: str, field: str):
    return connection.execute(
        select(FieldModel.__table__).where(FieldModel.collection == collection, FieldModel.field == field)
    ).first()


def test_column_identifiers():
    assert get_column_identifier("title", "articles") == "articles.title"
    assert get_column_identifier("title") == "title"
    assert get_column_from_identifier("articles.title") == "title"
    assert get_column_from_identifier("title") == "title"
    assert get_table_from_identifier("articles.title") == "articles"
    assert get_table_from_identifier("title") is None


class TestAddColumn:
    def test_physical_column(self, articles, make_gateway, connection):
        gateway = make_gateway("articles")

        assert gateway.add_column("articles", {"field": "subtitle", "type": "string", "length": 50}) == "subtitle"

        assert "subtitle" in _columns(connection, "articles")
        row = _field_row(connection, "articles", "subtitle")
        assert row.length == "50"
        assert row.sort == DEFAULT_FIELD_SORT
        assert make_gateway("articles").get_field("subtitle").length == "50"

    def test_alias_column_has_no_physical_column(self, articles, make_gateway, connection):
        make_gateway("articles").add_column(
            "articles",
            {"field": "related", "type": "m2m", "relationship_type": "MANYTOMANY", "junction_table": "links"},
        )

        assert "related" not in _columns(connection, "articles")
        row = _field_row(connection, "articles", "related")
        assert row.relationship_type == RelationshipType.MANY_TO_MANY.value
        assert row.junction_table == "links"

    def test_many_to_one_interface(self, articles, make_gateway, connection):
        make_gateway("articles").add_column(
            "articles",
            {"field": "category", "type": "m2o", "interface": "many_to_one", "related_collection": "categories"},
        )

        assert "category" in _columns(connection, "articles")
        row = _field_row(connection, "articles", "category")
        assert row.relationship_type == "m2o"
        assert row.junction_key_right == "category"
        assert row.related_collection == "categories"

    def test_default_value_stored_as_text(self, articles, make_gateway, connection):
        make_gateway("articles").add_column("articles", {"field": "priority", "type": "integer", "default_value": 3})

        assert _field_row(connection, "articles", "priority").default_value == "3"
        make_gateway("articles").insert({"title": "ranked"})
        assert make_gateway("articles").find(1)["priority"] == 3

    def test_requires_alter_permission(self, articles, users, make_gateway, make_policy, connection):
        denied = make_policy(users["alice"], 1, {"read": "full"})
        with pytest.raises(ForbiddenAlterError):
            make_gateway("articles", acl=denied).add_column("articles", {"field": "subtitle"})
        assert "subtitle" not in _columns(connection, "articles")

        allowed = make_policy(users["alice"], 1, {"read": "full", "alter": True})
        make_gateway("articles", acl=allowed).add_column("articles", {"field": "subtitle"})
        assert _field_row(connection, "articles", "subtitle") is not None


class TestDropField:
    def test_drops_column_and_definition(self, articles, make_gateway, connection):
        connection.execute(
            insert(CollectionPresetModel).values(collection="articles", sort="views", sort_order="DESC")
        )

        assert make_gateway("articles").drop_field("views") is True

        assert "views" not in _columns(connection, "articles")
        assert _field_row(connection, "articles", "views") is None
        preset = connection.execute(select(CollectionPresetModel.__table__)).first()
        assert (preset.sort, preset.sort_order) == ("id", "ASC")

    def test_alias_field(self, articles, make_gateway, connection):
        assert make_gateway("articles").drop_field("comments") is True
        assert _field_row(connection, "articles", "comments") is None

    def test_missing_field(self, articles, make_gateway):
        assert make_gateway("articles").drop_field("missing") is False

    def test_requires_alter_permission(self, articles, users, make_gateway, make_policy):
        policy = make_policy(users["alice"], 1, {"read": "full"})
        with pytest.raises(ForbiddenAlterError):
            make_gateway("articles", acl=policy).drop_field("views")


class TestDropCollection:
    def test_drops_table_and_bookkeeping(self, articles, make_gateway, dispatcher, connection):
        connection.execute(insert(PermissionModel).values(collection="articles", group_id=1, read="full"))
        calls = []
        for event in ("collection.drop:before", "collection.drop", "collection.drop:after"):
            dispatcher.on(event, lambda name, data, context: calls.append((name, data)))
        gateway = make_gateway("articles")

        assert gateway.drop_collection() is True

        assert calls == [
            ("collection.drop:before", {"collection": "articles"}),
            ("collection.drop", {"collection": "articles"}),
            ("collection.drop:after", {"collection": "articles"}),
        ]
        assert not inspect(connection).has_table("articles")
        for model in (CollectionModel, FieldModel, PermissionModel):
            rows = connection.execute(select(model.__table__).where(model.collection == "articles")).all()
            assert rows == []

    def test_missing_table_only_cleans_bookkeeping(self, articles, make_gateway, dispatcher, connection):
        gateway = make_gateway("articles")
        gateway.drop_collection()
        calls = []
        dispatcher.on("collection.drop:before", lambda name, data, context: calls.append(name))

        assert gateway.drop_collection() is False
        assert calls == []

    def test_requires_alter_permission(self, articles, users, make_gateway, make_policy, connection):
        policy = make_policy(users["alice"], 1, {"read": "full"})
        with pytest.raises(ForbiddenAlterError):
            make_gateway("articles", acl=policy).drop_collection()
        assert inspect(connection).has_table("articles")


class TestStatusMapping:
    def test_global_mapping(self, articles, make_gateway):
        gateway = make_gateway("articles")

        assert gateway.validate_status_mapping().get_all_statuses_value() == ["published", "draft", "deleted"]
        assert gateway.get_all_statuses() == ["published", "draft", "deleted"]
        assert gateway.get_published_statuses() == ["published"]
        assert gateway.get_status_field_name() == "status"

    def test_collection_mapping(self, create_collection, make_gateway):
        create_collection(
            "posts",
            [
                {"field": "id", "type": "integer", "primary_key": True},
                {"field": "state", "type": "integer", "status_field": True},
            ],
            status_mapping=[{"value": 1, "name": "Live", "published": True}, {"value": 0, "name": "Off"}],
        )

        gateway = make_gateway("posts")

        assert gateway.validate_status_mapping().get_all_statuses_value() == [1, 0]
        assert gateway.get_published_statuses() == [1]

    def test_wrong_value_type(self, create_collection, make_gateway):
        create_collection(
            "posts",
            [
                {"field": "id", "type": "integer", "primary_key": True},
                {"field": "state", "type": "integer", "status_field": True},
            ],
            status_mapping=[{"value": "on", "name": "On"}],
        )

        gateway = make_gateway("posts")

        with pytest.raises(StatusMappingWrongValueTypeError) as exc_info:
            gateway.validate_status_mapping()
        assert exc_info.value.expected_type == "numeric"
        with pytest.raises(StatusMappingWrongValueTypeError):
            gateway.get_all_statuses()
        with pytest.raises(StatusMappingWrongValueTypeError):
            gateway.get_published_statuses()

    def test_empty_mapping(self, create_collection, make_gateway):
        create_collection(
            "posts",
            [
                {"field": "id", "type": "integer", "primary_key": True},
                {"field": "state", "status_field": True},
            ],
            status_mapping=[],
        )

        gateway = make_gateway("posts")

        with pytest.raises(StatusMappingEmptyError):
            gateway.validate_status_mapping()
        with pytest.raises(StatusMappingEmptyError):
            gateway.get_all_statuses()

    def test_collection_without_status(self, create_collection, make_gateway):
        create_collection("tags", [{"field": "id", "type": "integer", "primary_key": True}])
        gateway = make_gateway("tags")

        assert gateway.get_status_mapping() is None
        with pytest.raises(CollectionHasNoStatusError):
            gateway.validate_status_mapping()
        with pytest.raises(CollectionHasNoStatusError):
            gateway.get_all_statuses()
        with pytest.raises(CollectionHasNoStatusError):
            gateway.get_published_statuses()


def test_get_settings(articles, make_gateway):
    gateway = make_gateway("articles")

    assert gateway.get_settings("thumbnail_path") == "thumbs"
    assert gateway.get_settings() == {}

    gateway.settings_provider.set("thumbnail_path", "previews")
    assert gateway.get_settings("thumbnail_path") == "previews"
    assert gateway.get_settings() == {"thumbnail_path": "previews"}
