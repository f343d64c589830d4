"""Pytest configuration for all tests."""

import json
from typing import Any, Callable, Generator, Optional

import pytest
from sqlalchemy import Engine, create_engine, insert
from sqlalchemy.engine import Connection
from sqlalchemy.pool import StaticPool

from recordgate.core.config import Settings
from recordgate.core.container import FILES, SETTINGS, ServiceRegistry
from recordgate.core.events.dispatcher import Dispatcher
from recordgate.domain.entities.collection import Collection
from recordgate.domain.entities.permission import Permission
from recordgate.domain.services.access_policy import AccessPolicy
from recordgate.infrastructure.persistence import models  # noqa: F401
from recordgate.infrastructure.persistence.database import Base
from recordgate.infrastructure.persistence.models import CollectionModel, FieldModel
from recordgate.infrastructure.persistence.record_gateway import RecordGateway
from recordgate.infrastructure.persistence.repositories.user_repository import UserRepository
from recordgate.infrastructure.persistence.schema_catalog import SqlSchemaCatalog
from recordgate.infrastructure.persistence.table_builder import TableBuilder
from recordgate.infrastructure.storage.local_storage import LocalFileStorage

# Fields of the "articles" collection used across gateway tests
ARTICLE_FIELDS = [
    {"field": "id", "type": "integer", "primary_key": True, "auto_increment": True, "nullable": False},
    {"field": "title", "type": "string", "length": "100"},
    {"field": "email", "type": "string", "unique": True},
    {"field": "views", "type": "integer"},
    {"field": "price", "type": "decimal"},
    {"field": "featured", "type": "boolean"},
    {"field": "tags", "type": "array"},
    {"field": "meta", "type": "json"},
    {"field": "status", "type": "string", "status_field": True, "default_value": "draft"},
    {"field": "author", "type": "integer", "owner_field": True},
    {"field": "created_on", "type": "datetime", "system_date": True},
    {"field": "comments", "type": "o2m", "relationship_type": "o2m", "related_collection": "comments"},
]


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings for an isolated test environment."""
    return Settings(
        environment="testing",
        database_url="sqlite:///:memory:",
        storage_path=str(tmp_path / "files"),
        log_level="WARNING",
        timezone="UTC",
    )


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with the bookkeeping tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def connection(engine: Engine) -> Generator[Connection, None, None]:
    with engine.connect() as conn:
        yield conn


@pytest.fixture
def dispatcher() -> Dispatcher:
    return Dispatcher()


@pytest.fixture
def storage(settings: Settings) -> LocalFileStorage:
    return LocalFileStorage(settings=settings)


@pytest.fixture
def services(settings: Settings, storage: LocalFileStorage) -> ServiceRegistry:
    services = ServiceRegistry()
    services.register(SETTINGS, settings)
    services.register(FILES, storage)
    return services


@pytest.fixture
def create_collection(connection: Connection) -> Callable[..., Collection]:
    """Register a user collection in the bookkeeping tables and create its table."""

    def _create(
        name: str,
        fields: list[dict[str, Any]],
        status_mapping: Optional[list[dict[str, Any]]] = None,
    ) -> Collection:
        connection.execute(
            insert(CollectionModel).values(
                collection=name,
                status_mapping=json.dumps(status_mapping) if status_mapping is not None else None,
            )
        )
        for sort, field in enumerate(fields):
            connection.execute(insert(FieldModel).values(collection=name, sort=sort, **field))

        collection = SqlSchemaCatalog(connection).get_collection(name)
        TableBuilder.create_table(connection, collection)
        return collection

    return _create


@pytest.fixture
def articles(create_collection) -> Collection:
    return create_collection("articles", ARTICLE_FIELDS)


@pytest.fixture
def users(connection: Connection) -> dict[str, int]:
    """Three users: alice and bob share group 1, carol is in group 2."""
    repository = UserRepository(connection)
    return {
        "alice": repository.create("alice@example.com", group_id=1),
        "bob": repository.create("bob@example.com", group_id=1),
        "carol": repository.create("carol@example.com", group_id=2),
    }


@pytest.fixture
def make_gateway(connection: Connection, dispatcher: Dispatcher, services: ServiceRegistry):
    def _make(name: str, acl: Optional[AccessPolicy] = None) -> RecordGateway:
        return RecordGateway(name, connection, dispatcher, services, acl=acl)

    return _make


@pytest.fixture
def make_policy() -> Callable[..., AccessPolicy]:
    """Build an access policy from permission keyword dictionaries."""

    def _make(user_id: Any, group_id: Any, *rules: dict[str, Any]) -> AccessPolicy:
        permissions = []
        for rule in rules:
            rule = dict(rule)
            collection = rule.pop("collection", "articles")
            permissions.append(Permission(collection=collection, group_id=group_id, **rule))
        return AccessPolicy(user_id=user_id, group_id=group_id, permissions=permissions)

    return _make
