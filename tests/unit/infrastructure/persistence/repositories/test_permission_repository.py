"""Tests for PermissionRepository against an in-memory database."""

from recordgate.domain.entities.permission import Permission, PermissionLevel
from recordgate.infrastructure.persistence.repositories.permission_repository import (
    PermissionRepository,
)


def test_create_and_get_by_group(connection):
    """Test that rules round-trip through the permissions table."""
    repository = PermissionRepository(connection)
    created = repository.create(
        Permission(
            collection="articles",
            group_id=1,
            status="published",
            read="full",
            update="mine",
            alter=True,
            read_field_blacklist=["secret", "notes"],
        )
    )

    assert created.id is not None

    rules = repository.get_by_group(1)
    assert len(rules) == 1
    rule = rules[0]
    assert rule.id == created.id
    assert rule.collection == "articles"
    assert rule.status == "published"
    assert rule.read is PermissionLevel.FULL
    assert rule.update is PermissionLevel.MINE
    assert rule.create is PermissionLevel.NONE
    assert rule.alter is True
    assert rule.read_field_blacklist == ["secret", "notes"]
    assert rule.write_field_blacklist == []


def test_get_by_collection_and_delete(connection):
    """Test listing and removing the rules of a collection."""
    repository = PermissionRepository(connection)
    repository.create(Permission(collection="articles", group_id=1, read="mine"))
    repository.create(Permission(collection="articles", group_id=2, read="full"))
    repository.create(Permission(collection="tags", group_id=1, read="full"))

    assert {rule.group_id for rule in repository.get_by_collection("articles")} == {1, 2}

    assert repository.delete_by_collection("articles") == 2
    assert repository.get_by_collection("articles") == []
    assert len(repository.get_by_collection("tags")) == 1


def test_build_policy(connection):
    """Test that the policy of an actor is built from its group's rules."""
    repository = PermissionRepository(connection)
    repository.create(Permission(collection="articles", group_id=1, read="group"))
    repository.create(Permission(collection="articles", group_id=2, read="full"))

    policy = repository.build_policy(user_id=5, group_id=1)

    assert policy.user_id == 5
    assert policy.can_read_from_group("articles")
    assert not policy.can_read_all("articles")
