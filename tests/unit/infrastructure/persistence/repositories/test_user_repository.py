"""Tests for UserRepository against an in-memory database."""

from recordgate.infrastructure.persistence.repositories.user_repository import UserRepository


def test_create_returns_id(connection):
    """Test that created users get sequential IDs."""
    repository = UserRepository(connection)

    first = repository.create("a@example.com", group_id=1)
    second = repository.create("b@example.com")

    assert second == first + 1


def test_get_group_id(connection, users):
    """Test resolving a user's group."""
    repository = UserRepository(connection)

    assert repository.get_group_id(users["alice"]) == 1
    assert repository.get_group_id(users["carol"]) == 2
    assert repository.get_group_id(999) is None


def test_get_user_ids_in_group(connection, users):
    """Test listing group members."""
    repository = UserRepository(connection)

    assert repository.get_user_ids_in_group(1) == [users["alice"], users["bob"]]
    assert repository.get_user_ids_in_group(3) == []
    assert repository.get_user_ids_in_group(None) == []
