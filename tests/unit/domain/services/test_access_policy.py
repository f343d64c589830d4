"""Unit tests for AccessPolicy."""

import pytest

from recordgate.core.exceptions import (
    ForbiddenAlterError,
    ForbiddenCreateError,
    ForbiddenDeleteError,
    ForbiddenFieldReadError,
    ForbiddenFieldWriteError,
    ForbiddenReadError,
    ForbiddenUpdateError,
)
from recordgate.domain.entities.permission import Permission
from recordgate.domain.services.access_policy import AccessPolicy


def _policy(*permissions: Permission, is_admin: bool = False) -> AccessPolicy:
    return AccessPolicy(user_id=7, group_id=2, permissions=permissions, is_admin=is_admin)


class TestAccessPolicyQueries:
    """Tests for capability queries."""

    def test_no_rule_means_no_access(self) -> None:
        policy = _policy()

        assert not policy.can_create("articles")
        assert not policy.can_read_once("articles")
        assert not policy.can_update("articles")
        assert not policy.can_delete_all("articles")
        assert not policy.can_alter("articles")

    def test_levels(self) -> None:
        policy = _policy(Permission("articles", create="full", read="group", update="mine", delete="full"))

        assert policy.can_create("articles")
        assert policy.can_read_mine("articles")
        assert policy.can_read_from_group("articles")
        assert not policy.can_read_all("articles")
        assert policy.can_update("articles")
        assert not policy.can_update_from_group("articles")
        assert policy.can_delete("articles")
        assert policy.can_delete_all("articles")

    def test_status_rule_overrides_generic_rule(self) -> None:
        policy = _policy(
            Permission("articles", read="mine", update="none"),
            Permission("articles", status="published", read="full", update="full"),
        )

        assert policy.can_read_all("articles", "published")
        assert not policy.can_read_all("articles", "draft")
        assert policy.can_read_mine("articles", "draft")
        assert policy.can_update_all("articles", "published")
        assert not policy.can_update("articles")

    def test_status_lookup_is_type_insensitive(self) -> None:
        policy = _policy(Permission("articles", status="1", read="full"))
        assert policy.can_read_all("articles", 1)

    def test_get_collection_statuses(self) -> None:
        policy = _policy(
            Permission("articles", read="mine"),
            Permission("articles", status="published", read="full"),
            Permission("articles", status="draft", read="mine"),
        )

        assert policy.get_collection_statuses("articles") == ["published", "draft"]
        assert policy.get_collection_statuses("other") == []

    def test_can_read_once_with_status_rules_only(self) -> None:
        policy = _policy(Permission("articles", status="published", read="full"))
        assert policy.can_read_once("articles")

    def test_blacklists(self) -> None:
        policy = _policy(
            Permission(
                "articles",
                read="full",
                read_field_blacklist=["secret"],
                write_field_blacklist=["author"],
            )
        )

        assert policy.get_read_field_blacklist("articles") == ["secret"]
        assert policy.get_write_field_blacklist("articles") == ["author"]
        assert policy.get_read_field_blacklist("other") == []

    def test_admin_bypasses_everything(self) -> None:
        policy = _policy(Permission("articles", read_field_blacklist=["secret"]), is_admin=True)

        assert policy.can_create("anything")
        assert policy.can_read_all("anything")
        assert policy.can_delete_all("anything")
        assert policy.can_alter("anything")
        assert policy.get_read_field_blacklist("articles") == []
        policy.enforce_read_field("articles", ["*"])


class TestAccessPolicyEnforcement:
    """Tests for enforce_* methods."""

    def test_enforce_raises_typed_errors(self) -> None:
        policy = _policy(Permission("articles", read="mine"))

        with pytest.raises(ForbiddenCreateError) as exc_info:
            policy.enforce_create("articles", "draft")
        assert exc_info.value.collection == "articles"
        assert exc_info.value.status == "draft"

        with pytest.raises(ForbiddenReadError):
            policy.enforce_read_all("articles")
        with pytest.raises(ForbiddenUpdateError):
            policy.enforce_update("articles")
        with pytest.raises(ForbiddenUpdateError):
            policy.enforce_update_from_group("articles")
        with pytest.raises(ForbiddenDeleteError):
            policy.enforce_delete_all("articles")
        with pytest.raises(ForbiddenAlterError):
            policy.enforce_alter("articles")

    def test_enforce_read_once(self) -> None:
        with pytest.raises(ForbiddenReadError):
            _policy().enforce_read_once("articles")
        _policy(Permission("articles", read="mine")).enforce_read_once("articles")

    def test_enforce_read_field(self) -> None:
        policy = _policy(Permission("articles", read="full", read_field_blacklist=["secret"]))

        policy.enforce_read_field("articles", ["id", "title"])

        with pytest.raises(ForbiddenFieldReadError) as exc_info:
            policy.enforce_read_field("articles", ["id", "secret"])
        assert exc_info.value.fields == ["secret"]

    def test_wildcard_denied_when_blacklist_present(self) -> None:
        policy = _policy(Permission("articles", read="full", read_field_blacklist=["secret"]))

        with pytest.raises(ForbiddenFieldReadError):
            policy.enforce_read_field("articles", ["*"])

        _policy(Permission("articles", read="full")).enforce_read_field("articles", ["*"])

    def test_enforce_read_field_requires_collection_read(self) -> None:
        with pytest.raises(ForbiddenReadError):
            _policy().enforce_read_field("articles", ["id"])

    def test_enforce_write_field(self) -> None:
        policy = _policy(Permission("articles", update="full", write_field_blacklist=["author"]))

        policy.enforce_write_field("articles", ["title"])
        with pytest.raises(ForbiddenFieldWriteError) as exc_info:
            policy.enforce_write_field("articles", ["title", "author"])
        assert exc_info.value.fields == ["author"]
        assert isinstance(exc_info.value, ForbiddenUpdateError)
