"""Access policy of one actor.

AccessPolicy answers capability questions ("may this user update records of
'articles' in status 'draft'?") from the permission rules of the actor's
group, and offers ``enforce_*`` variants that raise the matching Forbidden
error instead of returning False.

Rule lookup: a rule with a matching status wins, otherwise the collection's
status-less rule applies. No rule means no access. Admins bypass every check.
"""

from typing import Any, Iterable, Optional

from recordgate.core.exceptions import (
    ForbiddenAlterError,
    ForbiddenCreateError,
    ForbiddenDeleteError,
    ForbiddenFieldReadError,
    ForbiddenFieldWriteError,
    ForbiddenReadError,
    ForbiddenUpdateError,
)
from recordgate.domain.entities.permission import Permission, PermissionLevel

WILDCARD = "*"


class AccessPolicy:
    """Capability queries and enforcement for an actor.

    Example:
        policy = AccessPolicy(user_id=7, group_id=2, permissions=rules)
        if policy.can_read_all("articles"):
            ...
        policy.enforce_update("articles", status="draft")
    """

    def __init__(
        self,
        user_id: Any,
        group_id: Any,
        permissions: Iterable[Permission] = (),
        is_admin: bool = False,
    ) -> None:
        self.user_id = user_id
        self.group_id = group_id
        self.is_admin = is_admin
        self._rules: dict[str, dict[Optional[str], Permission]] = {}
        for permission in permissions:
            status_key = None if permission.status is None else str(permission.status)
            self._rules.setdefault(permission.collection, {})[status_key] = permission

    def get_permission(self, collection: str, status: Any = None) -> Optional[Permission]:
        """Get the rule governing a collection, optionally for a status."""
        rules = self._rules.get(collection, {})
        if status is not None and str(status) in rules:
            return rules[str(status)]
        return rules.get(None)

    def get_collection_statuses(self, collection: str) -> list[Any]:
        """Get the statuses that have a dedicated rule for a collection."""
        return [
            rule.status
            for status_key, rule in self._rules.get(collection, {}).items()
            if status_key is not None
        ]

    def _allows(self, collection: str, action: str, level: PermissionLevel, status: Any = None) -> bool:
        if self.is_admin:
            return True
        rule = self.get_permission(collection, status)
        if rule is None:
            return False
        return getattr(rule, action).allows(level)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def can_create(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "create", PermissionLevel.FULL, status)

    def can_read_mine(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "read", PermissionLevel.MINE, status)

    def can_read_from_group(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "read", PermissionLevel.GROUP, status)

    def can_read_all(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "read", PermissionLevel.FULL, status)

    def can_read_once(self, collection: str) -> bool:
        """Whether any rule of the collection grants some read access."""
        if self.is_admin:
            return True
        return any(
            rule.read.allows(PermissionLevel.MINE)
            for rule in self._rules.get(collection, {}).values()
        )

    def can_update(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "update", PermissionLevel.MINE, status)

    def can_update_from_group(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "update", PermissionLevel.GROUP, status)

    def can_update_all(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "update", PermissionLevel.FULL, status)

    def can_delete(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "delete", PermissionLevel.MINE, status)

    def can_delete_from_group(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "delete", PermissionLevel.GROUP, status)

    def can_delete_all(self, collection: str, status: Any = None) -> bool:
        return self._allows(collection, "delete", PermissionLevel.FULL, status)

    def can_alter(self, collection: str) -> bool:
        if self.is_admin:
            return True
        rule = self.get_permission(collection)
        return bool(rule and rule.alter)

    def get_read_field_blacklist(self, collection: str, status: Any = None) -> list[str]:
        if self.is_admin:
            return []
        rule = self.get_permission(collection, status)
        return list(rule.read_field_blacklist) if rule else []

    def get_write_field_blacklist(self, collection: str, status: Any = None) -> list[str]:
        if self.is_admin:
            return []
        rule = self.get_permission(collection, status)
        return list(rule.write_field_blacklist) if rule else []

    # ------------------------------------------------------------------
    # Enforcement
    # ------------------------------------------------------------------

    def enforce_create(self, collection: str, status: Any = None) -> None:
        if not self.can_create(collection, status):
            raise ForbiddenCreateError(collection, status)

    def enforce_read_once(self, collection: str) -> None:
        if not self.can_read_once(collection):
            raise ForbiddenReadError(collection)

    def enforce_read_all(self, collection: str, status: Any = None) -> None:
        if not self.can_read_all(collection, status):
            raise ForbiddenReadError(collection, status)

    def enforce_update(self, collection: str, status: Any = None) -> None:
        if not self.can_update(collection, status):
            raise ForbiddenUpdateError(collection, status)

    def enforce_update_from_group(self, collection: str, status: Any = None) -> None:
        if not self.can_update_from_group(collection, status):
            raise ForbiddenUpdateError(collection, status)

    def enforce_update_all(self, collection: str, status: Any = None) -> None:
        if not self.can_update_all(collection, status):
            raise ForbiddenUpdateError(collection, status)

    def enforce_delete(self, collection: str, status: Any = None) -> None:
        if not self.can_delete(collection, status):
            raise ForbiddenDeleteError(collection, status)

    def enforce_delete_from_group(self, collection: str, status: Any = None) -> None:
        if not self.can_delete_from_group(collection, status):
            raise ForbiddenDeleteError(collection, status)

    def enforce_delete_all(self, collection: str, status: Any = None) -> None:
        if not self.can_delete_all(collection, status):
            raise ForbiddenDeleteError(collection, status)

    def enforce_alter(self, collection: str) -> None:
        if not self.can_alter(collection):
            raise ForbiddenAlterError(collection)

    def enforce_read_field(self, collection: str, fields: Iterable[str], status: Any = None) -> None:
        """Require read access to the collection and to every listed field.

        The wildcard ``*`` only passes when the collection has no read
        blacklist.

        Raises:
            ForbiddenReadError: If the collection is not readable at all.
            ForbiddenFieldReadError: If any field is blacklisted.
        """
        self.enforce_read_once(collection)
        blacklist = self.get_read_field_blacklist(collection, status)
        if not blacklist:
            return

        fields = list(fields)
        if WILDCARD in fields:
            raise ForbiddenFieldReadError(collection, blacklist)

        denied = [name for name in fields if name in blacklist]
        if denied:
            raise ForbiddenFieldReadError(collection, denied)

    def enforce_write_field(self, collection: str, fields: Iterable[str], status: Any = None) -> None:
        """Require that no listed field is blacklisted for writing.

        Raises:
            ForbiddenFieldWriteError: If any field is blacklisted.
        """
        blacklist = self.get_write_field_blacklist(collection, status)
        denied = [name for name in fields if name in blacklist]
        if denied:
            raise ForbiddenFieldWriteError(collection, denied)
