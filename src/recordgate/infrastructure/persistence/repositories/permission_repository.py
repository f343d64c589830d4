"""Permission repository for database operations."""

from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.engine import Connection

from recordgate.domain.entities.permission import Permission
from recordgate.domain.services.access_policy import AccessPolicy
from recordgate.infrastructure.persistence.models import PermissionModel

BLACKLIST_SEPARATOR = ","


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(BLACKLIST_SEPARATOR) if item.strip()]


class PermissionRepository:
    """Synchronous repository for permission rules using SQLAlchemy Core."""

    def __init__(self, connection: Connection) -> None:
        """Initialize the repository.

        Args:
            connection: Active SQLAlchemy connection.
        """
        self.connection = connection

    def create(self, permission: Permission) -> Permission:
        """Persist a permission rule.

        Args:
            permission: Rule to store.

        Returns:
            The rule with its storage id set.
        """
        result = self.connection.execute(
            insert(PermissionModel).values(
                collection=permission.collection,
                group_id=permission.group_id,
                status=None if permission.status is None else str(permission.status),
                create=permission.create.value,
                read=permission.read.value,
                update=permission.update.value,
                delete=permission.delete.value,
                alter=permission.alter,
                read_field_blacklist=BLACKLIST_SEPARATOR.join(permission.read_field_blacklist) or None,
                write_field_blacklist=BLACKLIST_SEPARATOR.join(permission.write_field_blacklist) or None,
            )
        )
        permission.id = result.inserted_primary_key[0]
        return permission

    def get_by_group(self, group_id: Any) -> list[Permission]:
        """Get all rules granted to a group.

        Args:
            group_id: Group ID.

        Returns:
            List of permission rules.
        """
        rows = self.connection.execute(
            select(PermissionModel.__table__).where(PermissionModel.group_id == group_id)
        ).all()
        return [self._to_entity(row) for row in rows]

    def get_by_collection(self, collection: str) -> list[Permission]:
        rows = self.connection.execute(
            select(PermissionModel.__table__).where(PermissionModel.collection == collection)
        ).all()
        return [self._to_entity(row) for row in rows]

    def delete_by_collection(self, collection: str) -> int:
        """Delete every rule of a collection.

        Returns:
            Number of deleted rules.
        """
        result = self.connection.execute(
            delete(PermissionModel).where(PermissionModel.collection == collection)
        )
        return result.rowcount

    def build_policy(self, user_id: Any, group_id: Any, is_admin: bool = False) -> AccessPolicy:
        """Build the access policy of an actor from its group's rules."""
        return AccessPolicy(
            user_id=user_id,
            group_id=group_id,
            permissions=self.get_by_group(group_id),
            is_admin=is_admin,
        )

    @staticmethod
    def _to_entity(row: Any) -> Permission:
        return Permission(
            id=row.id,
            collection=row.collection,
            group_id=row.group_id,
            status=row.status,
            create=row.create,
            read=row.read,
            update=row.update,
            delete=row.delete,
            alter=bool(row.alter),
            read_field_blacklist=_split(row.read_field_blacklist),
            write_field_blacklist=_split(row.write_field_blacklist),
        )
