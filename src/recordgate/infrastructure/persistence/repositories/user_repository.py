"""User repository: identities and group membership for ownership checks."""

from typing import Any, Optional

from sqlalchemy import insert, select
from sqlalchemy.engine import Connection

from recordgate.infrastructure.persistence.models import UserModel


class UserRepository:
    """Synchronous user directory using SQLAlchemy Core.

    The access enforcer uses it to resolve the group of a record owner and
    the members of the actor's group.
    """

    def __init__(self, connection: Connection) -> None:
        """Initialize the repository.

        Args:
            connection: Active SQLAlchemy connection.
        """
        self.connection = connection

    def create(self, email: str, group_id: Any = None, status: str = "active") -> int:
        """Create a user.

        Returns:
            The new user's ID.
        """
        result = self.connection.execute(
            insert(UserModel).values(email=email, group_id=group_id, status=status)
        )
        return result.inserted_primary_key[0]

    def get_group_id(self, user_id: Any) -> Optional[Any]:
        """Get the group of a user, or None for unknown users."""
        result = self.connection.execute(
            select(UserModel.group_id).where(UserModel.id == user_id)
        )
        return result.scalar_one_or_none()

    def get_user_ids_in_group(self, group_id: Any) -> list[Any]:
        """Get the IDs of every member of a group.

        Args:
            group_id: Group ID. None gives an empty list.
        """
        if group_id is None:
            return []
        result = self.connection.execute(
            select(UserModel.id).where(UserModel.group_id == group_id).order_by(UserModel.id)
        )
        return list(result.scalars().all())
