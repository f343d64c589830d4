"""Permission entity for per-group collection access rules."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class PermissionLevel(str, Enum):
    """Scope of a capability, ordered from narrowest to widest.

    ``MINE`` covers records the actor owns, ``GROUP`` adds records owned by
    members of the actor's group, ``FULL`` covers every record.
    """

    NONE = "none"
    MINE = "mine"
    GROUP = "group"
    FULL = "full"

    @property
    def rank(self) -> int:
        return _LEVEL_RANKS[self]

    def allows(self, required: "PermissionLevel") -> bool:
        """Whether this level covers the required level."""
        if required is PermissionLevel.NONE:
            return True
        return self.rank >= required.rank


_LEVEL_RANKS = {
    PermissionLevel.NONE: 0,
    PermissionLevel.MINE: 1,
    PermissionLevel.GROUP: 2,
    PermissionLevel.FULL: 3,
}


@dataclass
class Permission:
    """Access rule of a group on a collection.

    A rule without a status applies to every status of the collection; a
    rule with a status overrides it for records in that status.

    Attributes:
        collection: Collection the rule applies to.
        group_id: Group granted the rule.
        status: Optional status value the rule is restricted to.
        create: ``none`` or ``full``.
        read: Read scope.
        update: Update scope.
        delete: Delete scope.
        alter: Whether the schema of the collection may be altered.
        read_field_blacklist: Fields that may not be read.
        write_field_blacklist: Fields that may not be written.
        id: Storage identifier, if persisted.
    """

    collection: str
    group_id: Any = None
    status: Optional[Any] = None
    create: PermissionLevel = PermissionLevel.NONE
    read: PermissionLevel = PermissionLevel.NONE
    update: PermissionLevel = PermissionLevel.NONE
    delete: PermissionLevel = PermissionLevel.NONE
    alter: bool = False
    read_field_blacklist: list[str] = field(default_factory=list)
    write_field_blacklist: list[str] = field(default_factory=list)
    id: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("create", "read", "update", "delete"):
            value = getattr(self, name)
            if not isinstance(value, PermissionLevel):
                setattr(self, name, PermissionLevel(value or PermissionLevel.NONE.value))

        if self.create not in (PermissionLevel.NONE, PermissionLevel.FULL):
            raise ValueError("Create permission must be 'none' or 'full'")
