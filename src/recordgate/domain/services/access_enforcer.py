"""Access enforcement on query states.

The enforcer sits between an operation and the store. Given the actor's
AccessPolicy it either lets a query state through, narrows it (row-level
read filtering) or raises the matching Forbidden/NotFound error.

Ownership is decided by the collection's owner field: the record belongs
to the user stored there, and to that user's group.
"""

from typing import Any, Callable, Optional, Protocol

from sqlalchemy import Table, and_, false, or_
from sqlalchemy.sql.elements import ColumnElement

from recordgate.core.exceptions import (
    ForbiddenDeleteError,
    ForbiddenError,
    ForbiddenUpdateError,
    NotFoundError,
)
from recordgate.core.logging import get_logger
from recordgate.domain.services.access_policy import WILDCARD, AccessPolicy
from recordgate.infrastructure.persistence.query_state import (
    DeleteState,
    InsertState,
    SelectState,
    UpdateState,
)
from recordgate.infrastructure.persistence.schema_catalog import SchemaAccessor

logger = get_logger(__name__)


class UserDirectory(Protocol):
    """Lookups the enforcer needs about users."""

    def get_group_id(self, user_id: Any) -> Optional[Any]: ...

    def get_user_ids_in_group(self, group_id: Any) -> list[Any]: ...


# Fetches one row of a table matching the predicates, bypassing filters
# and access control.
RowFetcher = Callable[[Table, list[ColumnElement]], Optional[dict[str, Any]]]


def _same(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return False
    return str(left) == str(right)


def _field_name(identifier: str) -> str:
    return identifier.split(".")[-1]


class AccessEnforcer:
    """Applies an AccessPolicy to select, insert, update and delete states."""

    def __init__(
        self,
        policy: AccessPolicy,
        schema: SchemaAccessor,
        users: UserDirectory,
        fetch_row: RowFetcher,
    ) -> None:
        self.policy = policy
        self.schema = schema
        self.users = users
        self.fetch_row = fetch_row

    # ------------------------------------------------------------------
    # Select
    # ------------------------------------------------------------------

    def enforce_select(self, state: SelectState) -> None:
        """Check field read access for the selected and joined columns.

        A denied wildcard is retried with the collection's explicit
        non-alias field list, which then replaces the wildcard.

        Raises:
            ForbiddenReadError: If the actor cannot read a requested field.
        """
        collection = state.collection
        columns = [_field_name(name) for name in state.columns]
        try:
            self.policy.enforce_read_field(collection, columns)
        except ForbiddenError:
            if WILDCARD not in columns:
                raise
            expanded = list(self.schema.get_non_alias_field_names(collection))
            expanded += [name for name in columns if name != WILDCARD and name not in expanded]
            self.policy.enforce_read_field(collection, expanded)
            state.columns = expanded

        for join in state.joins:
            self.policy.enforce_read_field(join.collection, [_field_name(name) for name in join.columns])

    def enforce_read(self, state: SelectState) -> None:
        """Restrict a select to the rows the actor may read.

        Collections without owner and status fields are only readable
        with unrestricted read; anyone else matches no rows.

        Raises:
            ForbiddenReadError: If the actor cannot read the collection at all.
        """
        name = state.collection
        policy = self.policy
        policy.enforce_read_once(name)

        if policy.can_read_all(name):
            return

        collection = self.schema.get_collection(name)
        owner_field = collection.owner_field
        status_field = collection.status_field

        if owner_field is None and status_field is None:
            state.where.append(false())
            return

        group_users = self.users.get_user_ids_in_group(policy.group_id)
        statuses = policy.get_collection_statuses(name) if status_field is not None else []

        if not statuses:
            if owner_field is None:
                state.where.append(false())
                return
            owner_ids = [policy.user_id]
            if policy.can_read_from_group(name):
                owner_ids += group_users
            state.where.append(state.column(owner_field.name).in_(owner_ids))
            return

        clauses = []
        for status in statuses:
            can_read_all = policy.can_read_all(name, status)
            if (not can_read_all and owner_field is None) or not policy.can_read_mine(name, status):
                continue

            parts = [state.column(status_field.name) == status]
            if not can_read_all:
                owner_ids = [policy.user_id]
                if policy.can_read_from_group(name, status):
                    owner_ids += group_users
                parts.append(state.column(owner_field.name).in_(owner_ids))
            clauses.append(and_(*parts))

        if not clauses:
            logger.debug("No readable status", collection_name=name, user_id=policy.user_id)
            state.where.append(false())
            return
        state.where.append(or_(*clauses))

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def enforce_insert(self, state: InsertState) -> None:
        """Require create access for the status the row will be written in.

        Raises:
            ForbiddenCreateError: If the actor cannot create the record.
        """
        collection = self.schema.get_collection(state.collection)
        status = None
        status_field = collection.status_field
        if status_field is not None:
            status = state.values.get(status_field.name, status_field.default_value)
        self.policy.enforce_create(state.collection, status)

    # ------------------------------------------------------------------
    # Update and delete
    # ------------------------------------------------------------------

    def _item_owner(self, owner_value: Any) -> Optional[dict[str, Any]]:
        if owner_value is None:
            return None
        return {"id": owner_value, "group": self.users.get_group_id(owner_value)}

    def enforce_update(self, state: UpdateState) -> None:
        """Check update access against the current state of the target row.

        Raises:
            ForbiddenUpdateError: If the row is missing, blacklisted fields
                are written or the actor may not update the row.
        """
        name = state.collection
        policy = self.policy
        if policy.can_update_all(name):
            return

        item = self.fetch_row(state.table, state.where)
        if item is None:
            raise ForbiddenUpdateError(name)

        collection = self.schema.get_collection(name)
        status = item.get(collection.status_field.name) if collection.status_field else None
        policy.enforce_write_field(name, list(state.set.keys()), status)

        if collection.owner_field is None:
            policy.enforce_update_all(name, status)
            return

        owner = self._item_owner(item.get(collection.owner_field.name))
        if owner is None:
            raise ForbiddenUpdateError(name, status)

        is_user_item = _same(policy.user_id, owner["id"])
        is_group_item = _same(policy.group_id, owner["group"])

        if not is_user_item and not is_group_item and not policy.can_update_all(name, status):
            raise ForbiddenUpdateError(name, status)

        if not is_user_item and is_group_item:
            policy.enforce_update_from_group(name, status)
        elif is_user_item:
            policy.enforce_update(name, status)

    def enforce_delete(self, state: DeleteState) -> None:
        """Check delete access against the current state of the target row.

        Raises:
            NotFoundError: If no row matches the predicates.
            ForbiddenDeleteError: If the actor may not delete the row.
        """
        name = state.collection
        policy = self.policy

        item = self.fetch_row(state.table, state.where)
        if item is None:
            raise NotFoundError(name)

        collection = self.schema.get_collection(name)
        status = item.get(collection.status_field.name) if collection.status_field else None

        if collection.owner_field is None:
            policy.enforce_delete_all(name, status)
            return

        owner = self._item_owner(item.get(collection.owner_field.name))
        if owner is None:
            raise ForbiddenDeleteError(name, status)

        is_user_item = _same(policy.user_id, owner["id"])
        is_group_item = _same(policy.group_id, owner["group"])

        if not is_user_item and not is_group_item and not policy.can_delete_all(name, status):
            raise ForbiddenDeleteError(name, status)

        if not is_user_item and is_group_item:
            policy.enforce_delete_from_group(name, status)
        elif is_user_item:
            policy.enforce_delete(name, status)
