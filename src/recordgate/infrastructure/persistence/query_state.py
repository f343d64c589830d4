"""Mutable query descriptions passed through enforcement and events.

A query state is what an operation intends to do before any SQL is built:
target table, columns, values and predicates. The access enforcer narrows
it, select filters may rewrite its columns, and the gateway finally turns
it into a SQLAlchemy statement.

Predicates are SQLAlchemy column expressions built against the state's own
table object, so they compose with any dialect.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Sequence

from sqlalchemy import (
    Delete,
    FromClause,
    Insert,
    Select,
    Table,
    Update,
    and_,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.sql.elements import ColumnElement

from recordgate.core.exceptions import FieldNotFoundError

WILDCARD = "*"
ASC = "ASC"
DESC = "DESC"


def _column(source: FromClause, collection: str, name: str) -> ColumnElement:
    try:
        return source.c[name]
    except KeyError:
        raise FieldNotFoundError(collection, name) from None


def _match(source: FromClause, collection: str, criteria: Mapping[str, Any]) -> list[ColumnElement]:
    clauses = []
    for name, value in criteria.items():
        column = _column(source, collection, name)
        if isinstance(value, (list, tuple, set)):
            clauses.append(column.in_(list(value)))
        elif value is None:
            clauses.append(column.is_(None))
        else:
            clauses.append(column == value)
    return clauses


@dataclass
class JoinState:
    """A join of a select state.

    Attributes:
        table: Joined table (or alias of it).
        collection: Raw collection name of the joined table.
        on: Join condition.
        columns: Columns selected from the joined table.
        outer: Whether this is a left outer join.
    """

    table: FromClause
    collection: str
    on: ColumnElement
    columns: list[str] = field(default_factory=list)
    outer: bool = False


class _TableState:
    def __init__(self, table: Table) -> None:
        self.table = table

    @property
    def collection(self) -> str:
        """Raw table name, with any alias resolved."""
        return self.table.name

    @property
    def source(self) -> FromClause:
        return self.table

    def column(self, name: str) -> ColumnElement:
        """Get a column of the target table for building predicates."""
        return _column(self.source, self.collection, name)


class SelectState(_TableState):
    """Description of a select.

    Example:
        state = gateway.sql_select()
        state.columns = ["id", "title"]
        state.where_equal("status", "published")
        state.order("id", "DESC")
        state.limit = 10
    """

    def __init__(
        self,
        table: Table,
        alias: Optional[str] = None,
        columns: Optional[list[str]] = None,
    ) -> None:
        super().__init__(table)
        self.alias = alias
        self._source = table.alias(alias) if alias else table
        self.columns: list[str] = list(columns) if columns else [WILDCARD]
        self.where: list[ColumnElement] = []
        self.joins: list[JoinState] = []
        self.order_by: list[tuple[str, str]] = []
        self.limit: Optional[int] = None
        self.offset: Optional[int] = None
        # Cleared for reads the layer performs on behalf of a completed write
        self.apply_row_filter = True

    @property
    def source(self) -> FromClause:
        return self._source

    def where_equal(self, name: str, value: Any) -> "SelectState":
        self.where.append(self.column(name) == value)
        return self

    def where_in(self, name: str, values: Sequence[Any]) -> "SelectState":
        self.where.append(self.column(name).in_(list(values)))
        return self

    def where_match(self, criteria: Mapping[str, Any]) -> "SelectState":
        """Add an equality predicate for every key of the criteria."""
        self.where.extend(_match(self.source, self.collection, criteria))
        return self

    def join(
        self,
        table: Table,
        on: ColumnElement,
        columns: Optional[list[str]] = None,
        alias: Optional[str] = None,
        outer: bool = False,
    ) -> "SelectState":
        source = table.alias(alias) if alias else table
        self.joins.append(
            JoinState(table=source, collection=table.name, on=on, columns=list(columns or []), outer=outer)
        )
        return self

    def order(self, name: str, direction: str = ASC) -> "SelectState":
        direction = direction.upper()
        if direction not in (ASC, DESC):
            raise ValueError(f"Invalid sort direction '{direction}'")
        self.order_by.append((name, direction))
        return self

    def raw_state(self) -> dict[str, Any]:
        """Plain description handed to select filters."""
        return {
            "table": self.collection,
            "alias": self.alias,
            "columns": list(self.columns),
            "joins": [
                {"table": join.collection, "columns": list(join.columns), "outer": join.outer}
                for join in self.joins
            ],
            "order": list(self.order_by),
            "limit": self.limit,
            "offset": self.offset,
        }

    def to_statement(self) -> Select:
        columns = []
        for name in self.columns:
            if name == WILDCARD:
                columns.extend(self.source.c)
            else:
                columns.append(self.column(name.split(".")[-1]))

        from_clause = self.source
        for join in self.joins:
            from_clause = from_clause.join(join.table, join.on, isouter=join.outer)
            columns.extend(_column(join.table, join.collection, name) for name in join.columns)

        stmt = select(*columns).select_from(from_clause)
        if self.where:
            stmt = stmt.where(and_(*self.where))
        for name, direction in self.order_by:
            column = self.column(name)
            stmt = stmt.order_by(column.desc() if direction == DESC else column.asc())
        if self.limit is not None:
            stmt = stmt.limit(self.limit)
        if self.offset is not None:
            stmt = stmt.offset(self.offset)
        return stmt


class InsertState(_TableState):
    """Description of an insert of a single row."""

    def __init__(self, table: Table, values: Optional[dict[str, Any]] = None) -> None:
        super().__init__(table)
        self.values: dict[str, Any] = dict(values or {})

    def to_statement(self, values: Optional[dict[str, Any]] = None) -> Insert:
        return insert(self.table).values(**(self.values if values is None else values))


class UpdateState(_TableState):
    """Description of an update."""

    def __init__(
        self,
        table: Table,
        values: Optional[dict[str, Any]] = None,
        where: Optional[list[ColumnElement]] = None,
    ) -> None:
        super().__init__(table)
        self.set: dict[str, Any] = dict(values or {})
        self.where: list[ColumnElement] = list(where or [])

    def where_equal(self, name: str, value: Any) -> "UpdateState":
        self.where.append(self.column(name) == value)
        return self

    def where_match(self, criteria: Mapping[str, Any]) -> "UpdateState":
        self.where.extend(_match(self.table, self.collection, criteria))
        return self

    def to_statement(self, values: Optional[dict[str, Any]] = None) -> Update:
        stmt = update(self.table).values(**(self.set if values is None else values))
        if self.where:
            stmt = stmt.where(and_(*self.where))
        return stmt


class DeleteState(_TableState):
    """Description of a delete."""

    def __init__(self, table: Table, where: Optional[list[ColumnElement]] = None) -> None:
        super().__init__(table)
        self.where: list[ColumnElement] = list(where or [])

    def where_equal(self, name: str, value: Any) -> "DeleteState":
        self.where.append(self.column(name) == value)
        return self

    def where_match(self, criteria: Mapping[str, Any]) -> "DeleteState":
        self.where.extend(_match(self.table, self.collection, criteria))
        return self

    def to_statement(self) -> Delete:
        stmt = delete(self.table)
        if self.where:
            stmt = stmt.where(and_(*self.where))
        return stmt


class RecordSet:
    """Materialized rows of a select, as dictionaries."""

    def __init__(self, records: Sequence[Mapping[str, Any]] = ()) -> None:
        self._records = [dict(record) for record in records]

    def current(self) -> Optional[dict[str, Any]]:
        """First row, or None when the set is empty."""
        return self._records[0] if self._records else None

    def to_list(self) -> list[dict[str, Any]]:
        return list(self._records)

    def count(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self._records)

    def __getitem__(self, index: int) -> dict[str, Any]:
        return self._records[index]

    def __bool__(self) -> bool:
        return bool(self._records)
