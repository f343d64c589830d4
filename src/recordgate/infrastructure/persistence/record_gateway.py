"""Record gateway: access-controlled, event-driven record operations.

A RecordGateway is bound to one collection and one Connection. Every
operation runs the same pipeline:

    access control -> before filters/hooks -> SQL execution
    -> coercion -> after hooks/filters

The gateway also hosts the upsert algorithm (including the files
collection's storage side effects) and the schema mutations: adding and
dropping fields, dropping collections.

Example:
    gateway = RecordGateway("articles", conn, dispatcher, services, acl=policy)
    article = gateway.add_or_update_record({"title": "Hello", "status": "draft"})
    published = gateway.select({"status": "published"}).to_list()
"""

import re
from pathlib import PurePosixPath
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from sqlalchemy import Table, and_, delete, select, text, update
from sqlalchemy.engine import Connection, CursorResult
from sqlalchemy.exc import CompileError, IntegrityError, SQLAlchemyError
from sqlalchemy.sql import ClauseElement
from sqlalchemy.sql.elements import ColumnElement

from recordgate.core.config import Settings, get_settings
from recordgate.core.container import (
    FILES,
    SCHEMA_CATALOG,
    SETTINGS,
    SETTINGS_PROVIDER,
    USER_DIRECTORY,
    ServiceRegistry,
)
from recordgate.core.events.dispatcher import Dispatcher
from recordgate.core.events.event_keys import (
    POST_INSERT,
    POST_UPDATE,
    EventAction,
    EventPhase,
    event_key,
    event_keys,
)
from recordgate.core.exceptions import (
    ArrayAsScalarValueError,
    CollectionHasNoStatusError,
    DuplicateItemError,
    InvalidQueryError,
    StatusMappingEmptyError,
    StatusMappingWrongValueTypeError,
)
from recordgate.core.logging import get_logger
from recordgate.domain.entities.collection import (
    ALIAS_TYPES,
    Collection,
    Field,
    FieldType,
    RelationshipType,
)
from recordgate.domain.entities.event_context import EventContext
from recordgate.domain.entities.status_mapping import StatusMapping
from recordgate.domain.services.access_enforcer import AccessEnforcer
from recordgate.domain.services.access_policy import AccessPolicy
from recordgate.domain.services.type_caster import TypeCaster
from recordgate.infrastructure.persistence.models import (
    COLLECTIONS_TABLE,
    FIELDS_TABLE,
    FILES_TABLE,
    PERMISSIONS_TABLE,
    CollectionModel,
    CollectionPresetModel,
    FieldModel,
    PermissionModel,
)
from recordgate.infrastructure.persistence.query_state import (
    ASC,
    DeleteState,
    InsertState,
    RecordSet,
    SelectState,
    UpdateState,
)
from recordgate.infrastructure.persistence.repositories.settings_repository import (
    SettingsRepository,
)
from recordgate.infrastructure.persistence.repositories.user_repository import UserRepository
from recordgate.infrastructure.persistence.schema_catalog import SchemaAccessor, SqlSchemaCatalog
from recordgate.infrastructure.persistence.table_builder import TableBuilder
from recordgate.infrastructure.storage.thumbnail import Thumbnail

logger = get_logger(__name__)

COLUMN_IDENTIFIER_SEPARATOR = "."
FILE_ID_LENGTH = 11
DEFAULT_FIELD_SORT = 9999

MANY_TO_ONE_INTERFACES = frozenset(
    {"single_file", "many_to_one", "many_to_one_typeahead", "manytoone", "m2o"}
)

# Keys of a column definition that are stored on its field definition row
FIELD_DEFINITION_KEYS = (
    "collection",
    "field",
    "type",
    "datatype",
    "length",
    "default_value",
    "interface",
    "nullable",
    "primary_key",
    "auto_increment",
    "unique",
    "system_date",
    "status_field",
    "owner_field",
    "relationship_type",
    "related_collection",
    "junction_table",
    "junction_key_left",
    "junction_key_right",
    "sort",
    "note",
)

MYSQL_DUPLICATE = re.compile(r"Duplicate entry '([^']*)' for key '([^']+)'")
POSTGRES_DUPLICATE = re.compile(r"Key \(([^)]+)\)=\((.*?)\) already exists")
SQLITE_DUPLICATE = re.compile(r"UNIQUE constraint failed: ([\w.]+)")

_SAME_ACL = object()

Modifier = Callable[[SelectState], Any]


def get_column_identifier(column: str, table: Optional[str] = None) -> str:
    """Build a ``table.column`` identifier."""
    if table:
        return f"{table}{COLUMN_IDENTIFIER_SEPARATOR}{column}"
    return column


def get_column_from_identifier(identifier: str) -> str:
    """Get the column part of a ``table.column`` identifier."""
    return identifier.rsplit(COLUMN_IDENTIFIER_SEPARATOR, 1)[-1]


def get_table_from_identifier(identifier: str) -> Optional[str]:
    """Get the table part of a ``table.column`` identifier, if any."""
    if COLUMN_IDENTIFIER_SEPARATOR not in identifier:
        return None
    return identifier.rsplit(COLUMN_IDENTIFIER_SEPARATOR, 1)[0]


def _is_virtual_column(column_data: Mapping[str, Any]) -> bool:
    relationship = column_data.get("relationship_type")
    if relationship and str(relationship).lower() == FieldType.ALIAS.value:
        return True
    if RelationshipType.parse(relationship) in (
        RelationshipType.ONE_TO_MANY,
        RelationshipType.MANY_TO_MANY,
    ):
        return True
    field_type = str(column_data.get("type") or "").lower()
    return field_type in {t.value for t in ALIAS_TYPES}


class RecordGateway:
    """Access-controlled record operations on one collection."""

    def __init__(
        self,
        collection_name: str,
        connection: Connection,
        dispatcher: Optional[Dispatcher] = None,
        services: Optional[ServiceRegistry] = None,
        acl: Optional[AccessPolicy] = None,
        primary_key_name: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            collection_name: Collection the gateway operates on.
            connection: Connection statements are executed on.
            dispatcher: Event dispatcher shared by all gateways.
            services: Registry of shared collaborators. Missing collaborators
                default to the SQL implementations over ``connection``.
            acl: Access policy of the actor. None disables access control.
            primary_key_name: Primary key override.
            timezone: Presentation timezone override.

        Raises:
            SchemaNotFoundError: If the collection is unknown.
        """
        self.collection_name = collection_name
        self.connection = connection
        self.dispatcher = dispatcher if dispatcher is not None else Dispatcher()
        self.services = services if services is not None else ServiceRegistry()
        self.acl = acl

        self.settings: Settings = self.services.get_optional(SETTINGS) or get_settings()
        self.timezone = timezone or self.settings.timezone

        catalog = self.services.get_optional(SCHEMA_CATALOG) or SqlSchemaCatalog(connection)
        self.schema = SchemaAccessor(catalog, collection_name, acl)
        self.users = self.services.get_optional(USER_DIRECTORY) or UserRepository(connection)
        self.settings_provider = self.services.get_optional(SETTINGS_PROVIDER) or SettingsRepository(
            connection, self.settings
        )
        self.files = self.services.get_optional(FILES)

        self.enforcer: Optional[AccessEnforcer] = None
        if acl is not None:
            self.enforcer = AccessEnforcer(acl, self.schema, self.users, self._fetch_current_row)

        self._use_filters = True
        self._tables: dict[str, Table] = {}
        self.last_insert_value: Any = None

        collection = self.schema.get_collection()
        self.primary_key_field_name = primary_key_name or collection.primary_key_name

    # ------------------------------------------------------------------
    # Composition and schema
    # ------------------------------------------------------------------

    def make_gateway(self, collection_name: str, acl: Any = _SAME_ACL) -> "RecordGateway":
        """Create a gateway for another collection sharing this one's collaborators."""
        return RecordGateway(
            collection_name,
            self.connection,
            self.dispatcher,
            self.services,
            acl=self.acl if acl is _SAME_ACL else acl,
            timezone=self.timezone,
        )

    def get_table_schema(self, collection_name: Optional[str] = None) -> Collection:
        """Get a collection descriptor, this gateway's own by default."""
        return self.schema.get_collection(collection_name, skip_acl=self.acl is None)

    def get_field(self, field: str, collection_name: Optional[str] = None) -> Field:
        return self.schema.get_field(field, collection_name)

    def get_status_field_name(self) -> Optional[str]:
        status_field = self.get_table_schema().status_field
        return status_field.name if status_field else None

    def get_table(self, collection_name: Optional[str] = None) -> Table:
        """Get the SQLAlchemy Table of a collection."""
        name = collection_name or self.collection_name
        if name not in self._tables:
            self._tables[name] = TableBuilder.build_table(self.schema.get_collection(name))
        return self._tables[name]

    def sql_select(self, collection_name: Optional[str] = None, alias: Optional[str] = None) -> SelectState:
        return SelectState(self.get_table(collection_name), alias=alias)

    def sql_insert(self, values: Optional[dict[str, Any]] = None, collection_name: Optional[str] = None) -> InsertState:
        return InsertState(self.get_table(collection_name), values)

    def sql_update(self, values: Optional[dict[str, Any]] = None, collection_name: Optional[str] = None) -> UpdateState:
        return UpdateState(self.get_table(collection_name), values)

    def sql_delete(self, collection_name: Optional[str] = None) -> DeleteState:
        return DeleteState(self.get_table(collection_name))

    def ignore_filters(self) -> "RecordGateway":
        """Skip select/update filters and update hooks for the next call only."""
        self._use_filters = False
        return self

    def _should_use_filters(self) -> bool:
        use_filters = self._use_filters
        self._use_filters = True
        return use_filters

    def _context(self, collection_name: str, **attributes: Any) -> EventContext:
        return EventContext(
            collection_name=collection_name,
            user_id=self.acl.user_id if self.acl else None,
            group_id=self.acl.group_id if self.acl else None,
            attributes=attributes,
        )

    def _notify(self, events: Iterable[str], data: Any, context: EventContext) -> None:
        for event in events:
            self.dispatcher.notify(event, data, context)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def dump_sql(self, statement: ClauseElement) -> str:
        """Render a statement as SQL text for diagnostics."""
        dialect = self.connection.dialect
        try:
            return str(statement.compile(dialect=dialect, compile_kwargs={"literal_binds": True}))
        except (CompileError, NotImplementedError, TypeError):
            pass
        try:
            return str(statement.compile(dialect=dialect))
        except CompileError:
            return repr(statement)

    def _execute(
        self,
        statement: ClauseElement,
        collection_name: Optional[str] = None,
        values: Optional[Mapping[str, Any]] = None,
    ) -> CursorResult:
        """Execute a statement, translating store errors.

        Raises:
            DuplicateItemError: If a uniqueness constraint is violated.
            InvalidQueryError: If the store rejects the statement otherwise.
        """
        try:
            return self.connection.execute(statement)
        except IntegrityError as e:
            duplicate = self._parse_duplicate(collection_name or self.collection_name, e, values or {})
            if duplicate is not None:
                logger.info(
                    "Duplicate item rejected",
                    collection_name=duplicate.collection,
                    field=duplicate.field,
                )
                raise duplicate from e
            raise self._invalid_query(statement, e) from e
        except SQLAlchemyError as e:
            raise self._invalid_query(statement, e) from e

    def _invalid_query(self, statement: ClauseElement, error: BaseException) -> InvalidQueryError:
        sql = self.dump_sql(statement)
        logger.error("Query failed", statement=sql, error=str(error))
        return InvalidQueryError(sql, error)

    @staticmethod
    def _parse_duplicate(
        collection_name: str,
        error: IntegrityError,
        values: Mapping[str, Any],
    ) -> Optional[DuplicateItemError]:
        message = str(error.orig)

        match = MYSQL_DUPLICATE.search(message)
        if match:
            return DuplicateItemError(
                collection_name, match.group(1), get_column_from_identifier(match.group(2))
            )

        match = POSTGRES_DUPLICATE.search(message)
        if match:
            field = match.group(1).split(",")[0].strip()
            return DuplicateItemError(collection_name, match.group(2), field)

        match = SQLITE_DUPLICATE.search(message)
        if match:
            field = get_column_from_identifier(match.group(1))
            return DuplicateItemError(collection_name, values.get(field), field)

        return None

    def _fetch_current_row(self, table: Table, where: list[ColumnElement]) -> Optional[dict[str, Any]]:
        """Read one row as it is stored, bypassing filters and access control."""
        stmt = select(table).limit(1)
        if where:
            stmt = stmt.where(and_(*where))
        row = self._execute(stmt, table.name).first()
        return dict(row._mapping) if row is not None else None

    def _execute_select(self, state: SelectState) -> RecordSet:
        use_filters = self._should_use_filters()

        if self.enforcer is not None:
            self.enforcer.enforce_select(state)
            if state.apply_row_filter:
                self.enforcer.enforce_read(state)

        collection_name = state.collection
        context = self._context(collection_name)

        if use_filters:
            raw_state = self.dispatcher.apply_filters(
                event_keys(EventAction.SELECT, EventPhase.BEFORE, collection_name),
                state.raw_state(),
                context,
            )
            # Only the column list of a filtered state is read back
            if isinstance(raw_state, Mapping) and raw_state.get("columns"):
                state.columns = list(raw_state["columns"])

        result = self._execute(state.to_statement(), collection_name)
        records = [dict(row._mapping) for row in result]

        if use_filters:
            context.attributes["select_state"] = state.raw_state()
            records = self.dispatcher.apply_filters(
                event_keys(EventAction.SELECT, EventPhase.AFTER, collection_name),
                records,
                context,
            )

        return RecordSet(records)

    def _execute_insert(self, state: InsertState) -> int:
        if self.enforcer is not None:
            self.enforcer.enforce_insert(state)

        collection_name = state.collection
        collection = self.schema.get_collection(collection_name)
        context = self._context(collection_name)
        values = state.values

        self._notify(event_keys(EventAction.INSERT, EventPhase.BEFORE, collection_name), values, context)

        result = self._execute(
            state.to_statement(TypeCaster.to_storage(values, collection)),
            collection_name,
            values,
        )

        primary_key = collection.primary_key_name
        self.last_insert_value = None
        if primary_key is not None and result.inserted_primary_key:
            self.last_insert_value = result.inserted_primary_key[0]

        record = dict(values)
        key = values.get(primary_key) if primary_key else None
        if key is None:
            key = self.last_insert_value
        if primary_key is not None and key is not None:
            stored = self._fetch_current_row(state.table, [state.column(primary_key) == key])
            if stored is not None:
                # Read access is not required to insert
                record = TypeCaster.convert_dates(
                    TypeCaster.cast_record_values(stored, collection.fields), collection, self.timezone
                )

        for phase in (EventPhase.DONE, EventPhase.AFTER):
            self._notify(event_keys(EventAction.INSERT, phase, collection_name), record, context)

        logger.debug("Record inserted", collection_name=collection_name, key=key)
        return result.rowcount

    def _execute_update(self, state: UpdateState) -> int:
        use_filters = self._should_use_filters()

        if self.enforcer is not None:
            self.enforcer.enforce_update(state)

        collection_name = state.collection
        collection = self.schema.get_collection(collection_name)
        context = self._context(collection_name)

        if use_filters:
            state.set = self.dispatcher.apply_filters(
                event_keys(EventAction.UPDATE, EventPhase.BEFORE, collection_name),
                state.set,
                context,
            )
            self._notify(
                event_keys(EventAction.UPDATE, EventPhase.BEFORE, collection_name), state.set, context
            )

        result = self._execute(
            state.to_statement(TypeCaster.to_storage(state.set, collection)),
            collection_name,
            state.set,
        )

        if use_filters:
            for phase in (EventPhase.DONE, EventPhase.AFTER):
                self._notify(event_keys(EventAction.UPDATE, phase, collection_name), state.set, context)

        logger.debug("Records updated", collection_name=collection_name, count=result.rowcount)
        return result.rowcount

    def _execute_delete(self, state: DeleteState) -> int:
        if self.enforcer is not None:
            self.enforcer.enforce_delete(state)

        collection_name = state.collection
        primary_key = self.schema.get_collection(collection_name).primary_key_name
        if primary_key is None:
            return self._execute(state.to_statement(), collection_name).rowcount

        key_column = state.column(primary_key)
        key_query = select(key_column)
        if state.where:
            key_query = key_query.where(and_(*state.where))
        keys = [row[0] for row in self._execute(key_query, collection_name)]

        if not keys:
            logger.debug("Delete matched no records", collection_name=collection_name)
            return 0

        context = self._context(collection_name)
        for key in keys:
            self._notify(
                event_keys(EventAction.DELETE, EventPhase.BEFORE, collection_name),
                {primary_key: key},
                context,
            )

        result = self._execute(DeleteState(state.table, [key_column.in_(keys)]).to_statement(), collection_name)

        for key in keys:
            for phase in (EventPhase.DONE, EventPhase.AFTER):
                self._notify(
                    event_keys(EventAction.DELETE, phase, collection_name),
                    {primary_key: key},
                    context,
                )

        logger.debug("Records deleted", collection_name=collection_name, count=len(keys))
        return result.rowcount

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    def select(self, where: Union[Modifier, Mapping[str, Any], None] = None) -> RecordSet:
        """Select records of this collection.

        Args:
            where: Equality criteria, or a callable that receives the
                SelectState to modify.
        """
        state = self.sql_select()
        if callable(where):
            where(state)
        elif where:
            state.where_match(where)
        return self.select_with(state)

    def select_with(self, state: SelectState) -> RecordSet:
        return self._execute_select(state)

    def insert(self, values: dict[str, Any]) -> int:
        """Insert a single record.

        Returns:
            Number of affected rows.
        """
        return self.insert_with(self.sql_insert(values))

    def insert_with(self, state: InsertState) -> int:
        return self._execute_insert(state)

    def update(self, values: dict[str, Any], where: Mapping[str, Any]) -> int:
        """Update the records matching equality criteria.

        Returns:
            Number of affected rows.
        """
        return self.update_with(self.sql_update(values).where_match(where))

    def update_with(self, state: UpdateState) -> int:
        return self._execute_update(state)

    def delete(self, where: Mapping[str, Any]) -> int:
        """Delete the records matching equality criteria.

        Returns:
            Number of deleted rows, 0 when nothing matched.
        """
        return self.delete_with(self.sql_delete().where_match(where))

    def delete_with(self, state: DeleteState) -> int:
        return self._execute_delete(state)

    def fetch_all(self, modifier: Optional[Modifier] = None) -> RecordSet:
        """Select every record, optionally customizing the select first."""
        state = self.sql_select()
        if modifier is not None:
            modifier(state)
        return self.select_with(state)

    def fetch_all_with_id_keys(self, modifier: Optional[Modifier] = None) -> dict[Any, dict[str, Any]]:
        """Select every record, keyed by primary key."""
        return self.with_key(self.primary_key_field_name, self.fetch_all(modifier))

    @staticmethod
    def with_key(key: str, rows: Iterable[Mapping[str, Any]]) -> dict[Any, dict[str, Any]]:
        """Index rows by the value of one of their columns."""
        return {row[key]: dict(row) for row in rows}

    def find(self, key: Any, primary_key_name: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Find a record by primary key, with coerced values."""
        record = self.find_one_by(primary_key_name or self.primary_key_field_name, key)
        if record is None:
            return None
        return self.parse_record_values_by_type(record)

    def find_one_by(self, field: str, value: Any) -> Optional[dict[str, Any]]:
        """Find the first record whose field equals a value, bypassing filters."""
        state = self.sql_select()
        state.where_equal(field, value)
        state.limit = 1
        return self.ignore_filters().select_with(state).current()

    def find_one_by_match(self, criteria: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        """Find the first record matching every criterion."""
        state = self.sql_select()
        state.where_match(criteria)
        state.limit = 1
        return self.select_with(state).current()

    # ------------------------------------------------------------------
    # Coercion
    # ------------------------------------------------------------------

    def cast_record_values(self, records: Any, collection_name: Optional[str] = None) -> Any:
        return TypeCaster.cast_record_values(records, self.get_table_schema(collection_name).fields)

    def parse_record_values_by_type(self, records: Any, collection_name: Optional[str] = None) -> Any:
        return self.cast_record_values(records, collection_name)

    def convert_dates(self, records: Any, collection_name: Optional[str] = None) -> Any:
        return TypeCaster.convert_dates(records, self.get_table_schema(collection_name), self.timezone)

    def parse_record(self, records: Any, collection_name: Optional[str] = None) -> Any:
        """Coerce values by type, then convert dates to the presentation timezone."""
        records = self.cast_record_values(records, collection_name)
        return self.convert_dates(records, collection_name)

    # ------------------------------------------------------------------
    # Upsert
    # ------------------------------------------------------------------

    def add_or_update_record(
        self,
        record_data: dict[str, Any],
        collection_name: Optional[str] = None,
    ) -> Optional[dict[str, Any]]:
        """Insert a record, or update it when its primary key already exists.

        Args:
            record_data: Field values, optionally including the primary key.
            collection_name: Target collection, this gateway's by default.

        Returns:
            The stored record, re-read and coerced.

        Raises:
            ArrayAsScalarValueError: If a structured value targets a scalar field.
        """
        collection_name = collection_name or self.collection_name
        collection = self.get_table_schema(collection_name)

        for name, value in record_data.items():
            field = collection.get_field(name)
            if field is not None and isinstance(value, (list, tuple, dict)) and not field.accepts_structured_value():
                raise ArrayAsScalarValueError(collection_name, name, value)

        gateway = self if collection_name == self.collection_name else self.make_gateway(collection_name)
        primary_key = gateway.primary_key_field_name
        record_data = dict(record_data)
        is_files = collection_name == FILES_TABLE

        row_exists = False
        original_filename = None
        if primary_key and record_data.get(primary_key) is not None:
            probe = gateway.sql_select()
            probe.where_equal(primary_key, record_data[primary_key])
            probe.limit = 1
            # Existence only; the update branch enforces row access
            probe.apply_row_filter = False
            current = gateway.ignore_filters().select_with(probe).current()
            row_exists = current is not None
            if is_files:
                original_filename = current.get("filename") if current else None
                record_data = {"filename": original_filename, **record_data}

        context = self._context(collection_name)

        if row_exists:
            update_state = gateway.sql_update(record_data)
            update_state.where_equal(primary_key, record_data[primary_key])
            gateway.update_with(update_state)

            if is_files and self.files is not None and original_filename:
                if record_data.get("filename") != original_filename:
                    self.files.delete({"id": record_data[primary_key], "filename": original_filename})

            record_data = self._run_file_side_effects(gateway, record_data, replace=True)
            self.dispatcher.notify(POST_UPDATE, record_data, context)
        else:
            record_data = self.dispatcher.apply_filters(
                event_keys(EventAction.INSERT, EventPhase.BEFORE, collection_name),
                record_data,
                context,
            )
            if primary_key and record_data.get(primary_key) is None:
                record_data.pop(primary_key, None)
            gateway.insert(record_data)

            primary_field = gateway.get_table_schema().primary_field
            if primary_field is not None and primary_field.auto_increment:
                record_data[primary_key] = gateway.last_insert_value

            record_data = self._run_file_side_effects(gateway, record_data)
            self.dispatcher.notify(POST_INSERT, record_data, context)

        if not primary_key or record_data.get(primary_key) is None:
            return None

        state = gateway.sql_select()
        state.columns = gateway.get_table_schema().get_non_alias_field_names()
        state.where_equal(primary_key, record_data[primary_key])
        state.limit = 1
        state.apply_row_filter = False
        row = gateway.select_with(state).current()
        if row is None:
            return None
        return gateway.parse_record(row)

    def _run_file_side_effects(
        self,
        gateway: "RecordGateway",
        record_data: dict[str, Any],
        replace: bool = False,
    ) -> dict[str, Any]:
        """Rename the thumbnail (and, with id naming, the file) of a files row."""
        if gateway.collection_name != FILES_TABLE or self.files is None:
            return record_data

        filename = record_data.get("filename")
        key = record_data.get(gateway.primary_key_field_name)
        if not filename or key is None:
            return record_data

        extension = PurePosixPath(filename).suffix.lstrip(".")
        thumbnail_extension = Thumbnail.thumbnail_extension(extension)
        thumbnail_dir = self.files.get_settings("thumbnail_path")

        thumbnail = f"{thumbnail_dir}/THUMB_{filename}"
        if self.files.exists(thumbnail):
            self.files.rename(thumbnail, f"{thumbnail_dir}/{key}.{thumbnail_extension}", replace)

        if self.files.get_settings("file_naming") == "file_id":
            new_filename = f"{str(key).zfill(FILE_ID_LENGTH)}.{extension}"
            self.files.rename(filename, new_filename, replace)
            record_data["filename"] = new_filename

            update_state = gateway.sql_update({"filename": new_filename})
            update_state.where_equal(gateway.primary_key_field_name, key)
            gateway.update_with(update_state)

        return record_data

    # ------------------------------------------------------------------
    # Status mapping and settings
    # ------------------------------------------------------------------

    def get_status_mapping(self) -> Optional[StatusMapping]:
        """Get the collection's status mapping, or the global one.

        Returns None when the collection has no status field.
        """
        collection = self.get_table_schema()
        if not collection.has_status_field():
            return None
        if collection.status_mapping is not None:
            return collection.status_mapping
        return StatusMapping.from_data(self.settings_provider.get_global_status_mapping())

    def validate_status_mapping(self) -> StatusMapping:
        """Check that the status mapping fits the collection's status field.

        Raises:
            CollectionHasNoStatusError: If there is no status field.
            StatusMappingEmptyError: If the mapping has no entries.
            StatusMappingWrongValueTypeError: If value types do not match the
                status field type.
        """
        collection = self.get_table_schema()
        status_field = collection.status_field
        if status_field is None:
            raise CollectionHasNoStatusError(self.collection_name)

        mapping = self.get_status_mapping()
        if mapping is None or mapping.is_empty():
            raise StatusMappingEmptyError(self.collection_name)

        numeric = status_field.is_numeric()
        for value in mapping.get_all_statuses_value():
            if numeric and (isinstance(value, bool) or not isinstance(value, (int, float))):
                raise StatusMappingWrongValueTypeError("numeric", status_field.name, self.collection_name)
            if not numeric and not isinstance(value, str):
                raise StatusMappingWrongValueTypeError("string", status_field.name, self.collection_name)
        return mapping

    def get_all_statuses(self) -> list[Any]:
        """Get every status value of a validated mapping.

        Raises:
            StatusMappingError: If the mapping does not fit the status field.
        """
        return self.validate_status_mapping().get_all_statuses_value()

    def get_published_statuses(self) -> list[Any]:
        return self.validate_status_mapping().get_published_statuses_value()

    def get_settings(self, key: Optional[str] = None) -> Any:
        """Get one application setting, or all of them."""
        if key is None:
            return self.settings_provider.get_all()
        return self.settings_provider.get_app_setting(key)

    # ------------------------------------------------------------------
    # Schema mutation
    # ------------------------------------------------------------------

    def drop_collection(self, collection_name: Optional[str] = None) -> bool:
        """Drop a collection's table and its bookkeeping rows.

        Returns:
            True if a physical table was dropped.

        Raises:
            ForbiddenAlterError: If the actor may not alter the collection.
        """
        collection_name = collection_name or self.collection_name
        if self.acl is not None:
            self.acl.enforce_alter(collection_name)

        dropped = False
        if TableBuilder.table_exists(self.connection, collection_name):
            context = self._context(collection_name)
            data = {"collection": collection_name}
            statement = text(TableBuilder.build_drop_table_ddl(collection_name, self.connection.dialect))

            self.dispatcher.notify(event_key(EventAction.DROP, EventPhase.BEFORE), data, context)
            self._execute(statement, collection_name)
            self.dispatcher.notify(event_key(EventAction.DROP), data, context)
            self.dispatcher.notify(event_key(EventAction.DROP, EventPhase.AFTER), data, context)
            dropped = True
            logger.info("Collection table dropped", collection_name=collection_name)

        self.stop_managing(collection_name)
        return dropped

    def stop_managing(self, collection_name: str) -> bool:
        """Delete the bookkeeping rows of a collection.

        Each delete runs on its own; a failure leaves earlier ones applied.
        """
        if collection_name != PERMISSIONS_TABLE:
            self._execute(delete(PermissionModel).where(PermissionModel.collection == collection_name))
        self._execute(delete(FieldModel).where(FieldModel.collection == collection_name))
        self._execute(delete(CollectionModel).where(CollectionModel.collection == collection_name))
        self._execute(
            delete(CollectionPresetModel).where(CollectionPresetModel.collection == collection_name)
        )
        logger.info("Collection no longer managed", collection_name=collection_name)
        return True

    def drop_field(self, field: str, collection_name: Optional[str] = None) -> bool:
        """Drop a field: its column (unless alias) and its definition row.

        Presets sorted by the field fall back to the primary key, ascending.

        Returns:
            False if the field does not exist.
        """
        collection_name = collection_name or self.collection_name
        if self.acl is not None:
            self.acl.enforce_alter(collection_name)

        collection = self.schema.get_collection(collection_name)
        descriptor = collection.get_field(field)
        if descriptor is None:
            return False

        if not descriptor.is_alias():
            statement = text(
                TableBuilder.build_drop_column_ddl(collection_name, field, self.connection.dialect)
            )
            self._execute(statement, collection_name)

        self._execute(
            delete(FieldModel).where(FieldModel.collection == collection_name, FieldModel.field == field)
        )
        self._execute(
            update(CollectionPresetModel)
            .where(
                CollectionPresetModel.collection == collection_name,
                CollectionPresetModel.sort == field,
            )
            .values(sort=collection.primary_key_name, sort_order=ASC)
        )

        logger.info("Field dropped", collection_name=collection_name, field=field)
        return True

    def add_column(self, collection_name: str, column_data: dict[str, Any]) -> str:
        """Add a field to a collection.

        Physical fields get a column through ALTER TABLE; alias fields
        (one-to-many, many-to-many) only get a definition row.

        Args:
            collection_name: Target collection.
            column_data: Field definition; ``field`` and ``type`` required.

        Returns:
            The field name.
        """
        if self.acl is not None:
            self.acl.enforce_alter(collection_name)

        column_data = dict(column_data)
        if not _is_virtual_column(column_data):
            statement = text(
                TableBuilder.build_add_column_ddl(collection_name, column_data, self.connection.dialect)
            )
            self._execute(statement, collection_name)

            interface = str(column_data.get("interface") or "").lower()
            if interface in MANY_TO_ONE_INTERFACES:
                column_data["relationship_type"] = RelationshipType.MANY_TO_ONE.value
                column_data["junction_key_right"] = column_data["field"]

        self._add_field_definition(collection_name, column_data)
        logger.info("Column added", collection_name=collection_name, field=column_data["field"])
        return column_data["field"]

    def _add_field_definition(self, collection_name: str, column_data: dict[str, Any]) -> Optional[dict[str, Any]]:
        column_data["collection"] = collection_name
        if column_data.get("sort") is None:
            column_data["sort"] = DEFAULT_FIELD_SORT

        relationship = RelationshipType.parse(column_data.get("relationship_type"))
        if relationship is not None:
            column_data["relationship_type"] = relationship.value

        default_value = column_data.get("default_value")
        if default_value is not None and not isinstance(default_value, str):
            column_data["default_value"] = str(default_value)
        if column_data.get("length") is not None:
            column_data["length"] = str(column_data["length"])

        definition = {key: column_data[key] for key in FIELD_DEFINITION_KEYS if key in column_data}
        # Alter access was checked by the caller
        return self.make_gateway(FIELDS_TABLE, acl=None).add_or_update_record(definition)
