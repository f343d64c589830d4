"""Exceptions raised by the record access layer.

Every error carries the collection, field, value or statement context an
upstream layer needs to build a precise response, plus a ``status_code``
hint. Translating errors into protocol responses is not done here.
"""

from typing import Any


class RecordGateError(Exception):
    """Base class for all record access errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class SchemaNotFoundError(RecordGateError):
    """Raised when a collection is unknown to the schema catalog."""

    status_code = 404

    def __init__(self, collection: str) -> None:
        self.collection = collection
        super().__init__(f"Collection '{collection}' was not found")


class FieldNotFoundError(RecordGateError):
    """Raised when a field is unknown to its collection."""

    status_code = 404

    def __init__(self, collection: str, field: str) -> None:
        self.collection = collection
        self.field = field
        super().__init__(f"Field '{collection}.{field}' was not found")


class ArrayAsScalarValueError(RecordGateError):
    """Raised when a structured value is supplied for a scalar field."""

    status_code = 422

    def __init__(self, collection: str, field: str, value: Any = None) -> None:
        self.collection = collection
        self.field = field
        self.value = value
        super().__init__(
            f"Attempting to write an array as the value for column `{collection}`.`{field}`"
        )


# ---------------------------------------------------------------------------
# Access control
# ---------------------------------------------------------------------------


class ForbiddenError(RecordGateError):
    """Base class for access control denials."""

    status_code = 403
    action = "access"

    def __init__(
        self,
        collection: str,
        status: Any = None,
        message: str | None = None,
    ) -> None:
        self.collection = collection
        self.status = status
        if message is None:
            message = f"Permission denied to {self.action} items in '{collection}'"
            if status is not None:
                message += f" with status '{status}'"
        super().__init__(message)


class ForbiddenReadError(ForbiddenError):
    action = "read"


class ForbiddenCreateError(ForbiddenError):
    action = "create"


class ForbiddenUpdateError(ForbiddenError):
    action = "update"


class ForbiddenDeleteError(ForbiddenError):
    action = "delete"


class ForbiddenAlterError(ForbiddenError):
    action = "alter"


class ForbiddenFieldReadError(ForbiddenReadError):
    """Raised when one or more requested fields are blacklisted for reading."""

    def __init__(self, collection: str, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(
            collection,
            message=f"Permission denied to read field(s) {', '.join(fields)} in '{collection}'",
        )


class ForbiddenFieldWriteError(ForbiddenUpdateError):
    """Raised when one or more written fields are blacklisted for writing."""

    def __init__(self, collection: str, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(
            collection,
            message=f"Permission denied to write field(s) {', '.join(fields)} in '{collection}'",
        )


# ---------------------------------------------------------------------------
# Records and queries
# ---------------------------------------------------------------------------


class NotFoundError(RecordGateError):
    """Raised when the target row of an operation does not exist."""

    status_code = 404

    def __init__(self, collection: str | None = None, key: Any = None) -> None:
        self.collection = collection
        self.key = key
        if collection is None:
            message = "Item not found"
        elif key is None:
            message = f"Item not found in '{collection}'"
        else:
            message = f"Item '{key}' not found in '{collection}'"
        super().__init__(message)


class DuplicateItemError(RecordGateError):
    """Raised when an insert violates a uniqueness constraint."""

    status_code = 409

    def __init__(self, collection: str, value: Any, field: str | None = None) -> None:
        self.collection = collection
        self.value = value
        self.field = field
        message = f"Duplicate item in '{collection}' with value '{value}'"
        if field:
            message += f" for field '{field}'"
        super().__init__(message)


class InvalidQueryError(RecordGateError):
    """Raised when the store rejects a statement for any other reason."""

    status_code = 500

    def __init__(self, statement: str, cause: BaseException | None = None) -> None:
        self.statement = statement
        self.cause = cause
        message = "Failed generating the SQL query."
        if cause is not None:
            message = f"{message} {cause}"
        super().__init__(message)


class AbortOperationError(RecordGateError):
    """Raised by a before-listener to cancel the operation in flight.

    Example:
        @events.on_insert_before("orders")
        def validate_order(event, data, context):
            if data.get("total", 0) < 0:
                raise AbortOperationError("Order total cannot be negative", 400)
    """

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.status_code = status_code
        super().__init__(message)


# ---------------------------------------------------------------------------
# Status mapping
# ---------------------------------------------------------------------------


class StatusMappingError(RecordGateError):
    """Base class for status mapping errors."""

    status_code = 422


class StatusMappingEmptyError(StatusMappingError):
    def __init__(self, collection: str) -> None:
        self.collection = collection
        super().__init__(f"Status mapping for '{collection}' is empty")


class StatusMappingWrongValueTypeError(StatusMappingError):
    def __init__(self, expected_type: str, field: str, collection: str) -> None:
        self.expected_type = expected_type
        self.field = field
        self.collection = collection
        super().__init__(
            f"Status mapping values for '{collection}.{field}' must be {expected_type}"
        )


class CollectionHasNoStatusError(StatusMappingError):
    def __init__(self, collection: str) -> None:
        self.collection = collection
        super().__init__(f"Collection '{collection}' has no status field")
