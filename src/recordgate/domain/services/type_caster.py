"""Type coercion of record values.

Rows come back from the store with driver-level types (strings, Decimals,
0/1 integers, JSON text). TypeCaster turns them into the native value
declared by each field, and converts stored UTC dates into the configured
presentation timezone. ``to_storage`` does the reverse for values about to
be written.
"""

import json
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional, Union
from zoneinfo import ZoneInfo

from recordgate.domain.entities.collection import Collection, Field, FieldType

Records = Union[dict[str, Any], list[dict[str, Any]]]

ARRAY_SEPARATOR = ","
FALSE_STRINGS = frozenset({"", "0", "false", "no", "off"})


def _to_int(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        try:
            return int(float(str(value).strip()))
        except ValueError:
            return value


def _to_float(value: Any) -> Any:
    if isinstance(value, float):
        return value
    if isinstance(value, bool):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return value


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def _to_json(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def _to_array(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.startswith("["):
            try:
                return json.loads(stripped)
            except ValueError:
                pass
        if not stripped:
            return []
        return [item.strip() for item in stripped.split(ARRAY_SEPARATOR)]
    return value


# Read-side casters by field type. Types without an entry keep their value.
CASTERS: dict[FieldType, Callable[[Any], Any]] = {
    FieldType.INTEGER: _to_int,
    FieldType.DECIMAL: _to_float,
    FieldType.BOOLEAN: _to_bool,
    FieldType.JSON: _to_json,
    FieldType.ARRAY: _to_array,
    FieldType.M2O: _to_int,
    FieldType.FILE: _to_int,
}


class TypeCaster:
    """Coerces record values between store and native representations."""

    @classmethod
    def cast_value(cls, value: Any, field: Field) -> Any:
        """Cast a single stored value to the field's native type."""
        if value is None:
            return None
        caster = CASTERS.get(field.type)
        if caster is None:
            if isinstance(value, Decimal):
                return float(value)
            return value
        return caster(value)

    @classmethod
    def cast_record_values(cls, records: Records, fields: list[Field]) -> Records:
        """Cast every known field of one record or a list of records.

        Keys without a matching field are left untouched.

        Args:
            records: A row or a list of rows, as dictionaries.
            fields: Field descriptors of the collection.

        Returns:
            New dictionaries with cast values, in the shape received.
        """
        if isinstance(records, Mapping):
            return cls.cast_record_values([records], fields)[0]

        by_name = {f.name: f for f in fields}
        cast = []
        for record in records:
            row = dict(record)
            for key, value in row.items():
                field = by_name.get(key)
                if field is not None:
                    row[key] = cls.cast_value(value, field)
            cast.append(row)
        return cast

    @classmethod
    def convert_dates(cls, records: Records, collection: Collection, tz_name: str = "UTC") -> Records:
        """Convert stored UTC dates into the presentation timezone.

        Every date field of a managed collection is converted; on other
        collections only system-date fields are. Values are rendered as
        ``YYYY-MM-DDTHH:MM:SS+HH:MM``. Empty values stay as they are.
        """
        if collection.managed:
            targets = [f.name for f in collection.fields if f.is_date_time()]
        else:
            targets = [f.name for f in collection.fields if f.system_date]

        if not targets:
            return records
        if isinstance(records, Mapping):
            return cls.convert_dates([records], collection, tz_name)[0]

        zone = ZoneInfo(tz_name)
        converted = []
        for record in records:
            row = dict(record)
            for name in targets:
                if name in row and row[name]:
                    row[name] = cls.format_date(row[name], zone)
            converted.append(row)
        return converted

    @classmethod
    def format_date(cls, value: Any, zone: ZoneInfo) -> Any:
        """Render a UTC datetime (or datetime string) in another zone."""
        parsed = cls.parse_datetime(value)
        if parsed is None:
            return value
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(zone).isoformat(timespec="seconds")

    @staticmethod
    def parse_datetime(value: Any) -> Optional[datetime]:
        """Parse a datetime or ISO 8601 string, or return None."""
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
        return None

    @classmethod
    def to_storage(cls, values: dict[str, Any], collection: Collection) -> dict[str, Any]:
        """Prepare values for writing.

        Structured JSON/array values are serialized, numeric strings become
        numbers and date strings become naive UTC datetimes. Unknown keys are
        passed through for the store to reject.
        """
        prepared = {}
        for key, value in values.items():
            field = collection.get_field(key)
            if field is None or value is None:
                prepared[key] = value
                continue

            if field.is_json() and not isinstance(value, str):
                value = json.dumps(value)
            elif field.is_array() and isinstance(value, (list, tuple)):
                value = ARRAY_SEPARATOR.join(str(item) for item in value)
            elif field.type is FieldType.INTEGER and isinstance(value, str):
                value = _to_int(value)
            elif field.type is FieldType.DECIMAL and isinstance(value, str):
                value = _to_float(value)
            elif field.type is FieldType.BOOLEAN and not isinstance(value, bool):
                value = _to_bool(value)
            elif field.is_date_time() and isinstance(value, str) and value.strip():
                parsed = cls.parse_datetime(value)
                if parsed is not None:
                    if parsed.tzinfo is not None:
                        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
                    value = parsed
            elif field.type is FieldType.DATE and isinstance(value, str) and value.strip():
                try:
                    value = date.fromisoformat(value.strip()[:10])
                except ValueError:
                    pass

            prepared[key] = value
        return prepared
