"""Status mapping entity.

A status mapping lists the workflow states a collection's status field can
take, each with semantic tags such as "published" or "soft delete".
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping


@dataclass
class StatusEntry:
    """A single status of a status mapping.

    Attributes:
        value: Value stored in the status field.
        name: Display name.
        published: Whether records in this status are publicly visible.
        soft_delete: Whether this status marks a record as deleted.
        attributes: Any extra attributes of the entry.
    """

    value: Any
    name: str = ""
    published: bool = False
    soft_delete: bool = False
    attributes: dict[str, Any] = field(default_factory=dict)


class StatusMapping:
    """Ordered set of status entries."""

    def __init__(self, entries: list[StatusEntry] | None = None) -> None:
        self._entries = list(entries or [])

    @classmethod
    def from_data(cls, data: list[Mapping[str, Any]] | Mapping[Any, Mapping[str, Any]] | None) -> "StatusMapping":
        """Build a mapping from a list of entries or a dict keyed by value.

        Example:
            StatusMapping.from_data({"published": {"name": "Published", "published": True}})
            StatusMapping.from_data([{"value": 1, "name": "Active", "published": True}])
        """
        if not data:
            return cls()

        if isinstance(data, Mapping):
            items = [{"value": value, **(attrs or {})} for value, attrs in data.items()]
        else:
            items = [dict(item) for item in data]

        entries = []
        for item in items:
            value = item.pop("value")
            entries.append(
                StatusEntry(
                    value=value,
                    name=str(item.pop("name", value)),
                    published=bool(item.pop("published", False)),
                    soft_delete=bool(item.pop("soft_delete", False)),
                    attributes=item,
                )
            )
        return cls(entries)

    def __iter__(self) -> Iterator[StatusEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def get_all_statuses_value(self) -> list[Any]:
        return [entry.value for entry in self._entries]

    def get_published_statuses_value(self) -> list[Any]:
        return [entry.value for entry in self._entries if entry.published]

    def get_soft_delete_statuses_value(self) -> list[Any]:
        return [entry.value for entry in self._entries if entry.soft_delete]

    def to_list(self) -> list[dict[str, Any]]:
        return [
            {
                "value": entry.value,
                "name": entry.name,
                "published": entry.published,
                "soft_delete": entry.soft_delete,
                **entry.attributes,
            }
            for entry in self._entries
        ]
