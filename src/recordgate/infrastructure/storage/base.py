"""Base abstraction for file storage used by the files collection."""

from abc import ABC, abstractmethod
from typing import Any


class FileStorage(ABC):
    """Storage operations the record gateway needs for file rows."""

    @abstractmethod
    def exists(self, path: str) -> bool:
        """Check whether a stored path exists."""
        ...

    @abstractmethod
    def rename(self, source: str, target: str, replace: bool = False) -> None:
        """Rename a stored path.

        Raises:
            FileExistsError: If the target exists and ``replace`` is False.
        """
        ...

    @abstractmethod
    def delete(self, file_record: dict[str, Any]) -> None:
        """Delete the stored file of a files row (and its thumbnail)."""
        ...

    @abstractmethod
    def get_settings(self, key: str, default: Any = None) -> Any:
        """Get a storage setting such as ``file_naming`` or ``thumbnail_path``."""
        ...
