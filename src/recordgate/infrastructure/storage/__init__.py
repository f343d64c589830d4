"""File storage for the files collection."""

from recordgate.infrastructure.storage.base import FileStorage
from recordgate.infrastructure.storage.local_storage import LocalFileStorage
from recordgate.infrastructure.storage.thumbnail import Thumbnail

__all__ = ["FileStorage", "LocalFileStorage", "Thumbnail"]
