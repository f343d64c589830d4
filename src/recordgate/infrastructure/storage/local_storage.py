"""Local filesystem file storage."""

from pathlib import Path
from typing import Any, Callable, Optional

from recordgate.core.config import Settings, get_settings
from recordgate.core.logging import get_logger
from recordgate.infrastructure.storage.base import FileStorage

logger = get_logger(__name__)


class LocalFileStorage(FileStorage):
    """File storage rooted at a local directory.

    Paths are relative to the storage root; thumbnails live under the
    configured thumbnail directory.
    """

    def __init__(
        self,
        storage_path: Optional[str] = None,
        settings: Optional[Settings] = None,
        setting_lookup: Optional[Callable[[str], Any]] = None,
    ) -> None:
        """Initialize the storage.

        Args:
            storage_path: Root directory. Defaults to ``settings.storage_path``.
            settings: Process configuration.
            setting_lookup: Optional callable consulted before the process
                configuration, e.g. a stored-settings lookup.
        """
        self.settings = settings or get_settings()
        self.storage_path = Path(storage_path or self.settings.storage_path)
        self._setting_lookup = setting_lookup

    def _resolve(self, path: str) -> Path:
        absolute_path = (self.storage_path / path).resolve()
        if not absolute_path.is_relative_to(self.storage_path.resolve()):
            raise ValueError("Invalid file path")
        return absolute_path

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def rename(self, source: str, target: str, replace: bool = False) -> None:
        if source == target:
            return

        source_path = self._resolve(source)
        target_path = self._resolve(target)
        if target_path.exists() and not replace:
            raise FileExistsError(f"File already exists: {target}")

        target_path.parent.mkdir(parents=True, exist_ok=True)
        source_path.replace(target_path)
        logger.debug("File renamed", source=source, target=target)

    def delete(self, file_record: dict[str, Any]) -> None:
        filename = file_record.get("filename")
        if not filename:
            return

        self._resolve(filename).unlink(missing_ok=True)

        file_id = file_record.get("id")
        if file_id is not None:
            thumbs = self.get_settings("thumbnail_path")
            for thumb in self._resolve(thumbs).glob(f"{file_id}.*"):
                thumb.unlink(missing_ok=True)

        logger.info("File deleted", filename=filename)

    def get_settings(self, key: str, default: Any = None) -> Any:
        if self._setting_lookup is not None:
            value = self._setting_lookup(key)
            if value is not None:
                return value
        return getattr(self.settings, key, default)
