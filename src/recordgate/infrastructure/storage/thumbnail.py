"""Thumbnail format rules."""

# Formats that cannot be displayed as-is but can be rendered to a thumbnail
NON_IMAGE_FORMATS = frozenset({"pdf", "psd", "tif", "tiff"})
DEFAULT_FORMAT = "jpeg"


class Thumbnail:
    """Thumbnail naming helpers."""

    @staticmethod
    def is_non_image_format_supported(extension: str) -> bool:
        return extension.lower() in NON_IMAGE_FORMATS

    @staticmethod
    def default_format() -> str:
        return DEFAULT_FORMAT

    @classmethod
    def thumbnail_extension(cls, extension: str) -> str:
        """Extension of the thumbnail generated for a file extension."""
        if cls.is_non_image_format_supported(extension):
            return cls.default_format()
        return extension
