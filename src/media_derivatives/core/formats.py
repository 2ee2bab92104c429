"""Format classification of storage keys by extension."""

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from .exceptions import InvalidKeyError, UnsupportedFormatError
from .models import FormatInfo, MediaType

DEFAULT_IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp")
DEFAULT_IMAGE_MIMETYPES = ("image/jpeg", "image/png", "image/webp")
DEFAULT_VIDEO_EXTENSIONS = ("mp4", "mov", "avi", "mkv")
DEFAULT_VIDEO_MIMETYPES = (
    "video/mp4",
    "video/quicktime",
    "video/x-msvideo",
    "video/x-matroska",
)

# Extension -> Pillow format name
PILLOW_FORMATS: Dict[str, str] = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "gif": "GIF",
}

VIDEO_CONTENT_TYPES: Dict[str, str] = {
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mkv": "video/x-matroska",
}


def _normalize(values: Any) -> Tuple[str, ...]:
    if isinstance(values, str):
        values = values.split(",")
    return tuple(v.strip().lower().lstrip(".") for v in values if v and v.strip())


class SupportedFormats(BaseModel):
    """Configured image and video extension sets."""

    model_config = ConfigDict(frozen=True)

    image_extensions: Tuple[str, ...] = DEFAULT_IMAGE_EXTENSIONS
    image_mimetypes: Tuple[str, ...] = DEFAULT_IMAGE_MIMETYPES
    video_extensions: Tuple[str, ...] = DEFAULT_VIDEO_EXTENSIONS
    video_mimetypes: Tuple[str, ...] = DEFAULT_VIDEO_MIMETYPES

    @model_validator(mode="before")
    @classmethod
    def _normalize_lists(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for field in ("image_extensions", "video_extensions"):
                if field in data:
                    data[field] = _normalize(data[field])
            for field in ("image_mimetypes", "video_mimetypes"):
                if field in data and isinstance(data[field], str):
                    data[field] = tuple(
                        v.strip().lower() for v in data[field].split(",") if v.strip()
                    )
        return data

    @model_validator(mode="after")
    def _check_disjoint(self) -> "SupportedFormats":
        overlap = set(self.image_extensions) & set(self.video_extensions)
        if overlap:
            raise ValueError(
                f"Extensions configured as both image and video: {', '.join(sorted(overlap))}"
            )
        unknown = [ext for ext in self.image_extensions if ext not in PILLOW_FORMATS]
        if unknown:
            raise ValueError(f"No image codec for extensions: {', '.join(unknown)}")
        return self

    def is_supported_content_type(self, content_type: str) -> bool:
        """Check a stored content type against the configured MIME lists."""
        mime = (content_type or "").split(";")[0].strip().lower()
        return mime in self.image_mimetypes or mime in self.video_mimetypes


def extract_extension(key: Any) -> str:
    """
    Return the lower-cased extension of the last path segment of ``key``.

    Raises:
        InvalidKeyError: If the key is empty, not a string, or has no extension.
    """
    if not key or not isinstance(key, str):
        raise InvalidKeyError("Invalid key: Key must be a non-empty string")

    filename = key.rsplit("/", 1)[-1]
    if "." not in filename:
        raise InvalidKeyError(f'Invalid file format: No extension found in key "{key}"')

    extension = filename.rsplit(".", 1)[-1].lower()
    if not extension:
        raise InvalidKeyError(f'Invalid file format: No extension found in key "{key}"')
    return extension


def classify(key: Any, formats: SupportedFormats) -> FormatInfo:
    """
    Determine media type and format of a storage key.

    Args:
        key: Decoded storage key
        formats: Configured format sets

    Returns:
        FormatInfo with the extension and media type

    Raises:
        InvalidKeyError: If no extension can be extracted
        UnsupportedFormatError: If the extension is in neither set
    """
    extension = extract_extension(key)

    if extension in formats.image_extensions:
        return FormatInfo(format=extension, media_type=MediaType.IMAGE)
    if extension in formats.video_extensions:
        return FormatInfo(format=extension, media_type=MediaType.VIDEO)

    raise UnsupportedFormatError(
        extension, formats.image_extensions, formats.video_extensions
    )


def pillow_format(extension: str) -> str:
    """Pillow codec name for an image extension."""
    try:
        return PILLOW_FORMATS[extension.lower()]
    except KeyError:
        raise ValueError(f"No image codec for extension: {extension}") from None


def content_type_for(extension: str, media_type: MediaType = MediaType.IMAGE) -> str:
    """Content type written alongside a derivative of the given extension."""
    extension = extension.lower()
    if media_type is MediaType.VIDEO:
        return VIDEO_CONTENT_TYPES.get(extension, "application/octet-stream")
    return f"image/{'jpeg' if extension == 'jpg' else extension}"
