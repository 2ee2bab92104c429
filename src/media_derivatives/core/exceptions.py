"""Custom exceptions for the media derivatives generator."""

from __future__ import annotations


class MediaDerivativesError(Exception):
    """Base exception for all media derivatives errors."""


class ConfigurationError(MediaDerivativesError):
    """Error raised for missing or invalid configuration."""


class MalformedEventError(MediaDerivativesError):
    """Error raised when a trigger payload lacks the expected shape."""


class InvalidKeyError(MediaDerivativesError):
    """Error raised when a storage key is empty or carries no extension."""


class InvalidKeyShapeError(MediaDerivativesError):
    """Raised when a key does not follow the strict addressing layout.

    This is a soft-skip signal, not a failure: the dispatcher turns it into a
    successful "skipped" outcome.
    """


class UnsupportedFormatError(MediaDerivativesError):
    """Error raised when a key's extension is in no configured format set."""

    def __init__(self, extension: str, image_extensions=(), video_extensions=()):
        self.extension = extension
        super().__init__(
            f'Unsupported format "{extension}". Supported formats are: '
            f"Images: {', '.join(image_extensions)}, "
            f"Videos: {', '.join(video_extensions)}"
        )


class ProcessingError(MediaDerivativesError):
    """Error raised when generating a derivative fails."""


class ImageProcessingError(ProcessingError):
    """Error raised when decoding, resizing or encoding an image fails."""


class S3Error(ProcessingError):
    """Error raised for failures talking to the storage backend."""


class SourceFetchError(S3Error):
    """Error raised when the source object cannot be inspected or read."""


class WriteError(S3Error):
    """Error raised when a derivative cannot be written or copied."""


class VerificationError(S3Error):
    """Error raised when a written derivative cannot be confirmed present."""
