"""Protocol definitions for dependency injection and testability."""

from typing import Any, Dict, Protocol


class S3ClientProtocol(Protocol):
    """Subset of the boto3 S3 client used by the generator."""

    def head_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Probe object existence and metadata."""
        ...

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Get object from S3."""
        ...

    def put_object(self, **kwargs: Any) -> Dict[str, Any]:
        """Put object to S3 (Bucket, Key, Body, ContentType, Metadata)."""
        ...

    def copy_object(self, **kwargs: Any) -> Dict[str, Any]:
        """Server-side copy (Bucket, Key, CopySource, MetadataDirective, ...)."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, *args: Any, **kwargs: Any) -> None:
        """Log error message."""
        ...
