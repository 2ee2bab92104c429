"""Testing utilities and fakes for the media derivatives generator."""

from ..core.dispatcher import build_s3_event
from .fakes import (
    FakeS3Client,
    FakeLogger,
    S3Object,
    S3Bucket,
    create_test_config,
    create_test_image,
    setup_test_s3_environment,
)

__all__ = [
    "FakeS3Client",
    "FakeLogger",
    "S3Object",
    "S3Bucket",
    "build_s3_event",
    "create_test_config",
    "create_test_image",
    "setup_test_s3_environment",
]
