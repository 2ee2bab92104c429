"""Tests for the exception hierarchy."""

import pytest

from media_derivatives.core.exceptions import (
    ConfigurationError,
    ImageProcessingError,
    InvalidKeyError,
    InvalidKeyShapeError,
    MalformedEventError,
    MediaDerivativesError,
    ProcessingError,
    S3Error,
    SourceFetchError,
    UnsupportedFormatError,
    VerificationError,
    WriteError,
)


class TestHierarchy:
    """Tests for how the errors relate to each other."""

    @pytest.mark.parametrize(
        "error_cls",
        [
            ConfigurationError,
            MalformedEventError,
            InvalidKeyError,
            InvalidKeyShapeError,
            UnsupportedFormatError,
            ProcessingError,
        ],
    )
    def test_all_derive_from_base(self, error_cls):
        assert issubclass(error_cls, MediaDerivativesError)

    @pytest.mark.parametrize(
        "error_cls", [ImageProcessingError, S3Error, SourceFetchError, WriteError, VerificationError]
    )
    def test_processing_failures(self, error_cls):
        """Test every per-variant failure is a ProcessingError."""
        assert issubclass(error_cls, ProcessingError)

    @pytest.mark.parametrize("error_cls", [SourceFetchError, WriteError, VerificationError])
    def test_storage_stages_are_s3_errors(self, error_cls):
        assert issubclass(error_cls, S3Error)

    def test_skip_signal_is_not_a_processing_error(self):
        assert not issubclass(InvalidKeyShapeError, ProcessingError)


class TestUnsupportedFormatError:
    """Tests for the unsupported format message."""

    def test_message_lists_supported_formats(self):
        error = UnsupportedFormatError("gif", ("jpg", "png"), ("mp4",))
        assert error.extension == "gif"
        assert str(error) == (
            'Unsupported format "gif". Supported formats are: '
            "Images: jpg, png, Videos: mp4"
        )
