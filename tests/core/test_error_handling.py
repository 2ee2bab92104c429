# tests/core/test_error_handling.py

import pytest
from botocore.exceptions import ClientError
from PIL import UnidentifiedImageError

from media_derivatives.core.error_handling import (
    VariantBatch,
    image_operation,
    storage_operation,
)
from media_derivatives.core.exceptions import (
    ImageProcessingError,
    InvalidKeyError,
    SourceFetchError,
    WriteError,
)


def _client_error(code="AccessDenied"):
    return ClientError(
        {"Error": {"Code": code, "Message": "Access Denied"}}, "PutObject"
    )


# --- Tests for @storage_operation ---

def test_storage_operation_returns_value():
    @storage_operation(WriteError, "upload derivative")
    def upload():
        return "ok"

    assert upload() == "ok"


def test_storage_operation_wraps_client_error():
    original = _client_error()

    @storage_operation(WriteError, "upload derivative")
    def upload():
        raise original

    with pytest.raises(WriteError, match="Failed to upload derivative") as excinfo:
        upload()
    assert excinfo.value.__cause__ is original


def test_storage_operation_wraps_unexpected_errors():
    @storage_operation(SourceFetchError, "fetch source object")
    def fetch():
        raise ConnectionResetError("peer reset")

    with pytest.raises(SourceFetchError, match="peer reset"):
        fetch()


def test_storage_operation_passes_domain_errors_through():
    @storage_operation(WriteError, "upload derivative")
    def upload():
        raise InvalidKeyError("bad key")

    with pytest.raises(InvalidKeyError):
        upload()


def test_storage_operation_preserves_metadata():
    @storage_operation(WriteError, "upload derivative")
    def upload_variant():
        """Docstring."""

    assert upload_variant.__name__ == "upload_variant"
    assert upload_variant.__doc__ == "Docstring."


# --- Tests for @image_operation ---

@pytest.mark.parametrize(
    "error",
    [UnidentifiedImageError("cannot identify"), OSError("truncated"), ValueError("bad mode")],
)
def test_image_operation_wraps_pillow_errors(error):
    @image_operation
    def encode():
        raise error

    with pytest.raises(ImageProcessingError, match="Failed to process image in encode") as excinfo:
        encode()
    assert excinfo.value.__cause__ is error


def test_image_operation_does_not_wrap_other_errors():
    @image_operation
    def encode():
        raise KeyError("missing")

    with pytest.raises(KeyError):
        encode()


# --- Tests for VariantBatch ---

def test_variant_batch_without_errors():
    with VariantBatch("Test batch") as batch:
        pass
    assert batch.errors == []
    assert batch.first_error is None
    batch.raise_first()


def test_variant_batch_keeps_first_error():
    first = WriteError("low failed")
    second = WriteError("thumb failed")
    with VariantBatch() as batch:
        batch.add_error("low", first)
        batch.add_error("thumb", second)

    assert [e["variant"] for e in batch.errors] == ["low", "thumb"]
    assert batch.first_error is first
    with pytest.raises(WriteError, match="low failed"):
        batch.raise_first()


def test_variant_batch_does_not_suppress_exceptions():
    with pytest.raises(RuntimeError):
        with VariantBatch():
            raise RuntimeError("boom")
