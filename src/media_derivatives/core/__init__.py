"""Core components of the media derivatives generator."""

from .logging_config import get_logger, setup_logger
from .exceptions import (
    MediaDerivativesError,
    ConfigurationError,
    MalformedEventError,
    InvalidKeyError,
    InvalidKeyShapeError,
    UnsupportedFormatError,
    ProcessingError,
    ImageProcessingError,
    S3Error,
    SourceFetchError,
    WriteError,
    VerificationError,
)
from .models import (
    Derivative,
    DispatchOutcome,
    FormatInfo,
    KeyParts,
    MediaType,
    ProcessingResult,
    SizeProfile,
    SourceObject,
)
from .formats import SupportedFormats, classify, extract_extension
from .keys import KeyMode, decode_key, derive_destination_keys, parse_key
from .paths import resolve_resource_url
from .config import DerivativeConfig

__all__ = [
    "setup_logger",
    "get_logger",
    "MediaDerivativesError",
    "ConfigurationError",
    "MalformedEventError",
    "InvalidKeyError",
    "InvalidKeyShapeError",
    "UnsupportedFormatError",
    "ProcessingError",
    "ImageProcessingError",
    "S3Error",
    "SourceFetchError",
    "WriteError",
    "VerificationError",
    "Derivative",
    "DispatchOutcome",
    "FormatInfo",
    "KeyParts",
    "MediaType",
    "ProcessingResult",
    "SizeProfile",
    "SourceObject",
    "SupportedFormats",
    "classify",
    "extract_extension",
    "KeyMode",
    "decode_key",
    "derive_destination_keys",
    "parse_key",
    "resolve_resource_url",
    "DerivativeConfig",
]
