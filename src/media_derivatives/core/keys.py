"""Parsing of trigger keys and derivation of destination keys."""

from enum import Enum
from typing import Dict, Iterable, Optional
from urllib.parse import unquote_plus

from .exceptions import InvalidKeyShapeError
from .models import KeyParts, MediaType, SizeProfile

ORIGINAL_MARKER = "original"
STRICT_SEGMENT_COUNT = 4


class KeyMode(str, Enum):
    """How trigger keys are addressed.

    ``strict``: ``{namespace}/{entity_id}/original/{filename}``, derivatives go
    next to the original under ``{namespace}/{entity_id}/{folder}``.
    ``prefix``: a configured source prefix is stripped and the remainder is
    appended to each destination folder.
    """

    STRICT = "strict"
    PREFIX = "prefix"


def decode_key(raw_key: str) -> str:
    """Decode a notification key (``+`` means space, then percent-decoding)."""
    return unquote_plus(raw_key)


def parse_strict_key(key: str, namespace: str = "media") -> KeyParts:
    """
    Parse a key of the form ``{namespace}/{entity_id}/original/{filename}``.

    Raises:
        InvalidKeyShapeError: If the segment count or fixed literals differ.
    """
    segments = key.split("/")
    if (
        len(segments) != STRICT_SEGMENT_COUNT
        or segments[0] != namespace
        or segments[2] != ORIGINAL_MARKER
        or not segments[1]
        or not segments[3]
    ):
        raise InvalidKeyShapeError(f"Skipping invalid key format: {key}")

    return KeyParts(
        key=key,
        namespace=segments[0],
        entity_id=segments[1],
        filename=segments[3],
        relative_key=segments[3],
    )


def parse_prefixed_key(key: str, source_prefix: str) -> KeyParts:
    """Strip ``source_prefix`` from ``key`` when present; never skips."""
    if source_prefix and key.startswith(source_prefix):
        relative_key = key[len(source_prefix) :].lstrip("/")
    else:
        relative_key = key

    return KeyParts(
        key=key,
        filename=relative_key.rsplit("/", 1)[-1],
        relative_key=relative_key,
    )


def parse_key(
    key: str, mode: KeyMode, namespace: str = "media", source_prefix: str = ""
) -> KeyParts:
    """Parse a decoded key according to the configured addressing mode."""
    if mode is KeyMode.STRICT:
        return parse_strict_key(key, namespace)
    return parse_prefixed_key(key, source_prefix)


def replace_extension(filename: str, output_format: str) -> str:
    """Keep the stem of ``filename`` and suffix it with ``output_format``."""
    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    return f"{stem}.{output_format.lower()}"


def join_destination(
    folder: str, relative_key: str, output_format: Optional[str] = None
) -> str:
    """Append ``relative_key`` to ``folder``, re-suffixing the filename when given."""
    if output_format:
        head, _, name = relative_key.rpartition("/")
        name = replace_extension(name, output_format)
        relative_key = f"{head}/{name}" if head else name
    return f"{folder}{relative_key}"


def destination_folder(parts: KeyParts, folder: str) -> str:
    """Full folder prefix of a derivative; strict keys stay under their entity."""
    if parts.entity_id is not None:
        return f"{parts.namespace}/{parts.entity_id}/{folder}"
    return folder


def derive_destination_key(
    parts: KeyParts,
    folder: str,
    media_type: MediaType,
    output_format: Optional[str] = None,
) -> str:
    """
    Calculate the destination key of one derivative.

    Args:
        parts: Parsed trigger key
        folder: Destination folder prefix (trailing slash normalized)
        media_type: Images take ``output_format`` as extension, videos keep it
        output_format: Encode format of an image derivative

    Returns:
        Destination key
    """
    if media_type is not MediaType.IMAGE:
        output_format = None
    return join_destination(
        destination_folder(parts, folder), parts.relative_key, output_format
    )


def derive_destination_keys(
    parts: KeyParts,
    profiles: Iterable[SizeProfile],
    media_type: MediaType,
    output_format: Optional[str] = None,
) -> Dict[str, str]:
    """One destination key per size profile, in profile order."""
    return {
        profile.name: derive_destination_key(
            parts, profile.folder, media_type, output_format
        )
        for profile in profiles
    }
