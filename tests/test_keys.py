"""Tests for key parsing and destination key derivation."""

import pytest

from media_derivatives.core.exceptions import InvalidKeyShapeError
from media_derivatives.core.keys import (
    KeyMode,
    decode_key,
    derive_destination_key,
    derive_destination_keys,
    join_destination,
    parse_key,
    parse_prefixed_key,
    parse_strict_key,
    replace_extension,
)
from media_derivatives.core.models import MediaType, SizeProfile


class TestDecodeKey:
    """Tests for decode_key."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("uploads/my+photo.jpg", "uploads/my photo.jpg"),
            ("uploads/caf%C3%A9.jpg", "uploads/café.jpg"),
            ("uploads/a%2Bb.jpg", "uploads/a+b.jpg"),
            ("uploads/plain.jpg", "uploads/plain.jpg"),
        ],
    )
    def test_decodes_plus_and_percent_escapes(self, raw, expected):
        assert decode_key(raw) == expected


class TestParseStrictKey:
    """Tests for the strict four-segment layout."""

    def test_valid_key(self):
        """Test components of a valid key."""
        parts = parse_strict_key("media/42/original/house.jpg")
        assert parts.namespace == "media"
        assert parts.entity_id == "42"
        assert parts.filename == "house.jpg"
        assert parts.relative_key == "house.jpg"

    def test_custom_namespace(self):
        parts = parse_strict_key("assets/7/original/a.png", namespace="assets")
        assert parts.entity_id == "7"

    @pytest.mark.parametrize(
        "key",
        [
            "photos/abc.jpg",
            "media/42/house.jpg",
            "media/42/original/extra/house.jpg",
            "other/42/original/house.jpg",
            "media/42/thumb/house.jpg",
            "media//original/house.jpg",
            "media/42/original/",
        ],
    )
    def test_invalid_shapes_raise_skip_signal(self, key):
        """Test keys off the layout raise InvalidKeyShapeError."""
        with pytest.raises(InvalidKeyShapeError, match="Skipping invalid key format"):
            parse_strict_key(key)


class TestParsePrefixedKey:
    """Tests for the prefix-relative layout."""

    def test_prefix_is_stripped(self):
        parts = parse_prefixed_key("uploads/2024/photo.jpg", "uploads/")
        assert parts.relative_key == "2024/photo.jpg"
        assert parts.filename == "photo.jpg"
        assert parts.entity_id is None

    def test_prefix_without_trailing_slash(self):
        parts = parse_prefixed_key("uploads/photo.jpg", "uploads")
        assert parts.relative_key == "photo.jpg"

    def test_key_outside_prefix_is_used_whole(self):
        """Test the prefix mode never skips."""
        parts = parse_prefixed_key("elsewhere/photo.jpg", "uploads/")
        assert parts.relative_key == "elsewhere/photo.jpg"

    def test_parse_key_dispatches_on_mode(self):
        assert parse_key("uploads/a.jpg", KeyMode.PREFIX, source_prefix="uploads/").relative_key == "a.jpg"
        with pytest.raises(InvalidKeyShapeError):
            parse_key("uploads/a.jpg", KeyMode.STRICT)


class TestDestinationKeys:
    """Tests for destination key derivation."""

    PROFILES = (
        SizeProfile(name="mls", width=2048, bucket="b", folder="mls"),
        SizeProfile(name="thumb", width=240, bucket="b", folder="thumb"),
    )

    def test_replace_extension(self):
        assert replace_extension("house.jpg", "webp") == "house.webp"
        assert replace_extension("my.house.JPG", "jpg") == "my.house.jpg"
        assert replace_extension("noext", "png") == "noext.png"

    def test_join_destination_keeps_subdirectories(self):
        assert join_destination("low/", "2024/a.png", "webp") == "low/2024/a.webp"
        assert join_destination("low/", "2024/a.png") == "low/2024/a.png"

    def test_strict_scenario(self):
        """Test derivatives land next to the original, one per profile."""
        parts = parse_strict_key("media/42/original/house.jpg")
        keys = derive_destination_keys(parts, self.PROFILES, MediaType.IMAGE, "jpg")
        assert keys == {
            "mls": "media/42/mls/house.jpg",
            "thumb": "media/42/thumb/house.jpg",
        }

    @pytest.mark.parametrize("entity_id", ["1", "42", "abc-9", "x y"])
    def test_one_key_per_profile_starting_with_folder(self, entity_id):
        parts = parse_strict_key(f"media/{entity_id}/original/pic.png")
        keys = derive_destination_keys(parts, self.PROFILES, MediaType.IMAGE, "png")
        assert list(keys) == ["mls", "thumb"]
        for profile in self.PROFILES:
            assert keys[profile.name].startswith(f"media/{entity_id}/{profile.folder}")

    def test_prefix_mode_image_output_format(self):
        parts = parse_prefixed_key("uploads/photo.jpg", "uploads/")
        assert (
            derive_destination_key(parts, "low/", MediaType.IMAGE, "webp")
            == "low/photo.webp"
        )

    def test_video_keeps_filename(self):
        parts = parse_prefixed_key("uploads/clip.MOV", "uploads/")
        assert derive_destination_key(parts, "low/", MediaType.VIDEO, "webp") == "low/clip.MOV"
