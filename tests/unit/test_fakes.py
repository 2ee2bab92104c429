"""Tests for fake implementations to ensure they work correctly."""

import io

import pytest
from botocore.exceptions import ClientError
from PIL import Image

from media_derivatives.testing.fakes import (
    FakeLogger,
    FakeS3Client,
    create_test_config,
    create_test_image,
    setup_test_s3_environment,
)


class TestFakeS3Client:
    """Tests for FakeS3Client to ensure it behaves correctly."""

    def test_create_bucket(self):
        client = FakeS3Client()

        bucket = client.create_bucket("test-bucket")

        assert bucket.name == "test-bucket"
        assert client.get_bucket("test-bucket") is bucket
        assert client.get_bucket("nonexistent") is None

    def test_head_and_get(self):
        client = FakeS3Client()
        client.create_bucket("b").add_object(
            "k.png", b"data", content_type="image/png", metadata={"a": "1"}
        )

        head = client.head_object(Bucket="b", Key="k.png")
        got = client.get_object(Bucket="b", Key="k.png")

        assert head["ContentType"] == "image/png"
        assert head["ContentLength"] == 4
        assert head["Metadata"] == {"a": "1"}
        assert got["Body"].read() == b"data"
        assert client.operation_count == 2

    def test_head_missing_key_is_404(self):
        client = FakeS3Client()
        client.create_bucket("b")

        with pytest.raises(ClientError) as excinfo:
            client.head_object(Bucket="b", Key="missing")
        assert excinfo.value.response["Error"]["Code"] == "404"

    def test_get_missing_key_is_no_such_key(self):
        client = FakeS3Client()
        client.create_bucket("b")

        with pytest.raises(ClientError) as excinfo:
            client.get_object(Bucket="b", Key="missing")
        assert excinfo.value.response["Error"]["Code"] == "NoSuchKey"

    def test_put_to_missing_bucket(self):
        client = FakeS3Client()

        with pytest.raises(ClientError) as excinfo:
            client.put_object(Bucket="nope", Key="k", Body=b"")
        assert excinfo.value.response["Error"]["Code"] == "NoSuchBucket"

    def test_copy_directives(self):
        client = FakeS3Client()
        client.create_bucket("src").add_object(
            "v.mp4", b"video", content_type="video/mp4", metadata={"duration": "3"}
        )
        client.create_bucket("dst")
        source = {"Bucket": "src", "Key": "v.mp4"}

        client.copy_object(Bucket="dst", Key="copy.mp4", CopySource=source)
        client.copy_object(
            Bucket="dst",
            Key="replaced.mp4",
            CopySource=source,
            MetadataDirective="REPLACE",
            ContentType="video/mp4",
            Metadata={"copiedAt": "now"},
        )

        dst = client.get_bucket("dst")
        assert dst.get_object("copy.mp4").metadata == {"duration": "3"}
        assert dst.get_object("replaced.mp4").metadata == {"copiedAt": "now"}
        assert dst.get_object("replaced.mp4").body == b"video"

    def test_failure_mode_limited_to_operations(self):
        client = FakeS3Client()
        client.create_bucket("b").add_object("k", b"x")
        client.set_failure_mode(True, "boom", operations={"put_object"})

        assert client.get_object(Bucket="b", Key="k")["Body"].read() == b"x"
        with pytest.raises(ClientError, match="boom"):
            client.put_object(Bucket="b", Key="k2", Body=b"y")

    def test_drop_writes(self):
        client = FakeS3Client()
        bucket = client.create_bucket("b")
        client.drop_writes = True

        client.put_object(Bucket="b", Key="k", Body=b"x")

        assert bucket.get_object("k") is None
        assert [w["Key"] for w in client.writes()] == ["k"]


class TestFakeLogger:
    """Tests for FakeLogger."""

    def test_levels_and_filtering(self):
        logger = FakeLogger()

        logger.info("hello", extra="1")
        logger.error("bad")

        assert len(logger.get_logs()) == 2
        assert logger.get_logs("ERROR")[0]["message"] == "bad"
        assert logger.get_logs("INFO")[0]["extra"] == "1"


class TestHelpers:
    """Tests for test data helpers."""

    def test_create_animated_image(self):
        img = Image.open(io.BytesIO(create_test_image(20, 10, format="GIF", frames=3)))
        assert img.n_frames == 3

    def test_environment_matches_config(self):
        client = setup_test_s3_environment()
        config = create_test_config()

        assert client.get_bucket(config.source_bucket).get_object("uploads/photo.jpg")
        assert client.get_bucket(config.low.bucket) is not None
        assert client.get_bucket(config.thumb.bucket) is not None
