"""Derivative generation services."""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional

from .config import DerivativeConfig
from .error_handling import VariantBatch, storage_operation
from .exceptions import (
    ProcessingError,
    SourceFetchError,
    VerificationError,
    WriteError,
)
from .formats import content_type_for, extract_extension
from .image_utils import decode_image, describe_image, resize_and_encode
from .keys import join_destination
from .models import Derivative, MediaType, SourceObject
from .observability import LogContext, MetricsCollector
from .paths import resolve_resource_url
from .protocols import LoggerProtocol, S3ClientProtocol

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def merge_metadata(
    source_metadata: Mapping[str, str], provenance: Mapping[str, object]
) -> Dict[str, str]:
    """Source metadata first, provenance applied last (provenance wins)."""
    merged = {str(k): str(v) for k, v in source_metadata.items()}
    for key, value in provenance.items():
        merged[key] = str(value)
    return merged


@storage_operation(SourceFetchError, "get source metadata")
def head_source(s3_client: S3ClientProtocol, bucket: str, key: str) -> SourceObject:
    response = s3_client.head_object(Bucket=bucket, Key=key)
    return SourceObject(
        bucket=bucket,
        key=key,
        content_type=response.get("ContentType") or "",
        metadata=response.get("Metadata") or {},
        last_modified=response.get("LastModified"),
        content_length=response.get("ContentLength") or 0,
        etag=response.get("ETag") or "",
    )


@storage_operation(SourceFetchError, "fetch source object")
def download_object(s3_client: S3ClientProtocol, bucket: str, key: str) -> bytes:
    body = s3_client.get_object(Bucket=bucket, Key=key).get("Body")
    if body is None:
        raise SourceFetchError(f"Source stream is null for s3://{bucket}/{key}")
    return body.read()


@storage_operation(WriteError, "upload derivative")
def upload_object(
    s3_client: S3ClientProtocol,
    bucket: str,
    key: str,
    body: bytes,
    content_type: str,
    metadata: Dict[str, str],
) -> None:
    s3_client.put_object(
        Bucket=bucket,
        Key=key,
        Body=body,
        ContentType=content_type,
        Metadata=metadata,
    )


@storage_operation(WriteError, "copy object")
def copy_object(
    s3_client: S3ClientProtocol,
    source: SourceObject,
    bucket: str,
    key: str,
    content_type: str,
    metadata: Dict[str, str],
) -> None:
    s3_client.copy_object(
        Bucket=bucket,
        Key=key,
        CopySource={"Bucket": source.bucket, "Key": source.key},
        ContentType=content_type,
        Metadata=metadata,
        MetadataDirective="REPLACE",
    )


@storage_operation(VerificationError, "verify derivative")
def verify_object(s3_client: S3ClientProtocol, bucket: str, key: str) -> None:
    if not s3_client.head_object(Bucket=bucket, Key=key):
        raise VerificationError(f"Failed to verify uploaded object s3://{bucket}/{key}")


class DerivativeGenerator:
    """Fetches a source object, derives one variant and writes it back."""

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        config: DerivativeConfig,
        logger: LoggerProtocol,
        metrics_collector: Optional[MetricsCollector] = None,
        clock: Clock = utc_now,
    ):
        self._s3_client = s3_client
        self._config = config
        self._logger = logger
        self._metrics_collector = metrics_collector
        self._clock = clock

    def resource_url(self, bucket: str, key: str) -> str:
        return resolve_resource_url(
            bucket, key, self._config.region, self._config.cdn_domain
        )

    def _fetch_source(self, key: str, context: LogContext) -> SourceObject:
        source = head_source(self._s3_client, self._config.source_bucket, key)
        if source.content_type and not self._config.formats.is_supported_content_type(
            source.content_type
        ):
            self._logger.warning(
                f"Unexpected content type {source.content_type}", context
            )
        return source

    def _record(self, variant: str, start_time: float, error: Optional[Exception] = None):
        if self._metrics_collector is None:
            return
        self._metrics_collector.record(
            f"derive_{variant}",
            start_time,
            success=error is None,
            error_message=str(error) if error else None,
        )

    def process_image(
        self,
        source_key: str,
        format: str,
        target_width: int,
        destination_bucket: str,
        destination_key: str,
        variant: str = "",
    ) -> Derivative:
        """
        Resize an image into one destination.

        Args:
            source_key: Key of the original in the source bucket
            format: Source extension
            target_width: Width of the derivative (never enlarged)
            destination_bucket: Bucket to write to
            destination_key: Key to write; its extension selects the encoder
            variant: Size profile name, recorded in the metadata

        Returns:
            The verified Derivative

        Raises:
            ProcessingError: If fetching, encoding, writing or verifying fails
        """
        start_time = time.time()
        output_format = extract_extension(destination_key)

        context = LogContext(
            operation="process_image", component="derivative_generator"
        ).with_metadata(
            source_key=source_key,
            variant=variant,
            width=target_width,
            destination=f"{destination_bucket}/{destination_key}",
        )
        self._logger.info("Processing image", context)

        try:
            source = self._fetch_source(source_key, context)
            image_bytes = download_object(
                self._s3_client, self._config.source_bucket, source_key
            )

            img = decode_image(image_bytes)
            try:
                self._logger.debug(
                    "Original image metadata", context, **describe_image(img)
                )
                encoded = resize_and_encode(img, target_width, output_format)
            finally:
                img.close()

            metadata = merge_metadata(
                source.metadata,
                {
                    "originalKey": source_key,
                    "processedAt": isoformat(self._clock()),
                    "processingSize": variant,
                    "processingWidth": target_width,
                    "originalFormat": format,
                    "outputFormat": output_format,
                },
            )
            content_type = content_type_for(output_format)

            upload_object(
                self._s3_client,
                destination_bucket,
                destination_key,
                encoded.body,
                content_type,
                metadata,
            )
            verify_object(self._s3_client, destination_bucket, destination_key)
        except ProcessingError as exc:
            self._record(variant, start_time, exc)
            self._logger.error(
                "Image processing failed", context.with_metadata(error=str(exc))
            )
            raise

        self._record(variant, start_time)
        self._logger.info(
            "Successfully uploaded processed image",
            context,
            size=f"{encoded.width}x{encoded.height}",
            frames=encoded.frame_count,
        )

        return Derivative(
            variant=variant,
            key=destination_key,
            bucket=destination_bucket,
            url=self.resource_url(destination_bucket, destination_key),
            content_type=content_type,
            width=encoded.width,
            height=encoded.height,
            metadata=metadata,
        )

    def process_video(
        self,
        source_key: str,
        format: str,
        destination_key: Optional[str] = None,
    ) -> Derivative:
        """
        Copy a video into the low profile destination without transcoding.

        The copy replaces the metadata with the source metadata plus
        provenance fields, so nothing of the source is lost.
        """
        start_time = time.time()
        profile = self._config.video_profile
        if destination_key is None:
            destination_key = join_destination(
                profile.folder, source_key.rsplit("/", 1)[-1]
            )

        context = LogContext(
            operation="process_video", component="derivative_generator"
        ).with_metadata(
            source_key=source_key,
            destination=f"{profile.bucket}/{destination_key}",
        )
        self._logger.info("Processing video", context)

        try:
            source = self._fetch_source(source_key, context)
            now = isoformat(self._clock())
            metadata = merge_metadata(
                source.metadata,
                {
                    "originalKey": source_key,
                    "processedAt": now,
                    "copiedAt": now,
                    "processingSize": profile.name,
                    "originalFormat": format,
                    "outputFormat": format,
                },
            )
            content_type = source.content_type or content_type_for(
                format, MediaType.VIDEO
            )
            copy_object(
                self._s3_client,
                source,
                profile.bucket,
                destination_key,
                content_type,
                metadata,
            )
            verify_object(self._s3_client, profile.bucket, destination_key)
        except ProcessingError as exc:
            self._record(profile.name, start_time, exc)
            self._logger.error(
                "Video processing failed", context.with_metadata(error=str(exc))
            )
            raise

        self._record(profile.name, start_time)
        self._logger.info("Successfully copied video", context)

        return Derivative(
            variant=profile.name,
            key=destination_key,
            bucket=profile.bucket,
            url=self.resource_url(profile.bucket, destination_key),
            content_type=content_type,
            metadata=metadata,
        )


@dataclass
class VariantTask:
    """One derivative to produce."""

    name: str
    run: Callable[[], Derivative]


class VariantRunner:
    """
    Runs variant tasks one at a time, or on a bounded thread pool.

    Every task is attempted. Results keep task order and the first failure in
    task order is raised once all tasks have finished; variants written before
    a failure stay in storage.
    """

    def __init__(self, max_parallel: int = 1, logger: Optional[LoggerProtocol] = None):
        self._max_parallel = max(1, max_parallel)
        self._logger = logger

    def run(self, tasks: List[VariantTask]) -> Dict[str, Derivative]:
        results: Dict[str, Derivative] = {}

        with VariantBatch(f"Derivatives for {len(tasks)} variant(s)") as batch:
            if self._max_parallel == 1 or len(tasks) <= 1:
                for task in tasks:
                    try:
                        results[task.name] = task.run()
                    except ProcessingError as exc:
                        batch.add_error(task.name, exc)
            else:
                max_workers = min(self._max_parallel, len(tasks))
                with ThreadPoolExecutor(max_workers=max_workers) as executor:
                    futures = [(task, executor.submit(task.run)) for task in tasks]
                    for task, future in futures:
                        try:
                            results[task.name] = future.result()
                        except ProcessingError as exc:
                            batch.add_error(task.name, exc)

        if batch.errors and self._logger is not None:
            self._logger.warning(
                f"{len(results)} of {len(tasks)} variant(s) written before failure"
            )
        batch.raise_first()
        return results
