"""Validation of trigger events and routing to the derivative generator."""

from collections.abc import Mapping
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

from .config import DerivativeConfig
from .exceptions import InvalidKeyError, InvalidKeyShapeError, MalformedEventError
from .formats import classify
from .keys import (
    KeyMode,
    decode_key,
    derive_destination_key,
    derive_destination_keys,
    parse_key,
)
from .models import DispatchOutcome, FormatInfo, KeyParts, MediaType, ProcessingResult
from .observability import LogContext, MetricsCollector
from .protocols import LoggerProtocol
from .responses import build_error_response, build_response
from .services import Clock, DerivativeGenerator, VariantRunner, VariantTask, isoformat, utc_now


def validate_event(event: Any) -> Dict[str, Any]:
    """
    Check the notification shape and return its first record.

    Raises:
        MalformedEventError: If records are missing, empty, or the first
            record carries no object key.
    """
    if not isinstance(event, Mapping):
        raise MalformedEventError("Event object is undefined")

    records = event.get("Records")
    if not isinstance(records, list) or not records:
        raise MalformedEventError("Event contains no records")

    record = records[0]
    s3_data = record.get("s3") if isinstance(record, Mapping) else None
    object_data = s3_data.get("object") if isinstance(s3_data, Mapping) else None
    key = object_data.get("key") if isinstance(object_data, Mapping) else None
    if not isinstance(key, str) or not key:
        raise MalformedEventError("Invalid S3 event structure")

    return record


def build_s3_event(bucket: str, key: str) -> Dict[str, Any]:
    """Notification for ``key``, encoded the way S3 encodes keys in events."""
    return {
        "Records": [
            {
                "eventSource": "aws:s3",
                "eventName": "ObjectCreated:Put",
                "s3": {
                    "bucket": {"name": bucket},
                    "object": {"key": quote_plus(key, safe="/")},
                },
            }
        ]
    }


def _event_bucket(record: Mapping) -> str:
    bucket = record["s3"].get("bucket")
    if isinstance(bucket, Mapping):
        return bucket.get("name") or ""
    return ""


class MediaDispatcher:
    """Turns one storage notification into derivatives and a response."""

    def __init__(
        self,
        config: DerivativeConfig,
        generator: DerivativeGenerator,
        runner: VariantRunner,
        logger: LoggerProtocol,
        clock: Clock = utc_now,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._config = config
        self._generator = generator
        self._runner = runner
        self._logger = logger
        self._clock = clock
        self._metrics_collector = metrics_collector

    @property
    def debug(self) -> bool:
        return self._config.debug

    def dispatch(self, event: Any) -> DispatchOutcome:
        """
        Validate, classify and process one event.

        Returns:
            A skipped outcome when the key does not follow the strict layout,
            otherwise an outcome carrying the ProcessingResult.

        Raises:
            MalformedEventError, InvalidKeyError, UnsupportedFormatError,
            ProcessingError
        """
        record = validate_event(event)
        key = decode_key(record["s3"]["object"]["key"])
        context = LogContext(operation="dispatch", component="dispatcher").with_metadata(
            key=key
        )
        self._logger.info("Received request to process", context)

        bucket = _event_bucket(record)
        if bucket and bucket != self._config.source_bucket:
            self._logger.warning(
                f"Event bucket {bucket} differs from configured source bucket "
                f"{self._config.source_bucket}",
                context,
            )

        try:
            info = classify(key, self._config.formats)
        except InvalidKeyError:
            # folder markers and other extensionless keys off the strict layout
            if self._config.key_mode is KeyMode.STRICT:
                try:
                    self._parse(key)
                except InvalidKeyShapeError as exc:
                    return self._skip(key, exc, context)
            raise

        try:
            parts = self._parse(key)
        except InvalidKeyShapeError as exc:
            return self._skip(key, exc, context)

        if info.media_type is MediaType.IMAGE:
            result = self._process_image(parts, info)
        else:
            result = self._process_video(parts, info)

        self._logger.info(
            "Successfully processed",
            context,
            derivatives=", ".join(d.key for d in result.derivatives.values()),
        )
        return DispatchOutcome(key=key, result=result)

    def handle(self, event: Any) -> Dict[str, Any]:
        """Dispatch an event and package any outcome into a response envelope."""
        try:
            outcome = self.dispatch(event)
        except Exception as exc:  # noqa: BLE001
            self._logger.error(f"Processing error: {type(exc).__name__}: {exc}")
            return build_error_response(exc, debug=self.debug)
        finally:
            self._log_timings()
        return build_response(outcome)

    def _parse(self, key: str) -> KeyParts:
        return parse_key(
            key,
            self._config.key_mode,
            namespace=self._config.key_namespace,
            source_prefix=self._config.source_prefix,
        )

    def _skip(
        self, key: str, exc: InvalidKeyShapeError, context: LogContext
    ) -> DispatchOutcome:
        self._logger.info(str(exc), context)
        return DispatchOutcome(key=key, skipped=True, reason=str(exc))

    def _log_timings(self) -> None:
        """Log the variant timings of this invocation and reset the collector."""
        if self._metrics_collector is None:
            return
        summary = self._metrics_collector.get_summary()
        if summary:
            timings = {
                metric.operation: f"{metric.duration_ms:.1f}ms"
                for metric in self._metrics_collector.get_metrics()
            }
            self._logger.info(
                "Variant timings",
                failed=summary["failed_operations"],
                **timings,
            )
        self._metrics_collector.clear_metrics()

    def _result(self, parts: KeyParts, info: FormatInfo, derivatives) -> ProcessingResult:
        return ProcessingResult(
            media_type=info.media_type,
            format=info.format,
            original_key=parts.key,
            original_url=self._generator.resource_url(
                self._config.source_bucket, parts.key
            ),
            processed_at=isoformat(self._clock()),
            derivatives=derivatives,
        )

    def _process_image(self, parts: KeyParts, info: FormatInfo) -> ProcessingResult:
        profiles = self._config.image_profiles
        planned = derive_destination_keys(
            parts,
            profiles,
            MediaType.IMAGE,
            self._config.image_output_format or info.format,
        )
        self._logger.debug(
            "Derived destination keys",
            **{f"{name}Key": key for name, key in planned.items()},
        )

        tasks: List[VariantTask] = []
        for profile in profiles:

            def run(profile=profile):
                return self._generator.process_image(
                    parts.key,
                    info.format,
                    profile.width,
                    profile.bucket,
                    planned[profile.name],
                    variant=profile.name,
                )

            tasks.append(VariantTask(name=profile.name, run=run))

        return self._result(parts, info, self._runner.run(tasks))

    def _process_video(self, parts: KeyParts, info: FormatInfo) -> ProcessingResult:
        profile = self._config.video_profile
        derivative = self._generator.process_video(
            parts.key,
            info.format,
            destination_key=derive_destination_key(
                parts, profile.folder, MediaType.VIDEO
            ),
        )
        return self._result(parts, info, {profile.name: derivative})
