"""Factory classes for creating configured service instances."""

from typing import TYPE_CHECKING, Optional

import boto3

from .config import DerivativeConfig
from .dispatcher import MediaDispatcher
from .observability import MetricsCollector, StructuredLogger
from .protocols import LoggerProtocol, S3ClientProtocol
from .services import Clock, DerivativeGenerator, VariantRunner, utc_now

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(
        name: str = "media-derivatives",
        level: Optional[str] = None,
        format_type: Optional[str] = None,
    ) -> LoggerProtocol:
        return StructuredLogger(name, level=level, format_type=format_type)


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(region: Optional[str] = None) -> "S3Client":
        """Create S3 client, pinned to ``region`` when given."""
        session = boto3.Session()
        return session.client("s3", region_name=region)


class MediaPipelineFactory:
    """Factory for creating the complete derivative pipeline."""

    @staticmethod
    def create_dispatcher(
        config: DerivativeConfig,
        s3_client: Optional[S3ClientProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        clock: Clock = utc_now,
    ) -> MediaDispatcher:
        """Create a fully configured dispatcher."""
        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(config.region)

        if logger is None:
            logger = LoggerFactory.create_logger(
                level=config.log_level, format_type=config.log_format
            )

        if metrics_collector is None:
            metrics_collector = MetricsCollector()

        generator = DerivativeGenerator(
            s3_client, config, logger, metrics_collector=metrics_collector, clock=clock
        )
        runner = VariantRunner(config.max_parallel_variants, logger)

        return MediaDispatcher(
            config=config,
            generator=generator,
            runner=runner,
            logger=logger,
            clock=clock,
            metrics_collector=metrics_collector,
        )
