"""Process-wide configuration, read once from the environment."""

import os
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .exceptions import ConfigurationError
from .formats import PILLOW_FORMATS, SupportedFormats
from .keys import KeyMode
from .logging_config import DEFAULT_LOG_FORMAT, LOG_FORMATS, LOG_LEVELS
from .models import SizeProfile

DEFAULT_LOW_WIDTH = 800
DEFAULT_THUMB_WIDTH = 150

REQUIRED_ENV_VARS = (
    "SOURCE_BUCKET",
    "LOW_BUCKET",
    "LOW_FOLDER",
    "THUMB_BUCKET",
    "THUMB_FOLDER",
)


class DerivativeConfig(BaseModel):
    """Immutable configuration shared by every component."""

    model_config = ConfigDict(frozen=True)

    source_bucket: str = Field(min_length=1)
    region: str = Field(min_length=1)
    low: SizeProfile
    thumb: SizeProfile
    source_prefix: str = ""
    cdn_domain: Optional[str] = None
    key_mode: KeyMode = KeyMode.PREFIX
    key_namespace: str = "media"
    image_output_format: Optional[str] = None
    formats: SupportedFormats = Field(default_factory=SupportedFormats)
    max_parallel_variants: int = Field(default=1, ge=1)
    environment: str = "production"
    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT

    @model_validator(mode="after")
    def _check_mode(self) -> "DerivativeConfig":
        if self.key_mode is KeyMode.PREFIX and not self.source_prefix:
            raise ValueError("SOURCE_PREFIX is required in prefix key mode")
        if self.image_output_format and self.image_output_format not in PILLOW_FORMATS:
            raise ValueError(
                f"Unsupported image output format: {self.image_output_format}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {self.log_level}")
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unsupported log format: {self.log_format}")
        return self

    @property
    def debug(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def image_profiles(self) -> Tuple[SizeProfile, ...]:
        """Image variants, in processing order."""
        return (self.low, self.thumb)

    @property
    def video_profile(self) -> SizeProfile:
        """Videos are only copied into the low profile."""
        return self.low

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DerivativeConfig":
        """
        Build the configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Validated configuration

        Raises:
            ConfigurationError: Listing every missing or invalid setting
        """
        env = os.environ if environ is None else environ

        def get(name: str, default: Optional[str] = None) -> Optional[str]:
            value = env.get(name)
            return value if value not in (None, "") else default

        problems: List[str] = []
        missing = [name for name in REQUIRED_ENV_VARS if not get(name)]
        region = get("REGION", get("AWS_REGION"))
        if not region:
            missing.append("REGION")
        key_mode = (get("KEY_MODE", KeyMode.PREFIX.value) or "").lower()
        if key_mode == KeyMode.PREFIX.value and not get("SOURCE_PREFIX"):
            missing.append("SOURCE_PREFIX")
        if missing:
            problems.append(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        def integer(name: str, default: int) -> int:
            raw = get(name)
            if raw is None:
                return default
            try:
                return int(raw)
            except ValueError:
                problems.append(f"{name} must be an integer, got {raw!r}")
                return default

        low_width = integer("LOW_WIDTH", DEFAULT_LOW_WIDTH)
        thumb_width = integer("THUMB_WIDTH", DEFAULT_THUMB_WIDTH)
        max_parallel = integer("MAX_PARALLEL_VARIANTS", 1)

        if problems:
            raise ConfigurationError("; ".join(problems))

        formats: Dict[str, Any] = {}
        for field, name in (
            ("image_extensions", "SUPPORTED_IMAGE_EXTENSIONS"),
            ("image_mimetypes", "SUPPORTED_IMAGE_MIMETYPES"),
            ("video_extensions", "SUPPORTED_VIDEO_EXTENSIONS"),
            ("video_mimetypes", "SUPPORTED_VIDEO_MIMETYPES"),
        ):
            if get(name):
                formats[field] = get(name)

        output_format = get("IMAGE_OUTPUT_FORMAT")
        try:
            return cls(
                source_bucket=get("SOURCE_BUCKET"),
                source_prefix=get("SOURCE_PREFIX", ""),
                region=region,
                cdn_domain=get("CDN_DOMAIN"),
                key_mode=key_mode,
                key_namespace=get("KEY_NAMESPACE", "media"),
                image_output_format=output_format.lower() if output_format else None,
                low=SizeProfile(
                    name="low",
                    width=low_width,
                    bucket=get("LOW_BUCKET"),
                    folder=get("LOW_FOLDER"),
                ),
                thumb=SizeProfile(
                    name="thumb",
                    width=thumb_width,
                    bucket=get("THUMB_BUCKET"),
                    folder=get("THUMB_FOLDER"),
                ),
                formats=SupportedFormats(**formats),
                max_parallel_variants=max_parallel,
                environment=get("APP_ENV", "production"),
                log_level=(get("LOG_LEVEL", "INFO") or "").upper(),
                log_format=(get("LOG_FORMAT", DEFAULT_LOG_FORMAT) or "").lower(),
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc
