"""Shared data models for the media derivatives generator."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MediaType(str, Enum):
    """Kind of media a storage key refers to."""

    IMAGE = "image"
    VIDEO = "video"


class SizeProfile(BaseModel):
    """A named derivative variant: target width plus destination."""

    model_config = ConfigDict(frozen=True)

    name: str
    width: int = Field(gt=0)
    bucket: str = Field(min_length=1)
    folder: str = ""

    @field_validator("folder")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        if not value:
            return value
        return value.rstrip("/") + "/"


class SourceObject(BaseModel):
    """Snapshot of an original object taken from a head request."""

    bucket: str
    key: str
    content_type: str = ""
    metadata: Dict[str, str] = Field(default_factory=dict)
    last_modified: Optional[datetime] = None
    content_length: int = 0
    etag: str = ""


class FormatInfo(BaseModel):
    """Result of classifying a key by its extension."""

    format: str
    media_type: MediaType


class KeyParts(BaseModel):
    """Logical components of a decoded trigger key."""

    key: str
    filename: str
    relative_key: str
    namespace: Optional[str] = None
    entity_id: Optional[str] = None


class Derivative(BaseModel):
    """A written and verified derivative of a source object."""

    variant: str
    key: str
    bucket: str
    url: str
    content_type: str = ""
    width: Optional[int] = None
    height: Optional[int] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class ProcessingResult(BaseModel):
    """All derivatives produced for one source object."""

    media_type: MediaType
    format: str
    original_key: str
    original_url: str
    processed_at: str
    derivatives: Dict[str, Derivative] = Field(default_factory=dict)

    def paths(self) -> Dict[str, str]:
        paths = {"original": self.original_url}
        for variant, derivative in self.derivatives.items():
            paths[variant] = derivative.url
        return paths

    def summary_metadata(self) -> Dict[str, Any]:
        summary: Dict[str, Any] = {
            "type": self.media_type.value,
            "format": self.format,
            "processedAt": self.processed_at,
            "originalKey": self.original_key,
        }
        for variant, derivative in self.derivatives.items():
            summary[f"{variant}Key"] = derivative.key
        return summary


class DispatchOutcome(BaseModel):
    """Outcome of dispatching one trigger event."""

    key: str
    skipped: bool = False
    reason: str = ""
    result: Optional[ProcessingResult] = None
