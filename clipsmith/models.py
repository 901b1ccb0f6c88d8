"""
clipsmith.models - Data model shared by the staging pipeline.

SourceMedia is immutable; Chunk is mutated in place as it moves through
extraction (artifact_path) and materialization (payload).
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

from clipsmith.exceptions import ClipsmithError


class SourceMedia(BaseModel):
    """A validated input video."""

    model_config = ConfigDict(frozen=True)

    path: Path

    @property
    def name(self) -> str:
        return self.path.name


class MediaInfo(BaseModel):
    """Probe result: total duration plus a minimal stream descriptor."""

    duration_seconds: float = Field(ge=0.0)
    has_audio: bool = False
    has_video: bool = False
    format_name: str | None = None
    audio_codec: str | None = None
    sample_rate: int | None = None
    channels: int | None = None
    video_codec: str | None = None
    resolution: str | None = None
    frame_rate: float | None = None


class Chunk(BaseModel):
    """One time window of the source and its staged audio."""

    model_config = ConfigDict(validate_assignment=True)

    index: int = Field(ge=0)
    start_offset: float = Field(ge=0.0)
    duration: float = Field(gt=0.0)
    artifact_path: Path | None = None
    payload: bytes | None = None

    @property
    def end_offset(self) -> float:
        return self.start_offset + self.duration

    @property
    def size(self) -> int:
        return len(self.payload) if self.payload is not None else 0


class ExtractionResult(BaseModel):
    """Outcome of staging one chunk: a populated chunk or the error, never both."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    chunk: Chunk | None = None
    error: ClipsmithError | None = None

    @model_validator(mode="after")
    def check_exclusive(self) -> ExtractionResult:
        if (self.chunk is None) == (self.error is None):
            raise ValueError("ExtractionResult requires exactly one of chunk or error")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None
