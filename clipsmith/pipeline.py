"""
clipsmith.pipeline - Stage a source video for downstream transcription.

Pipeline: probe → (whole-file extraction | chunk scheduling) → materialize →
hand chunks to a consumer in index order. Probe output drives the schedule;
a probe failure aborts before any file is written.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from clipsmith.config import ClipsmithConfig
from clipsmith.exceptions import PipelineCancelled, ValidationError, WorkspaceError
from clipsmith.media.extract import SegmentExtractor, extract_audio, extract_video
from clipsmith.media.probe import probe_media
from clipsmith.media.tool import MediaTool
from clipsmith.models import Chunk, MediaInfo, SourceMedia
from clipsmith.staging.materialize import materialize
from clipsmith.staging.scheduler import ChunkScheduler
from clipsmith.staging.workspace import Workspace

logger = logging.getLogger(__name__)

ChunkConsumer = Callable[[Chunk], object]


class StagingRun:
    """Staged chunks of one source; releases the workspace on exit."""

    def __init__(
        self,
        source: SourceMedia,
        info: MediaInfo,
        chunks: list[Chunk],
        workspace: Workspace,
    ) -> None:
        self.source = source
        self.info = info
        self.chunks = chunks
        self.workspace = workspace

    def __enter__(self) -> StagingRun:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __iter__(self):
        return iter(self.chunks)

    def __len__(self) -> int:
        return len(self.chunks)

    @property
    def total_bytes(self) -> int:
        return sum(chunk.size for chunk in self.chunks)

    def release_chunk(self, chunk: Chunk) -> None:
        if chunk.artifact_path is not None:
            self.workspace.release(chunk.artifact_path)

    def release(self) -> None:
        """Delete every chunk artifact, keeping the workspace directory."""
        for chunk in self.chunks:
            self.release_chunk(chunk)

    def close(self) -> None:
        """Tear down the whole workspace."""
        self.workspace.release_all()


def stage_source(
    source: SourceMedia,
    config: ClipsmithConfig,
    tool: MediaTool,
    workspace: Workspace | None = None,
    info: MediaInfo | None = None,
    consumer: ChunkConsumer | None = None,
    cancel: threading.Event | None = None,
    console=None,
) -> StagingRun:
    """Probe a source and stage its audio as ordered chunks.

    Sources no longer than one chunk are extracted in a single ffmpeg call.
    When a consumer is given, each chunk is passed to it in index order and
    its artifact is released once the consumer returns; if the consumer
    raises, all remaining artifacts are released and the error propagates.
    A workspace created here (no workspace argument) is removed entirely
    on any failure.

    Args:
        source: Validated source video
        config: Resolved settings (chunk size, worker count, timeouts)
        tool: Resolved ffmpeg/ffprobe executables
        workspace: Artifact directory (default: a fresh run directory under
            config.temp_dir)
        info: Probe result, if the caller already probed the source
        consumer: Optional callable receiving each chunk
        cancel: Optional event to abort the run
        console: Optional rich console for output

    Returns:
        StagingRun holding the chunks

    Raises:
        ProbeError: If the source cannot be probed
        ValidationError: If the source has no audio track
        ExtractionError: If ffmpeg fails for any chunk
        WorkspaceError: If the workspace or an artifact is unusable
        PipelineCancelled: If cancel was set; the workspace is removed
    """
    owns_workspace = workspace is None
    workspace = workspace or Workspace.for_run(config.temp_dir)

    if info is None:
        if console:
            console.print(f"[dim]  Probing {source.name}...[/dim]")
        info = probe_media(source.path, tool, timeout=config.probe_timeout)
    if not info.has_audio:
        raise ValidationError(f"{source.name} has no audio track")

    extractor = SegmentExtractor(tool, timeout=config.extract_timeout)
    try:
        if 0 < info.duration_seconds <= config.chunk_duration:
            chunks = [_stage_whole(source, info, workspace, extractor, cancel, console)]
        else:
            scheduler = ChunkScheduler(
                workspace,
                extractor,
                max_workers=config.max_workers,
                console=console,
            )
            chunks = scheduler.run(
                source.path,
                info.duration_seconds,
                config.chunk_duration,
                cancel=cancel,
            )
    except PipelineCancelled:
        workspace.release_all()
        raise
    except BaseException:
        if owns_workspace:
            workspace.release_all()
        raise

    run = StagingRun(source, info, chunks, workspace)
    if consumer is not None:
        try:
            _hand_off(run, consumer)
        except BaseException:
            if owns_workspace:
                run.close()
            raise
    return run


def _stage_whole(
    source: SourceMedia,
    info: MediaInfo,
    workspace: Workspace,
    extractor: SegmentExtractor,
    cancel: threading.Event | None,
    console,
) -> Chunk:
    if cancel is not None and cancel.is_set():
        raise PipelineCancelled("Cancelled before extraction started")

    workspace.ensure()
    dest = workspace.allocate("audio", "wav")
    if console:
        console.print("[dim]  Extracting 16kHz audio...[/dim]")
    try:
        extractor.extract(source.path, dest)
        chunk = Chunk(index=0, start_offset=0.0, duration=info.duration_seconds)
        chunk.artifact_path = dest
        materialize(chunk)
    except BaseException:
        workspace.release(dest)
        raise
    return chunk


def _hand_off(run: StagingRun, consumer: ChunkConsumer) -> None:
    for chunk in run.chunks:
        try:
            consumer(chunk)
        except BaseException:
            logger.warning("Consumer failed on chunk %d; releasing staged audio", chunk.index)
            run.release()
            raise
        run.release_chunk(chunk)


def stage_audio_bytes(
    source: SourceMedia,
    workspace: Workspace,
    tool: MediaTool,
    timeout: float | None = None,
) -> tuple[bytes, Path]:
    """Extract the whole audio track and read it into memory.

    Returns:
        (payload, artifact path); releasing the artifact is up to the caller

    Raises:
        ExtractionError: If ffmpeg fails
        WorkspaceError: If the artifact cannot be read (it is removed first)
    """
    workspace.ensure()
    dest = workspace.allocate("audio", "wav")
    extract_audio(source.path, dest, tool, timeout)
    try:
        payload = dest.read_bytes()
    except OSError as e:
        workspace.release(dest)
        raise WorkspaceError(f"Failed to read audio file {dest}: {e}") from e
    return payload, dest


def stage_video(
    source: SourceMedia,
    workspace: Workspace,
    tool: MediaTool,
    timeout: float | None = None,
) -> Path:
    """Stage a silent copy of the source's video stream in the workspace.

    Raises:
        ExtractionError: If ffmpeg fails
    """
    workspace.ensure()
    suffix = source.path.suffix.lstrip(".") or "mp4"
    dest = workspace.allocate("video", suffix)
    return extract_video(source.path, dest, tool, timeout)
