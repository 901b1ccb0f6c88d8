"""
clipsmith.staging.scheduler - Drive chunk extraction with all-or-nothing rollback.

The scheduler plans windows over the probed duration, allocates one workspace
path per chunk, extracts and materializes each one, and returns the chunks in
index order. If any chunk fails, or the run is cancelled, every artifact
allocated during the run is released before the error propagates, so callers
never see a partially staged set.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Protocol

from clipsmith.exceptions import (
    ClipsmithError,
    ExtractionError,
    PipelineCancelled,
    WorkspaceError,
)
from clipsmith.models import Chunk, ExtractionResult
from clipsmith.staging.chunks import plan_chunks
from clipsmith.staging.materialize import materialize
from clipsmith.staging.workspace import Workspace
from clipsmith.utils import format_offset

logger = logging.getLogger(__name__)

CHUNK_PREFIX = "audio_chunk"
CHUNK_EXTENSION = "wav"


class Extractor(Protocol):
    def extract(
        self,
        source_path: Path,
        dest_path: Path,
        start_offset: float | None = None,
        duration: float | None = None,
    ) -> Path: ...


class ChunkScheduler:
    """Stage a source as an ordered sequence of audio chunks."""

    def __init__(
        self,
        workspace: Workspace,
        extractor: Extractor,
        materializer: Callable[[Chunk], Chunk] = materialize,
        max_workers: int = 1,
        console=None,
    ) -> None:
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.workspace = workspace
        self.extractor = extractor
        self.materializer = materializer
        self.max_workers = max_workers
        self.console = console

    def run(
        self,
        source_path: Path,
        total_duration: float,
        chunk_duration: float,
        cancel: threading.Event | None = None,
    ) -> list[Chunk]:
        """Extract and materialize every chunk of [0, total_duration).

        Args:
            source_path: Path to source video file
            total_duration: Probed duration in seconds
            chunk_duration: Maximum chunk length in seconds
            cancel: Optional event; once set no new chunk is started

        Returns:
            Chunks in index order, each with artifact_path and payload set.
            Empty when total_duration <= 0.

        Raises:
            ExtractionError: If ffmpeg fails for any chunk
            WorkspaceError: If the workspace or an artifact is unusable
            PipelineCancelled: If cancel was set before all chunks started
        """
        self.workspace.ensure()
        chunks = plan_chunks(total_duration, chunk_duration)
        if not chunks:
            logger.debug("Nothing to schedule for duration %s", total_duration)
            return []

        allocated: list[Path] = []
        try:
            if self.max_workers == 1:
                return self._run_sequential(source_path, chunks, allocated, cancel)
            return self._run_concurrent(source_path, chunks, allocated, cancel)
        except BaseException:
            self._rollback(allocated)
            raise

    def _allocate(self, chunk: Chunk, allocated: list[Path]) -> Path:
        dest = self.workspace.allocate(f"{CHUNK_PREFIX}_{chunk.index:04d}", CHUNK_EXTENSION)
        allocated.append(dest)
        return dest

    def _stage(self, source_path: Path, chunk: Chunk, dest: Path) -> ExtractionResult:
        try:
            self.extractor.extract(source_path, dest, chunk.start_offset, chunk.duration)
            chunk.artifact_path = dest
            self.materializer(chunk)
        except (ExtractionError, WorkspaceError) as e:
            return ExtractionResult(error=e)
        return ExtractionResult(chunk=chunk)

    def _report(self, chunk: Chunk, total: int) -> None:
        logger.debug(
            "Staged chunk %d/%d at %s (%d bytes)",
            chunk.index + 1,
            total,
            format_offset(chunk.start_offset),
            chunk.size,
        )
        if self.console:
            self.console.print(
                f"[dim]  Chunk {chunk.index + 1}/{total} "
                f"[{format_offset(chunk.start_offset)} - {format_offset(chunk.end_offset)}][/dim]"
            )

    def _run_sequential(
        self,
        source_path: Path,
        chunks: list[Chunk],
        allocated: list[Path],
        cancel: threading.Event | None,
    ) -> list[Chunk]:
        staged = []
        for chunk in chunks:
            if cancel is not None and cancel.is_set():
                raise PipelineCancelled(f"Cancelled after {len(staged)} of {len(chunks)} chunks")
            dest = self._allocate(chunk, allocated)
            result = self._stage(source_path, chunk, dest)
            if not result.ok:
                raise result.error
            self._report(result.chunk, len(chunks))
            staged.append(result.chunk)
        return staged

    def _run_concurrent(
        self,
        source_path: Path,
        chunks: list[Chunk],
        allocated: list[Path],
        cancel: threading.Event | None,
    ) -> list[Chunk]:
        pending: dict[Future[ExtractionResult], int] = {}
        staged: dict[int, Chunk] = {}
        errors: dict[int, ClipsmithError] = {}
        queue = iter(chunks)
        cancelled = False

        # Leaving the with-block joins every worker, so rollback in run()
        # never races an in-flight extraction.
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            while True:
                while len(pending) < self.max_workers and not errors and not cancelled:
                    if cancel is not None and cancel.is_set():
                        cancelled = True
                        break
                    chunk = next(queue, None)
                    if chunk is None:
                        break
                    dest = self._allocate(chunk, allocated)
                    pending[pool.submit(self._stage, source_path, chunk, dest)] = chunk.index

                if not pending:
                    break

                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    index = pending.pop(future)
                    result = future.result()
                    if result.ok:
                        staged[index] = result.chunk
                        self._report(result.chunk, len(chunks))
                    else:
                        errors[index] = result.error

        if errors:
            raise errors[min(errors)]
        if cancelled:
            raise PipelineCancelled(f"Cancelled after {len(staged)} of {len(chunks)} chunks")
        return [staged[chunk.index] for chunk in chunks]

    def _rollback(self, allocated: list[Path]) -> None:
        if not allocated:
            return
        logger.warning("Rolling back %d chunk artifact(s)", len(allocated))
        for path in allocated:
            try:
                self.workspace.release(path)
            except WorkspaceError as e:
                logger.error("Rollback could not remove %s: %s", path, e)
