"""
clipsmith.media.extract - FFmpeg audio extraction.

Produces 16kHz mono 16-bit PCM WAV artifacts (the format Whisper-style
transcription services expect), either for a whole file or for a single
[start, start + duration) window. Output is written to a hidden sibling
file and renamed into place, so a failed or killed run never leaves a
truncated artifact under the final name.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from clipsmith.exceptions import ExtractionError
from clipsmith.media.tool import MediaTool

logger = logging.getLogger(__name__)

SAMPLE_RATE = 16000
CHANNELS = 1
AUDIO_CODEC = "pcm_s16le"

AUDIO_OUTPUT_ARGS = [
    "-vn",
    "-acodec",
    AUDIO_CODEC,
    "-ar",
    str(SAMPLE_RATE),
    "-ac",
    str(CHANNELS),
    "-f",
    "wav",
]


def partial_path(dest_path: Path) -> Path:
    """Return the temporary sibling ffmpeg writes to before the rename."""
    return dest_path.with_name(f".{dest_path.stem}.part{dest_path.suffix}")


def extract_audio_segment(
    source_path: Path,
    dest_path: Path,
    start_offset: float,
    duration: float,
    tool: MediaTool,
    timeout: float | None = None,
) -> Path:
    """Extract one time window of the source's audio as normalized WAV.

    Args:
        source_path: Path to source video file
        dest_path: Final artifact path (overwritten if present)
        start_offset: Window start in seconds
        duration: Window length in seconds
        tool: Resolved ffmpeg/ffprobe executables
        timeout: Seconds before ffmpeg is killed

    Returns:
        dest_path

    Raises:
        ExtractionError: If ffmpeg fails, cannot start, or times out
    """
    input_args = ["-ss", f"{start_offset:.6f}", "-t", f"{duration:.6f}", "-i", str(source_path)]
    _run_ffmpeg(
        tool,
        input_args,
        AUDIO_OUTPUT_ARGS,
        dest_path,
        timeout,
        offset=start_offset,
        duration=duration,
    )
    return dest_path


def extract_audio(
    source_path: Path,
    dest_path: Path,
    tool: MediaTool,
    timeout: float | None = None,
) -> Path:
    """Extract the whole audio track as normalized WAV.

    Raises:
        ExtractionError: If ffmpeg fails, cannot start, or times out
    """
    _run_ffmpeg(
        tool,
        ["-i", str(source_path)],
        AUDIO_OUTPUT_ARGS,
        dest_path,
        timeout,
        offset=0.0,
        duration=None,
    )
    return dest_path


def extract_video(
    source_path: Path,
    dest_path: Path,
    tool: MediaTool,
    timeout: float | None = None,
) -> Path:
    """Copy the video stream without audio into a new container.

    The container is chosen by ffmpeg from ``dest_path``'s extension.

    Raises:
        ExtractionError: If ffmpeg fails, cannot start, or times out
    """
    _run_ffmpeg(
        tool,
        ["-i", str(source_path)],
        ["-an", "-c:v", "copy"],
        dest_path,
        timeout,
        offset=0.0,
        duration=None,
    )
    return dest_path


def _run_ffmpeg(
    tool: MediaTool,
    input_args: list[str],
    output_args: list[str],
    dest_path: Path,
    timeout: float | None,
    offset: float,
    duration: float | None,
) -> None:
    part = partial_path(dest_path)
    cmd = [tool.ffmpeg_path, "-y", "-v", "error", *input_args, *output_args, str(part)]

    try:
        proc = tool.run(cmd, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        part.unlink(missing_ok=True)
        raise ExtractionError(offset, duration, f"ffmpeg timed out after {timeout}s") from e
    except OSError as e:
        part.unlink(missing_ok=True)
        raise ExtractionError(offset, duration, f"cannot run ffmpeg: {e}") from e

    if proc.returncode != 0:
        part.unlink(missing_ok=True)
        stderr = (proc.stderr or "").strip()
        raise ExtractionError(offset, duration, f"ffmpeg exited {proc.returncode}: {stderr}")

    try:
        part.replace(dest_path)
    except OSError as e:
        part.unlink(missing_ok=True)
        raise ExtractionError(offset, duration, f"no output written: {e}") from e

    logger.debug("Extracted %s (offset=%s, duration=%s)", dest_path.name, offset, duration)


class SegmentExtractor:
    """Extraction bound to a tool and timeout, as used by the chunk scheduler."""

    def __init__(self, tool: MediaTool, timeout: float | None = None) -> None:
        self.tool = tool
        self.timeout = timeout

    def extract(
        self,
        source_path: Path,
        dest_path: Path,
        start_offset: float | None = None,
        duration: float | None = None,
    ) -> Path:
        """Extract a window when start_offset and duration are given, else the whole file."""
        if start_offset is None or duration is None:
            return extract_audio(source_path, dest_path, self.tool, self.timeout)
        return extract_audio_segment(
            source_path, dest_path, start_offset, duration, self.tool, self.timeout
        )
