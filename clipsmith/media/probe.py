"""
clipsmith.media.probe - FFprobe metadata queries.

Reads total duration and stream presence from a source file. A probe failure
is fatal for a staging run: without a duration there is nothing to schedule.
"""

from __future__ import annotations

import json
import logging
import math
import subprocess
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from clipsmith.exceptions import ProbeError
from clipsmith.media.tool import MediaTool
from clipsmith.models import MediaInfo

logger = logging.getLogger(__name__)


def probe_media(source_path: Path, tool: MediaTool, timeout: float = 30.0) -> MediaInfo:
    """Probe a media file for duration and stream metadata.

    Args:
        source_path: Path to source video file
        tool: Resolved ffmpeg/ffprobe executables
        timeout: Seconds before ffprobe is killed

    Returns:
        MediaInfo with duration in seconds and has_audio/has_video flags

    Raises:
        ProbeError: If ffprobe cannot run, fails, or returns no usable duration
    """
    cmd = [
        tool.ffprobe_path,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(source_path),
    ]
    try:
        proc = tool.run(cmd, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise ProbeError(f"ffprobe timed out after {timeout:g}s for {source_path}") from e
    except OSError as e:
        raise ProbeError(f"Cannot run ffprobe: {e}") from e

    if proc.returncode != 0:
        stderr = (proc.stderr or "").strip()
        raise ProbeError(f"ffprobe failed for {source_path}: {stderr}")

    info = parse_probe_output(proc.stdout)
    logger.debug(
        "Probed %s: %.3fs audio=%s video=%s",
        source_path,
        info.duration_seconds,
        info.has_audio,
        info.has_video,
    )
    return info


def parse_probe_output(output: str) -> MediaInfo:
    """Parse ffprobe JSON (``-show_format -show_streams``) into MediaInfo.

    Duration comes from the container; if it is absent the longest stream
    duration is used.

    Raises:
        ProbeError: If the output is not a JSON object of the expected shape or
            carries no parseable duration
    """
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise ProbeError(f"Unparseable ffprobe output: {e}") from e
    if not isinstance(data, dict):
        raise ProbeError("Unexpected ffprobe output: not a JSON object")

    format_info = data.get("format") or {}
    streams = data.get("streams") or []
    if not isinstance(format_info, dict) or not isinstance(streams, list):
        raise ProbeError("Unexpected ffprobe output: malformed format or streams")
    streams = [s for s in streams if isinstance(s, dict)]

    video_stream = None
    audio_stream = None
    for stream in streams:
        if stream.get("codec_type") == "video" and video_stream is None:
            video_stream = stream
        elif stream.get("codec_type") == "audio" and audio_stream is None:
            audio_stream = stream

    duration = _to_float(format_info.get("duration"))
    if duration is None:
        stream_durations = [_to_float(s.get("duration")) for s in streams]
        known = [d for d in stream_durations if d is not None]
        duration = max(known) if known else None
    if duration is None:
        raise ProbeError("ffprobe reported no duration")

    resolution = None
    frame_rate = None
    if video_stream:
        width = video_stream.get("width")
        height = video_stream.get("height")
        resolution = f"{width}x{height}" if width and height else None
        frame_rate = _parse_frame_rate(video_stream.get("r_frame_rate"))

    sample_rate = None
    channels = None
    if audio_stream:
        sample_rate = _to_int(audio_stream.get("sample_rate"))
        channels = _to_int(audio_stream.get("channels"))

    try:
        return MediaInfo(
            duration_seconds=max(duration, 0.0),
            has_audio=audio_stream is not None,
            has_video=video_stream is not None,
            format_name=format_info.get("format_name"),
            audio_codec=audio_stream.get("codec_name") if audio_stream else None,
            sample_rate=sample_rate,
            channels=channels,
            video_codec=video_stream.get("codec_name") if video_stream else None,
            resolution=resolution,
            frame_rate=frame_rate,
        )
    except PydanticValidationError as e:
        raise ProbeError(f"Unexpected ffprobe output: {e}") from e


def _to_float(value: Any) -> float | None:
    if value in (None, "", "N/A"):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _to_int(value: Any) -> int | None:
    number = _to_float(value)
    return int(number) if number is not None else None


def _parse_frame_rate(value: Any) -> float | None:
    if not isinstance(value, str) or not value:
        return None
    num, _, den = value.partition("/")
    rate = _to_float(num)
    if den:
        divisor = _to_float(den)
        if rate is None or not divisor or divisor <= 0:
            return None
        rate /= divisor
    return round(rate, 3) if rate is not None else None
