"""
clipsmith.validation - Dependency checks and input validation.

Validates environment, dependencies, and source files before staging.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from clipsmith.exceptions import ValidationError
from clipsmith.media.extract import CHANNELS, SAMPLE_RATE
from clipsmith.media.tool import MediaTool, tool_version
from clipsmith.models import SourceMedia

SUPPORTED_EXTENSIONS = (".mp4", ".avi", ".mov", ".mkv", ".webm", ".flv")


def validate_video_file(path: Path) -> SourceMedia:
    """Validate a video file exists and has a supported container extension.

    Args:
        path: Path to video file

    Returns:
        SourceMedia for the file

    Raises:
        ValidationError: If file doesn't exist, is not a file, or has an
            unsupported extension
    """
    if not path.exists():
        raise ValidationError(f"File does not exist: {path}")

    if not path.is_file():
        raise ValidationError(f"Not a file: {path}")

    ext = path.suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise ValidationError(
            f"Unsupported file format: {ext or '(none)'} "
            f"(supported: {', '.join(SUPPORTED_EXTENSIONS)})"
        )

    return SourceMedia(path=path)


def check_ffmpeg(config: Any) -> dict[str, str]:
    """Check if FFmpeg and FFprobe are installed and get versions.

    Args:
        config: Config object with ffmpeg_path/ffprobe_path settings

    Returns:
        Dict with resolved paths and versions of both executables

    Raises:
        DependencyError: If FFmpeg or FFprobe not found
    """
    tool = MediaTool.from_config(config)
    return {
        "ffmpeg_path": tool.ffmpeg_path,
        "ffmpeg_version": tool_version(tool, tool.ffmpeg_path),
        "ffprobe_path": tool.ffprobe_path,
        "ffprobe_version": tool_version(tool, tool.ffprobe_path),
    }


def estimate_audio_size(duration_seconds: float, sample_rate: int = SAMPLE_RATE) -> int:
    """Estimate staged WAV size in MB for given duration.

    Args:
        duration_seconds: Audio duration in seconds
        sample_rate: Sample rate (default 16000 for 16kHz mono)

    Returns:
        Estimated size in megabytes
    """
    bytes_per_sample = 2
    bytes_per_second = sample_rate * CHANNELS * bytes_per_sample
    total_bytes = int(duration_seconds * bytes_per_second)
    return total_bytes // (1024 * 1024)


def check_disk_space(path: Path, required_mb: int) -> dict[str, Any]:
    """Check if there's enough disk space at the given path.

    The nearest existing ancestor is checked, so a workspace that has not
    been created yet can still be measured.

    Args:
        path: Path to check
        required_mb: Required space in megabytes

    Returns:
        Dict with 'available_mb', 'required_mb', 'sufficient'

    Raises:
        ValidationError: If no ancestor of the path exists or it cannot be read
    """
    check_path = path
    while not check_path.exists():
        if check_path == check_path.parent:
            raise ValidationError(f"Cannot check disk space: {path} has no existing parent")
        check_path = check_path.parent

    try:
        stat = shutil.disk_usage(check_path)
    except OSError as e:
        raise ValidationError(f"Cannot check disk space: {e}") from e

    available_mb = stat.free // (1024 * 1024)
    return {
        "available_mb": available_mb,
        "required_mb": required_mb,
        "sufficient": available_mb >= required_mb,
    }
