"""
clipsmith.media.tool - Injected handle on the ffmpeg/ffprobe executables.

Executable locations are resolved once by the caller and passed down; the
probe and extractor never search PATH or read the environment themselves.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from collections.abc import Callable, Sequence
from typing import Any

from clipsmith.exceptions import DependencyError

logger = logging.getLogger(__name__)

INSTALL_HINT = "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)"

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class MediaTool:
    """Paths to ffmpeg and ffprobe plus the single subprocess seam."""

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        runner: Runner | None = None,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self._runner = runner or subprocess.run

    @classmethod
    def from_config(cls, config: Any) -> MediaTool:
        """Resolve executables from config values, falling back to PATH.

        Raises:
            DependencyError: If either executable cannot be found
        """
        ffmpeg = _resolve("ffmpeg", config.ffmpeg_path)
        ffprobe = _resolve("ffprobe", config.ffprobe_path)
        return cls(ffmpeg_path=ffmpeg, ffprobe_path=ffprobe)

    def run(
        self,
        args: Sequence[str],
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[str]:
        """Run a command to completion, capturing text output.

        Raises:
            subprocess.TimeoutExpired: If the command exceeds ``timeout``
            OSError: If the executable cannot be started
        """
        logger.debug("Running: %s", shlex.join(args))
        return self._runner(
            list(args),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )


def _resolve(name: str, configured: str | None) -> str:
    candidate = configured or name
    found = shutil.which(candidate)
    if not found:
        raise DependencyError(name, f"{candidate} not found", INSTALL_HINT)
    return found


def tool_version(tool: MediaTool, executable: str) -> str:
    """Return the version token from ``<executable> -version``, or 'unknown'."""
    try:
        proc = tool.run([executable, "-version"], timeout=5)
    except (subprocess.TimeoutExpired, OSError):
        return "unknown"
    version_line = proc.stdout.split("\n")[0] if proc.stdout else ""
    parts = version_line.split()
    return parts[2] if len(parts) > 2 else "unknown"
