"""
Fakes for the ffmpeg/ffprobe subprocess seam.
"""

from __future__ import annotations

import json
import subprocess
import threading
from pathlib import Path
from typing import Any


def probe_json(
    duration: float | None = 75.0,
    has_audio: bool = True,
    has_video: bool = True,
) -> str:
    """Build ffprobe -show_format -show_streams JSON output."""
    streams: list[dict[str, Any]] = []
    if has_video:
        streams.append(
            {
                "index": 0,
                "codec_type": "video",
                "codec_name": "h264",
                "width": 1920,
                "height": 1080,
                "r_frame_rate": "30000/1001",
            }
        )
    if has_audio:
        streams.append(
            {
                "index": 1,
                "codec_type": "audio",
                "codec_name": "aac",
                "sample_rate": "48000",
                "channels": 2,
            }
        )
    format_info: dict[str, Any] = {"filename": "video.mp4", "format_name": "mov,mp4,m4a,3gp"}
    if duration is not None:
        format_info["duration"] = f"{duration:.6f}"
    return json.dumps({"streams": streams, "format": format_info})


def chunk_bytes(offset: float) -> bytes:
    """Deterministic artifact content for a window starting at offset."""
    return b"RIFF" + f"chunk@{offset:.3f}".encode()


class FakeFFmpeg:
    """Stands in for subprocess.run behind MediaTool.

    ffprobe calls answer with canned JSON; ffmpeg calls write chunk_bytes()
    to the output path (the last argument) unless the window offset is
    listed in fail_offsets.
    """

    def __init__(
        self,
        duration: float | None = 75.0,
        has_audio: bool = True,
        fail_offsets: tuple[float, ...] = (),
        probe_returncode: int = 0,
        write_on_failure: bool = True,
        delays: dict[float, float] | None = None,
    ) -> None:
        self.duration = duration
        self.has_audio = has_audio
        self.fail_offsets = fail_offsets
        self.probe_returncode = probe_returncode
        self.write_on_failure = write_on_failure
        self.delays = delays or {}
        self.calls: list[list[str]] = []
        self._lock = threading.Lock()

    def __call__(self, cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
        with self._lock:
            self.calls.append(cmd)

        if Path(cmd[0]).name == "ffprobe":
            return subprocess.CompletedProcess(
                cmd,
                self.probe_returncode,
                stdout=probe_json(self.duration, self.has_audio),
                stderr="" if self.probe_returncode == 0 else "Invalid data found",
            )

        offset = float(cmd[cmd.index("-ss") + 1]) if "-ss" in cmd else 0.0
        if offset in self.delays:
            threading.Event().wait(self.delays[offset])

        output = Path(cmd[-1])
        failing = any(abs(offset - o) < 1e-6 for o in self.fail_offsets)
        if failing:
            if self.write_on_failure:
                output.write_bytes(b"RIFF-truncated")
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Conversion failed!")

        output.write_bytes(chunk_bytes(offset))
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    @property
    def ffmpeg_calls(self) -> list[list[str]]:
        return [c for c in self.calls if Path(c[0]).name == "ffmpeg"]
