"""Tests for clipsmith.media.probe module."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any

import pytest

from clipsmith.exceptions import ProbeError
from clipsmith.media.probe import parse_probe_output, probe_media
from clipsmith.media.tool import MediaTool

from .fakes import FakeFFmpeg, probe_json


class TestParseProbeOutput:
    def test_duration_and_streams(self) -> None:
        info = parse_probe_output(probe_json(duration=754.32))

        assert info.duration_seconds == pytest.approx(754.32)
        assert info.has_audio is True
        assert info.has_video is True
        assert info.audio_codec == "aac"
        assert info.sample_rate == 48000
        assert info.channels == 2
        assert info.resolution == "1920x1080"
        assert info.frame_rate == 29.97

    def test_audio_only(self) -> None:
        data = json.loads(probe_json(duration=10.0, has_video=False))
        info = parse_probe_output(json.dumps(data))
        assert info.has_audio is True
        assert info.has_video is False
        assert info.resolution is None

    def test_no_audio_stream(self) -> None:
        info = parse_probe_output(probe_json(duration=10.0, has_audio=False))
        assert info.has_audio is False
        assert info.sample_rate is None

    def test_falls_back_to_stream_duration(self) -> None:
        data = json.loads(probe_json(duration=None))
        data["streams"][0]["duration"] = "12.5"
        data["streams"][1]["duration"] = "12.75"

        info = parse_probe_output(json.dumps(data))

        assert info.duration_seconds == pytest.approx(12.75)

    def test_missing_duration_raises(self) -> None:
        with pytest.raises(ProbeError, match="no duration"):
            parse_probe_output(probe_json(duration=None))

    def test_na_duration_raises(self) -> None:
        data = json.loads(probe_json(duration=None))
        data["format"]["duration"] = "N/A"
        with pytest.raises(ProbeError):
            parse_probe_output(json.dumps(data))

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(ProbeError):
            parse_probe_output("not json")

    def test_non_object_raises(self) -> None:
        with pytest.raises(ProbeError):
            parse_probe_output("[]")

    def test_null_format_without_streams_raises(self) -> None:
        with pytest.raises(ProbeError):
            parse_probe_output(json.dumps({"format": None}))

    def test_null_format_uses_stream_duration(self) -> None:
        data = json.loads(probe_json(duration=None))
        data["format"] = None
        data["streams"][1]["duration"] = "8.0"
        assert parse_probe_output(json.dumps(data)).duration_seconds == 8.0

    @pytest.mark.parametrize("payload", [{"format": "mp4"}, {"format": {}, "streams": "x"}])
    def test_malformed_sections_raise(self, payload: dict) -> None:
        with pytest.raises(ProbeError):
            parse_probe_output(json.dumps(payload))

    def test_non_object_streams_are_ignored(self) -> None:
        data = json.loads(probe_json(duration=10.0))
        data["streams"].append("garbage")
        assert parse_probe_output(json.dumps(data)).has_audio is True

    def test_unknown_sample_rate(self) -> None:
        data = json.loads(probe_json(duration=10.0))
        data["streams"][1]["sample_rate"] = "N/A"
        data["streams"][1]["channels"] = "N/A"
        info = parse_probe_output(json.dumps(data))
        assert info.sample_rate is None
        assert info.channels is None
        assert info.has_audio is True

    @pytest.mark.parametrize("rate", ["N/A", "0/0", "30/N/A", "abc", ""])
    def test_unparseable_frame_rate(self, rate: str) -> None:
        data = json.loads(probe_json(duration=10.0))
        data["streams"][0]["r_frame_rate"] = rate
        assert parse_probe_output(json.dumps(data)).frame_rate is None

    def test_non_string_codec_raises(self) -> None:
        data = json.loads(probe_json(duration=10.0))
        data["streams"][1]["codec_name"] = {"name": "aac"}
        with pytest.raises(ProbeError):
            parse_probe_output(json.dumps(data))


class TestProbeMedia:
    def test_invokes_ffprobe_in_json_mode(self, sample_video: Path) -> None:
        fake = FakeFFmpeg(duration=75.0)
        tool = MediaTool(ffprobe_path="/opt/ffmpeg/bin/ffprobe", runner=fake)

        info = probe_media(sample_video, tool)

        cmd = fake.calls[0]
        assert cmd[0] == "/opt/ffmpeg/bin/ffprobe"
        assert "-show_format" in cmd
        assert "-show_streams" in cmd
        assert cmd[-1] == str(sample_video)
        assert info.duration_seconds == pytest.approx(75.0)

    def test_nonzero_exit_raises(self, sample_video: Path) -> None:
        tool = MediaTool(runner=FakeFFmpeg(probe_returncode=1))
        with pytest.raises(ProbeError, match="Invalid data"):
            probe_media(sample_video, tool)

    def test_timeout_raises(self, sample_video: Path) -> None:
        def runner(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        with pytest.raises(ProbeError, match="timed out"):
            probe_media(sample_video, MediaTool(runner=runner), timeout=1.0)

    def test_missing_executable_raises(self, sample_video: Path) -> None:
        def runner(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]:
            raise FileNotFoundError(cmd[0])

        with pytest.raises(ProbeError):
            probe_media(sample_video, MediaTool(runner=runner))

    def test_does_not_touch_source(self, sample_video: Path, fake_tool: MediaTool) -> None:
        before = (sample_video.read_bytes(), sample_video.stat().st_mtime_ns)
        probe_media(sample_video, fake_tool)
        assert (sample_video.read_bytes(), sample_video.stat().st_mtime_ns) == before

