"""Tests for clipsmith.validation module."""

from pathlib import Path
from unittest.mock import patch

import pytest

from clipsmith.config import ClipsmithConfig
from clipsmith.exceptions import DependencyError, ValidationError
from clipsmith.validation import (
    SUPPORTED_EXTENSIONS,
    check_disk_space,
    check_ffmpeg,
    estimate_audio_size,
    validate_video_file,
)


class TestEstimateAudioSize:
    def test_short_audio(self):
        assert estimate_audio_size(60) < 2

    def test_one_hour_audio(self):
        size = estimate_audio_size(3600)
        assert size > 100
        assert size < 150

    def test_custom_sample_rate(self):
        assert estimate_audio_size(600, sample_rate=44100) > estimate_audio_size(600)


class TestValidateVideoFile:
    def test_nonexistent_file(self, tmp_path):
        with pytest.raises(ValidationError, match="does not exist"):
            validate_video_file(tmp_path / "missing.mp4")

    def test_directory_is_rejected(self, tmp_path):
        folder = tmp_path / "clip.mp4"
        folder.mkdir()
        with pytest.raises(ValidationError, match="Not a file"):
            validate_video_file(folder)

    @pytest.mark.parametrize("ext", SUPPORTED_EXTENSIONS)
    def test_supported_extensions(self, tmp_path, ext):
        video = tmp_path / f"clip{ext}"
        video.write_bytes(b"data")
        assert validate_video_file(video).path == video

    def test_extension_is_case_insensitive(self, tmp_path):
        video = tmp_path / "CLIP.MOV"
        video.write_bytes(b"data")
        assert validate_video_file(video).name == "CLIP.MOV"

    @pytest.mark.parametrize("name", ["notes.txt", "audio.wav", "noextension"])
    def test_unsupported_format(self, tmp_path, name):
        path = tmp_path / name
        path.write_bytes(b"data")
        with pytest.raises(ValidationError, match="Unsupported file format"):
            validate_video_file(path)


class TestCheckFfmpeg:
    def test_reports_paths_and_versions(self):
        with (
            patch("clipsmith.media.tool.shutil.which", side_effect=lambda n: f"/usr/bin/{n}"),
            patch("clipsmith.validation.tool_version", return_value="6.1"),
        ):
            result = check_ffmpeg(ClipsmithConfig())

        assert result == {
            "ffmpeg_path": "/usr/bin/ffmpeg",
            "ffmpeg_version": "6.1",
            "ffprobe_path": "/usr/bin/ffprobe",
            "ffprobe_version": "6.1",
        }

    def test_missing_ffmpeg(self):
        with patch("clipsmith.media.tool.shutil.which", return_value=None):
            with pytest.raises(DependencyError) as exc_info:
                check_ffmpeg(ClipsmithConfig())
        assert exc_info.value.dependency == "ffmpeg"
        assert exc_info.value.install_hint

    def test_configured_path_is_used(self):
        seen = []

        def which(name):
            seen.append(name)
            return name

        with (
            patch("clipsmith.media.tool.shutil.which", side_effect=which),
            patch("clipsmith.validation.tool_version", return_value="7.0"),
        ):
            result = check_ffmpeg(ClipsmithConfig(ffmpeg_path="/opt/ff/ffmpeg"))

        assert result["ffmpeg_path"] == "/opt/ff/ffmpeg"
        assert seen == ["/opt/ff/ffmpeg", "ffprobe"]


class TestCheckDiskSpace:
    def test_existing_directory(self, tmp_path):
        result = check_disk_space(tmp_path, 0)
        assert result["sufficient"] is True
        assert result["required_mb"] == 0

    def test_not_yet_created_directory(self, tmp_path):
        result = check_disk_space(tmp_path / "a" / "b" / "run", 1)
        assert result["available_mb"] >= 0

    def test_insufficient(self, tmp_path):
        result = check_disk_space(tmp_path, 10**12)
        assert result["sufficient"] is False
