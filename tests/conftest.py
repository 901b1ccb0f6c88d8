"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from clipsmith.config import CONFIG_KEYS, ENV_PREFIX, ClipsmithConfig
from clipsmith.media.tool import MediaTool
from clipsmith.models import SourceMedia
from clipsmith.staging.workspace import Workspace

from .fakes import FakeFFmpeg


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CLIPSMITH_* variables from the developer's shell out of tests."""
    for field in CONFIG_KEYS.values():
        monkeypatch.delenv(ENV_PREFIX + field.upper(), raising=False)


@pytest.fixture
def fake_ffmpeg() -> FakeFFmpeg:
    return FakeFFmpeg()


@pytest.fixture
def fake_tool(fake_ffmpeg: FakeFFmpeg) -> MediaTool:
    return MediaTool(ffmpeg_path="ffmpeg", ffprobe_path="ffprobe", runner=fake_ffmpeg)


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    return Workspace(tmp_path / "workspace")


@pytest.fixture
def sample_video(tmp_path: Path) -> Path:
    video = tmp_path / "interview.mp4"
    video.write_bytes(b"fake video content")
    return video


@pytest.fixture
def source(sample_video: Path) -> SourceMedia:
    return SourceMedia(path=sample_video)


@pytest.fixture
def config(tmp_path: Path) -> ClipsmithConfig:
    return ClipsmithConfig(temp_dir=tmp_path / "temp", chunk_duration=30.0)
