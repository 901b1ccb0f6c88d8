"""
clipsmith.config - YAML settings file, environment overrides, validation.

Settings live in ``~/.clipsmith.yaml`` under the kebab-case keys shown by
``clipsmith config list``. Environment variables named ``CLIPSMITH_<KEY>``
(upper snake case) take precedence over the file. Only this module reads the
environment; everything downstream receives a resolved ClipsmithConfig.
"""

from __future__ import annotations

import os
import re
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from clipsmith.exceptions import ConfigError

CONFIG_FILENAME = ".clipsmith.yaml"
ENV_PREFIX = "CLIPSMITH_"

CONFIG_KEYS: dict[str, str] = {
    "api-key": "api_key",
    "whisper-model": "whisper_model",
    "default-duration": "default_duration",
    "default-quality": "default_quality",
    "temp-dir": "temp_dir",
    "chunk-duration": "chunk_duration",
    "max-workers": "max_workers",
    "extract-timeout": "extract_timeout",
    "probe-timeout": "probe_timeout",
    "ffmpeg-path": "ffmpeg_path",
    "ffprobe-path": "ffprobe_path",
}

SECRET_KEYS = {"api-key"}

_DURATION_RE = re.compile(
    r"^(?:(?P<h>\d+(?:\.\d+)?)h)?(?:(?P<m>\d+(?:\.\d+)?)m)?(?:(?P<s>\d+(?:\.\d+)?)s?)?$"
)


def parse_duration_string(value: str) -> float:
    """Parse a human duration such as ``45``, ``45s``, ``1m30s`` or ``1h``.

    Returns:
        Duration in seconds

    Raises:
        ValueError: If the string is empty, malformed or not positive
    """
    text = value.strip().lower()
    match = _DURATION_RE.match(text)
    if not text or not match or not any(match.groupdict().values()):
        raise ValueError(f"Invalid duration: {value!r} (examples: 45s, 1m, 1m30s)")

    parts = match.groupdict()
    seconds = (
        float(parts["h"] or 0) * 3600 + float(parts["m"] or 0) * 60 + float(parts["s"] or 0)
    )
    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds


class ClipsmithConfig(BaseModel):
    """Resolved settings for a Clipsmith run."""

    api_key: str | None = None
    whisper_model: str = "base"
    default_duration: str = "30s"
    default_quality: str = "medium"
    temp_dir: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()) / "clipsmith")

    chunk_duration: float = Field(default=30.0, gt=0.0)
    max_workers: int = Field(default=1, ge=1)
    extract_timeout: float = Field(default=600.0, gt=0.0)
    probe_timeout: float = Field(default=30.0, gt=0.0)

    ffmpeg_path: str | None = None
    ffprobe_path: str | None = None

    @field_validator("whisper_model")
    @classmethod
    def validate_whisper_model(cls, v: str) -> str:
        valid = {"tiny", "base", "small", "medium", "large"}
        if v not in valid:
            raise ValueError(f"whisper_model must be one of: {sorted(valid)}")
        return v

    @field_validator("default_quality")
    @classmethod
    def validate_quality(cls, v: str) -> str:
        valid = {"low", "medium", "high"}
        if v not in valid:
            raise ValueError(f"default_quality must be one of: {sorted(valid)}")
        return v

    @field_validator("default_duration")
    @classmethod
    def validate_default_duration(cls, v: str) -> str:
        parse_duration_string(v)
        return v

    @field_validator("chunk_duration", mode="before")
    @classmethod
    def coerce_chunk_duration(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_duration_string(v)
        return v

    @field_validator("ffmpeg_path", "ffprobe_path", "api_key", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


def default_config_path() -> Path:
    """Return the settings file location in the user's home directory."""
    return Path.home() / CONFIG_FILENAME


def validate_config_key(key: str) -> str:
    """Return the model field name for a user-facing key."""
    if key not in CONFIG_KEYS:
        raise ConfigError(
            f"Invalid configuration key: {key} (valid keys: {', '.join(CONFIG_KEYS)})"
        )
    return CONFIG_KEYS[key]


def mask_secret(value: str) -> str:
    """Hide all but the first and last four characters of a secret."""
    if len(value) > 8:
        return value[:4] + "..." + value[-4:]
    return value


def read_config_file(path: Path) -> dict[str, Any]:
    """Read the raw key/value mapping from a settings file."""
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def write_config_file(data: dict[str, Any], path: Path) -> None:
    """Write the raw key/value mapping to a settings file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def _to_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    fields = {}
    for key, value in raw.items():
        fields[validate_config_key(key)] = value
    return fields


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    overrides = {}
    for field in CONFIG_KEYS.values():
        name = ENV_PREFIX + field.upper()
        if name in env:
            overrides[field] = env[name]
    return overrides


def build_config(fields: Mapping[str, Any]) -> ClipsmithConfig:
    """Validate a field mapping, converting pydantic errors to ConfigError."""
    try:
        return ClipsmithConfig(**fields)
    except PydanticValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ClipsmithConfig:
    """Load settings from the YAML file and apply environment overrides.

    Args:
        path: Settings file (default: ~/.clipsmith.yaml); a missing file is fine
        env: Environment mapping (default: os.environ)

    Returns:
        Validated ClipsmithConfig

    Raises:
        ConfigError: If the file is unreadable or a value fails validation
    """
    config_path = path or default_config_path()
    fields = _to_fields(read_config_file(config_path))
    fields.update(_env_overrides(os.environ if env is None else env))
    return build_config(fields)


def set_config_value(key: str, value: str, path: Path | None = None) -> Path:
    """Validate and persist a single setting. Returns the file written."""
    validate_config_key(key)
    config_path = path or default_config_path()

    raw = read_config_file(config_path)
    raw[key] = value
    build_config(_to_fields(raw))

    write_config_file(raw, config_path)
    return config_path


def get_config_value(
    key: str,
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> str | None:
    """Return the effective value of a setting as a string, or None if unset."""
    field = validate_config_key(key)
    value = getattr(load_config(path, env), field)
    return None if value is None else str(value)


def list_config(
    path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> dict[str, str | None]:
    """Return every user-facing key with its effective value."""
    config = load_config(path, env)
    settings = {}
    for key, field in CONFIG_KEYS.items():
        value = getattr(config, field)
        settings[key] = None if value is None else str(value)
    return settings


def reset_config(path: Path | None = None) -> bool:
    """Delete the settings file. Returns True if a file was removed."""
    config_path = path or default_config_path()
    if not config_path.exists():
        return False
    try:
        config_path.unlink()
    except OSError as e:
        raise ConfigError(f"Failed to remove config file: {e}") from e
    return True
