"""
clipsmith.exceptions - Custom exception classes.

All Clipsmith-specific exceptions inherit from ClipsmithError.
"""

from __future__ import annotations


class ClipsmithError(Exception):
    """Base exception for all Clipsmith errors."""

    pass


class ConfigError(ClipsmithError):
    """Configuration loading, lookup or validation error."""

    pass


class ValidationError(ClipsmithError):
    """Input validation error (missing file, unsupported format)."""

    pass


class ProbeError(ClipsmithError):
    """Media probe failed; there is no duration to schedule against."""

    pass


class ExtractionError(ClipsmithError):
    """FFmpeg failed to produce an artifact for a time window.

    ``duration`` is None for whole-file extraction.
    """

    def __init__(self, offset: float, duration: float | None, cause: str):
        self.offset = offset
        self.duration = duration
        self.cause = cause
        if duration is None:
            window = "whole file"
        else:
            window = f"offset {offset:g}s, duration {duration:g}s"
        super().__init__(f"Extraction failed ({window}): {cause}")


class WorkspaceError(ClipsmithError):
    """Workspace creation, release or artifact read error."""

    pass


class PipelineCancelled(ClipsmithError):
    """Staging run aborted on request; all artifacts were rolled back."""

    pass


class DependencyError(ClipsmithError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")
