"""
clipsmith.staging.workspace - Temporary artifact directory.

A Workspace owns one directory. Every artifact path the pipeline writes is
handed out by allocate(), so all pipeline files live directly under it.
The directory is created lazily and removed only by release_all().
"""

from __future__ import annotations

import itertools
import logging
import os
import shutil
import threading
import time
import uuid
from pathlib import Path

from clipsmith.exceptions import WorkspaceError

logger = logging.getLogger(__name__)

_counter = itertools.count()
_counter_lock = threading.Lock()


def _next_token() -> str:
    with _counter_lock:
        seq = next(_counter)
    return f"{time.time_ns()}_{seq:06d}"


class Workspace:
    """Directory for ephemeral pipeline artifacts."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @classmethod
    def for_run(cls, base_dir: Path) -> Workspace:
        """Return a workspace in a fresh run-specific subdirectory of base_dir."""
        return cls(Path(base_dir) / f"run-{uuid.uuid4().hex[:12]}")

    def __repr__(self) -> str:
        return f"Workspace({str(self.path)!r})"

    def exists(self) -> bool:
        return self.path.is_dir()

    def ensure(self) -> Path:
        """Create the directory if needed and check it is writable.

        Raises:
            WorkspaceError: If the directory cannot be created or written to
        """
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WorkspaceError(f"Cannot create workspace {self.path}: {e}") from e
        if not os.access(self.path, os.W_OK | os.X_OK):
            raise WorkspaceError(f"Workspace is not writable: {self.path}")
        return self.path

    def allocate(self, prefix: str, extension: str) -> Path:
        """Return a fresh artifact path; the file itself is not created.

        Names combine the prefix, a nanosecond timestamp and a process-wide
        counter, so repeated calls within one clock tick never collide.
        """
        extension = extension.lstrip(".")
        name = f"{prefix}_{_next_token()}"
        if extension:
            name = f"{name}.{extension}"
        return self.path / name

    def owns(self, path: Path) -> bool:
        return Path(path).parent.resolve() == self.path.resolve()

    def release(self, path: Path) -> bool:
        """Delete one artifact. Missing files are not an error.

        Returns:
            True if a file was removed

        Raises:
            WorkspaceError: If the path is outside the workspace or cannot be removed
        """
        path = Path(path)
        if not self.owns(path):
            raise WorkspaceError(f"Refusing to release {path}: not in workspace {self.path}")
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise WorkspaceError(f"Cannot remove {path}: {e}") from e
        return True

    def release_all(self) -> None:
        """Remove the whole workspace directory tree."""
        if not self.path.exists():
            return
        try:
            shutil.rmtree(self.path)
        except OSError as e:
            raise WorkspaceError(f"Cannot remove workspace {self.path}: {e}") from e
        logger.debug("Removed workspace %s", self.path)

    def artifacts(self) -> list[Path]:
        """List files currently in the workspace."""
        if not self.path.is_dir():
            return []
        return sorted(p for p in self.path.iterdir() if p.is_file())
