"""
clipsmith.staging.materialize - Load a staged artifact into memory.
"""

from __future__ import annotations

from clipsmith.exceptions import WorkspaceError
from clipsmith.models import Chunk


def materialize(chunk: Chunk) -> Chunk:
    """Read chunk.artifact_path fully and attach it as chunk.payload.

    The artifact is left on disk; releasing it is the caller's job once the
    payload has been consumed.

    Raises:
        WorkspaceError: If the chunk has no artifact or it cannot be read
    """
    if chunk.artifact_path is None:
        raise WorkspaceError(f"Chunk {chunk.index} has no artifact to read")
    try:
        chunk.payload = chunk.artifact_path.read_bytes()
    except OSError as e:
        raise WorkspaceError(f"Cannot read chunk {chunk.index} artifact: {e}") from e
    return chunk
