"""
clipsmith.staging.chunks - Partition a duration into chunk windows.
"""

from __future__ import annotations

import math

from clipsmith.models import Chunk

# Windows shorter than this at the tail are float noise, not content.
EPSILON = 1e-9


def chunk_count(total_duration: float, chunk_duration: float) -> int:
    """Number of windows needed to cover total_duration."""
    if chunk_duration <= 0:
        raise ValueError(f"chunk_duration must be positive, got {chunk_duration}")
    if total_duration <= 0:
        return 0
    count = math.ceil(total_duration / chunk_duration)
    # ceil() of e.g. 90.00000000001 / 30 would add an empty tail window
    if count > 1 and (count - 1) * chunk_duration >= total_duration - EPSILON:
        count -= 1
    return count


def plan_chunks(total_duration: float, chunk_duration: float) -> list[Chunk]:
    """Build the ordered, gap-free list of chunks tiling [0, total_duration).

    Every chunk but the last lasts exactly chunk_duration; the last is
    truncated to what remains and is never empty. A non-positive
    total_duration yields an empty list.

    Raises:
        ValueError: If chunk_duration is not positive
    """
    chunks = []
    count = chunk_count(total_duration, chunk_duration)
    for index in range(count):
        start = index * chunk_duration
        duration = min(chunk_duration, total_duration - start)
        chunks.append(Chunk(index=index, start_offset=start, duration=duration))
    return chunks
