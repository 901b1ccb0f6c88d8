"""
clipsmith.staging - Temporary workspace and chunked audio staging.

Splits a probed duration into bounded windows, extracts each window into
the workspace, and loads the artifacts into memory for hand-off. A failed
run leaves no artifacts behind.
"""

from __future__ import annotations
