"""
clipsmith.media - FFmpeg/FFprobe wrappers.

Probes source files for duration and stream presence, and extracts
normalized 16kHz mono PCM WAV audio for whole files or time windows.
"""

from __future__ import annotations
