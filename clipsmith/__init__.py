"""
Clipsmith - AI-assisted short clip editor for long-form video.

Stages a source video for analysis through a chunked pipeline:
media probe → audio chunk scheduling → ffmpeg segment extraction →
in-memory staging for a downstream transcription consumer.
"""

__version__ = "0.1.0"
