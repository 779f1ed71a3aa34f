"""Ingestion layer for decoding audio from media files."""

from avsync.ingestion.audio_extractor import (
    AudioData,
    AudioExtractor,
    ExtractionError,
    ExtractOptions,
    FFmpegAudioExtractor,
    pcm16_to_float,
)

__all__ = [
    "AudioData",
    "AudioExtractor",
    "ExtractionError",
    "ExtractOptions",
    "FFmpegAudioExtractor",
    "pcm16_to_float",
]
