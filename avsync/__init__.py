"""
avsync

Multi-camera video synchronization using audio cross-correlation.
Estimates the time offset between recordings of the same acoustic event
without relying on device clocks or file metadata.
"""

from avsync.alignment.aligner import MultiStreamAligner
from avsync.alignment.models import StreamInput, StreamAlignment, RunResult, PairwiseOffset
from avsync.alignment.sync import AudioVideoSync, VideoInput, SyncOptions, create_sync, sync_videos
from avsync.dsp.correlation import cross_correlate, find_peak_offset, calculate_confidence
from avsync.dsp.preprocess import preprocess
from avsync.dsp.transform import fft, ifft
from avsync.ingestion.audio_extractor import ExtractOptions, FFmpegAudioExtractor

__version__ = "0.1.0"

__all__ = [
    # Sync
    "AudioVideoSync",
    "VideoInput",
    "SyncOptions",
    "create_sync",
    "sync_videos",
    # Alignment
    "MultiStreamAligner",
    "StreamInput",
    "StreamAlignment",
    "RunResult",
    "PairwiseOffset",
    # Signal processing
    "fft",
    "ifft",
    "cross_correlate",
    "find_peak_offset",
    "calculate_confidence",
    "preprocess",
    # Ingestion
    "ExtractOptions",
    "FFmpegAudioExtractor",
]
