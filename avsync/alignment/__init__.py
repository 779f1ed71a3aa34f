"""
Alignment of audio streams on a common timeline.

- Multi-stream alignment of decoded samples
- Video synchronization through audio extraction
"""

from avsync.alignment.models import (
    StreamInput,
    StreamAlignment,
    RunResult,
    PairwiseOffset,
)
from avsync.alignment.aligner import MultiStreamAligner
from avsync.alignment.sync import (
    AudioVideoSync,
    VideoInput,
    SyncOptions,
    create_sync,
    sync_videos,
)

__all__ = [
    "StreamInput",
    "StreamAlignment",
    "RunResult",
    "PairwiseOffset",
    "MultiStreamAligner",
    "AudioVideoSync",
    "VideoInput",
    "SyncOptions",
    "create_sync",
    "sync_videos",
]
