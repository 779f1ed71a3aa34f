"""
Multi-camera video synchronization by audio cross-correlation.

Decodes the audio track of every video, then hands the decoded streams
to MultiStreamAligner to place them on the reference video's timeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

import structlog

from avsync.alignment.aligner import MultiStreamAligner, failed_result
from avsync.alignment.models import (
    DEFAULT_MIN_CONFIDENCE,
    PairwiseOffset,
    ProgressCallback,
    RunResult,
    StreamInput,
)
from avsync.ingestion.audio_extractor import AudioExtractor, ExtractOptions, FFmpegAudioExtractor

logger = structlog.get_logger(__name__)


@dataclass
class VideoInput:
    """A video file to be synchronized."""

    path: Path | str

    # Falls back to the video's position in the input list
    id: Optional[str] = None

    # Start time from camera metadata, if known
    original_start_time: Optional[datetime] = None


@dataclass
class SyncOptions:
    """Options for a synchronization run."""

    # Index of the video every other video is measured against
    reference_index: int = 0

    # Every non-reference video must reach this for the run to succeed
    min_confidence: float = DEFAULT_MIN_CONFIDENCE

    # Called with ("extracting" | "correlating", fraction complete)
    on_progress: Optional[ProgressCallback] = None

    extract: ExtractOptions = field(default_factory=ExtractOptions)


class AudioVideoSync:
    """
    Synchronizes videos recorded by different devices.

    Audio is extracted sequentially, one video at a time, before any
    correlation starts. Extraction faults never propagate out of
    sync_videos(); they come back as a failed RunResult.
    """

    def __init__(
        self,
        extractor: Optional[AudioExtractor] = None,
        aligner: Optional[MultiStreamAligner] = None,
    ):
        """
        Initialize synchronizer.

        Args:
            extractor: Audio decoder, defaults to FFmpegAudioExtractor
            aligner: Stream aligner, defaults to MultiStreamAligner()
        """
        self.extractor = extractor or FFmpegAudioExtractor()
        self.aligner = aligner or MultiStreamAligner()
        self.logger = structlog.get_logger(__name__)

    async def sync_videos(
        self,
        videos: Sequence[VideoInput],
        options: Optional[SyncOptions] = None,
    ) -> RunResult:
        """
        Synchronize multiple videos.

        Args:
            videos: Videos to align
            options: Run options

        Returns:
            RunResult with one entry per video, in input order
        """
        options = options or SyncOptions()
        sample_rate = options.extract.sample_rate
        reference_index = options.reference_index

        if len(videos) < 2:
            return failed_result(
                "At least 2 videos are required for synchronization",
                reference_id=_video_id(videos[0], 0) if videos else "0",
                sample_rate=sample_rate,
            )

        if not 0 <= reference_index < len(videos):
            return failed_result(
                f"Invalid reference index {reference_index} for {len(videos)} videos",
                reference_id="",
                sample_rate=sample_rate,
            )

        self.logger.info(
            "Synchronizing videos",
            num_videos=len(videos),
            reference=_video_id(videos[reference_index], reference_index),
        )

        streams = []
        for i, video in enumerate(videos):
            if options.on_progress:
                options.on_progress("extracting", (i + 1) / len(videos))

            try:
                audio = await self.extractor.extract(video.path, options.extract)
            except Exception as e:
                self.logger.exception(
                    "Audio extraction failed",
                    video=_video_id(video, i),
                    path=str(video.path),
                )
                return failed_result(
                    str(e) or "Audio extraction failed",
                    reference_id=_video_id(videos[reference_index], reference_index),
                    sample_rate=sample_rate,
                )

            streams.append(StreamInput(
                samples=audio.samples,
                sample_rate=audio.sample_rate,
                id=_video_id(video, i),
                original_start_time=video.original_start_time,
            ))

        return self.aligner.align(
            streams,
            reference_index=reference_index,
            min_confidence=options.min_confidence,
            on_progress=options.on_progress,
        )

    async def calculate_offset(
        self,
        reference: Path | str,
        target: Path | str,
        options: Optional[ExtractOptions] = None,
    ) -> PairwiseOffset:
        """
        Calculate the offset between two videos.

        Unlike sync_videos(), extraction errors propagate to the caller.
        """
        options = options or ExtractOptions()

        reference_audio = await self.extractor.extract(reference, options)
        target_audio = await self.extractor.extract(target, options)

        return self.aligner.calculate_offset(
            reference_audio.samples,
            target_audio.samples,
            reference_audio.sample_rate,
        )


def _video_id(video: VideoInput, index: int) -> str:
    return video.id if video.id else str(index)


def create_sync(extractor: Optional[AudioExtractor] = None) -> AudioVideoSync:
    """Create a synchronizer instance."""
    return AudioVideoSync(extractor=extractor)


async def sync_videos(
    videos: Sequence[VideoInput],
    options: Optional[SyncOptions] = None,
) -> RunResult:
    """One-shot synchronization with a default synchronizer."""
    return await AudioVideoSync().sync_videos(videos, options)
