"""
Tests for video synchronization through audio extraction.
"""

import asyncio
import random
from datetime import datetime, timedelta

import pytest

from avsync.alignment.sync import AudioVideoSync, SyncOptions, VideoInput, create_sync
from avsync.ingestion.audio_extractor import AudioData, ExtractionError, ExtractOptions


class FakeExtractor:
    """Serves prepared samples keyed by path and records every call."""

    def __init__(self, audio: dict[str, list[float]], fail_on: str | None = None):
        self.audio = audio
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def extract(self, path, options):
        self.calls.append(str(path))
        if str(path) == self.fail_on:
            raise ExtractionError(f"Could not decode {path}")
        return AudioData(samples=self.audio[str(path)], sample_rate=options.sample_rate)


@pytest.fixture
def extractor():
    rng = random.Random(99)
    pattern = [rng.gauss(0, 1) for _ in range(2100)]
    return FakeExtractor({
        "a.mp4": pattern[:2000],
        "b.mp4": pattern[100:2100],
        "c.mp4": [0.0] * 40 + pattern[:1960],
    })


@pytest.fixture
def videos():
    return [
        VideoInput(path="a.mp4", id="a", original_start_time=datetime(2024, 1, 15, 14, 30, 0)),
        VideoInput(path="b.mp4", id="b"),
        VideoInput(path="c.mp4", id="c"),
    ]


@pytest.fixture
def options():
    return SyncOptions(extract=ExtractOptions(sample_rate=2000))


class TestSyncVideos:
    """Tests for AudioVideoSync.sync_videos()."""

    def test_sync_three_videos(self, extractor, videos, options):
        """Test offsets measured from extracted audio."""
        sync = AudioVideoSync(extractor=extractor)

        result = asyncio.run(sync.sync_videos(videos, options))

        assert result.success
        assert result.reference_id == "a"
        assert result.sample_rate == 2000
        assert [r.offset_samples for r in result.results] == [0, 100, -40]
        assert result.results[1].offset_seconds == pytest.approx(0.05)
        assert result.results[1].corrected_start_time == (
            datetime(2024, 1, 15, 14, 30, 0) - timedelta(seconds=0.05)
        )

    def test_extracts_sequentially_in_order(self, extractor, videos, options):
        """Test that every video is extracted once, in input order."""
        asyncio.run(AudioVideoSync(extractor=extractor).sync_videos(videos, options))

        assert extractor.calls == ["a.mp4", "b.mp4", "c.mp4"]

    def test_progress_stages(self, extractor, videos, options):
        """Test extraction progress is reported before correlation."""
        calls = []
        options.on_progress = lambda stage, fraction: calls.append((stage, fraction))

        asyncio.run(AudioVideoSync(extractor=extractor).sync_videos(videos, options))

        assert [stage for stage, _ in calls] == ["extracting"] * 3 + ["correlating"] * 3
        assert calls[2][1] == pytest.approx(1.0)

    def test_extraction_fault_becomes_failed_result(self, extractor, videos, options):
        """Test that collaborator errors never escape."""
        extractor.fail_on = "b.mp4"

        result = asyncio.run(AudioVideoSync(extractor=extractor).sync_videos(videos, options))

        assert not result.success
        assert result.error == "Could not decode b.mp4"
        assert result.results == []
        assert result.reference_id == "a"
        assert extractor.calls == ["a.mp4", "b.mp4"]

    def test_unexpected_fault_becomes_failed_result(self, videos, options):
        """Test that any extractor exception is converted."""
        class BrokenExtractor:
            async def extract(self, path, options):
                raise OSError("disk unreadable")

        result = asyncio.run(
            AudioVideoSync(extractor=BrokenExtractor()).sync_videos(videos, options)
        )

        assert not result.success
        assert result.error == "disk unreadable"

    def test_too_few_videos(self, extractor, videos, options):
        """Test precondition checked before extraction."""
        result = asyncio.run(
            AudioVideoSync(extractor=extractor).sync_videos(videos[:1], options)
        )

        assert not result.success
        assert result.error
        assert result.results == []
        assert result.sample_rate == 2000
        assert extractor.calls == []

    def test_invalid_reference_index(self, extractor, videos):
        """Test reference index outside the video list."""
        options = SyncOptions(reference_index=3)

        result = asyncio.run(AudioVideoSync(extractor=extractor).sync_videos(videos, options))

        assert not result.success
        assert result.reference_id == ""
        assert result.sample_rate == 16000
        assert extractor.calls == []

    def test_low_confidence_threshold(self, extractor, videos):
        """Test that the threshold is passed through to alignment."""
        options = SyncOptions(min_confidence=0.999, extract=ExtractOptions(sample_rate=2000))

        result = asyncio.run(AudioVideoSync(extractor=extractor).sync_videos(videos, options))

        assert not result.success
        assert len(result.results) == 3


class TestCalculateOffset:
    """Tests for AudioVideoSync.calculate_offset()."""

    def test_pairwise(self, extractor):
        """Test offset between two videos."""
        sync = create_sync(extractor=extractor)

        pair = asyncio.run(sync.calculate_offset("a.mp4", "b.mp4", ExtractOptions(sample_rate=2000)))

        assert pair.offset_samples == 100
        assert pair.offset_seconds == pytest.approx(0.05)
        assert pair.confidence > 0.9

    def test_extraction_error_propagates(self, extractor):
        """Test that the pairwise helper does not swallow errors."""
        extractor.fail_on = "a.mp4"
        sync = AudioVideoSync(extractor=extractor)

        with pytest.raises(ExtractionError):
            asyncio.run(sync.calculate_offset("a.mp4", "b.mp4"))
