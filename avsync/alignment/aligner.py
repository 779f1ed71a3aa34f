"""
Multi-stream audio alignment.

Measures every stream against one reference stream by cross-correlation
and reports per-stream offsets on the reference timeline.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional, Sequence

import structlog

from avsync.alignment.models import (
    DEFAULT_MIN_CONFIDENCE,
    DEFAULT_SAMPLE_RATE,
    PairwiseOffset,
    ProgressCallback,
    RunResult,
    StreamAlignment,
    StreamInput,
)
from avsync.dsp.correlation import calculate_confidence, cross_correlate, find_peak_offset
from avsync.dsp.preprocess import preprocess

logger = structlog.get_logger(__name__)


class MultiStreamAligner:
    """
    Aligns decoded audio streams against a reference stream.

    Steps per run:
    1. Validate configuration (stream count, reference index, sample rates)
    2. Preprocess every stream once, up front
    3. Correlate each non-reference stream with the reference
    4. Convert peak lags to seconds and corrected start times
    5. Apply the confidence threshold to the run as a whole
    """

    def __init__(self, min_confidence: float = DEFAULT_MIN_CONFIDENCE):
        """
        Initialize aligner.

        Args:
            min_confidence: Default threshold every non-reference stream
                must reach for a run to count as successful
        """
        self.min_confidence = min_confidence
        self.logger = structlog.get_logger(__name__)

    def align(
        self,
        streams: Sequence[StreamInput],
        reference_index: int = 0,
        min_confidence: Optional[float] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> RunResult:
        """
        Align streams to the reference timeline.

        Never raises for bad configuration; failures come back as a
        RunResult with success=False and a message in error.

        Args:
            streams: Decoded streams sharing one sample rate
            reference_index: Position of the reference stream
            min_confidence: Overrides the aligner's default threshold
            on_progress: Called with ("correlating", fraction) per stream

        Returns:
            RunResult with one StreamAlignment per input stream, in order
        """
        if min_confidence is None:
            min_confidence = self.min_confidence

        failure = self._validate(streams, reference_index)
        if failure is not None:
            return failure

        reference = streams[reference_index]
        reference_id = stream_id(reference, reference_index)
        sample_rate = reference.sample_rate

        self.logger.info(
            "Aligning streams",
            num_streams=len(streams),
            reference=reference_id,
            sample_rate=sample_rate,
        )

        processed = [preprocess(s.samples) for s in streams]
        reference_audio = processed[reference_index]

        results = []
        weak = []
        for i, stream in enumerate(streams):
            if on_progress:
                on_progress("correlating", (i + 1) / len(streams))

            current_id = stream_id(stream, i)

            if i == reference_index:
                results.append(StreamAlignment(
                    id=current_id,
                    offset_seconds=0.0,
                    offset_samples=0,
                    confidence=1.0,
                    corrected_start_time=stream.original_start_time,
                ))
                continue

            pair = self._correlate(reference_audio, processed[i], sample_rate)

            corrected_start_time = None
            if reference.original_start_time is not None:
                corrected_start_time = (
                    reference.original_start_time - timedelta(seconds=pair.offset_seconds)
                )

            self.logger.debug(
                "Stream aligned",
                stream=current_id,
                offset_samples=pair.offset_samples,
                confidence=round(pair.confidence, 4),
            )

            results.append(StreamAlignment(
                id=current_id,
                offset_seconds=pair.offset_seconds,
                offset_samples=pair.offset_samples,
                confidence=pair.confidence,
                corrected_start_time=corrected_start_time,
            ))

            if pair.confidence < min_confidence:
                weak.append(current_id)

        run = RunResult(
            reference_id=reference_id,
            results=results,
            sample_rate=sample_rate,
        )

        if weak:
            self.logger.warning(
                "Low alignment confidence",
                streams=weak,
                min_confidence=min_confidence,
            )
            run.success = False
            run.error = (
                f"Confidence below {min_confidence:.2f} for stream(s): {', '.join(weak)}"
            )

        return run

    def calculate_offset(
        self,
        reference: Sequence[float],
        target: Sequence[float],
        sample_rate: int,
    ) -> PairwiseOffset:
        """
        Measure the offset of a single target against a reference.

        Both sequences are preprocessed first.

        Raises:
            ValueError: If either sequence is empty or sample_rate <= 0
        """
        if len(reference) == 0 or len(target) == 0:
            raise ValueError("Cannot align an empty sample sequence")
        if sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")

        return self._correlate(preprocess(reference), preprocess(target), sample_rate)

    def _correlate(
        self,
        reference: Sequence[float],
        target: Sequence[float],
        sample_rate: int,
    ) -> PairwiseOffset:
        """Correlate two preprocessed sequences and resolve the peak."""
        correlation = cross_correlate(reference, target)
        offset_samples = find_peak_offset(correlation, len(target))
        confidence = calculate_confidence(reference, target, correlation, offset_samples)

        return PairwiseOffset(
            offset_samples=offset_samples,
            offset_seconds=offset_samples / sample_rate,
            confidence=confidence,
            correlation_length=len(correlation),
        )

    def _validate(
        self,
        streams: Sequence[StreamInput],
        reference_index: int,
    ) -> Optional[RunResult]:
        """Return a failed RunResult if the configuration is unusable."""
        if len(streams) < 2:
            return failed_result(
                "At least 2 streams are required for alignment",
                reference_id=stream_id(streams[0], 0) if streams else "0",
                sample_rate=streams[0].sample_rate if streams else DEFAULT_SAMPLE_RATE,
            )

        if not 0 <= reference_index < len(streams):
            return failed_result(
                f"Invalid reference index {reference_index} for {len(streams)} streams",
                reference_id="",
                sample_rate=streams[0].sample_rate,
            )

        reference = streams[reference_index]
        reference_id = stream_id(reference, reference_index)

        for i, stream in enumerate(streams):
            if len(stream.samples) == 0:
                return failed_result(
                    f"Stream '{stream_id(stream, i)}' has no samples",
                    reference_id=reference_id,
                    sample_rate=reference.sample_rate,
                )
            if stream.sample_rate != reference.sample_rate:
                return failed_result(
                    f"Stream '{stream_id(stream, i)}' has sample rate {stream.sample_rate}, "
                    f"expected {reference.sample_rate}",
                    reference_id=reference_id,
                    sample_rate=reference.sample_rate,
                )

        if reference.sample_rate <= 0:
            return failed_result(
                f"Sample rate must be positive, got {reference.sample_rate}",
                reference_id=reference_id,
                sample_rate=reference.sample_rate,
            )

        return None


def stream_id(stream: StreamInput, index: int) -> str:
    """Stream identifier, defaulting to its position in the input list."""
    return stream.id if stream.id else str(index)


def failed_result(
    message: str,
    reference_id: str,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> RunResult:
    """Build a RunResult for a run that could not be computed."""
    logger.warning("Alignment failed", error=message)
    return RunResult(
        reference_id=reference_id,
        results=[],
        sample_rate=sample_rate,
        success=False,
        error=message,
    )
