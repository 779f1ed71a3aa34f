"""Stream descriptors and alignment result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Sequence

from pydantic import BaseModel, Field

DEFAULT_MIN_CONFIDENCE = 0.3
DEFAULT_SAMPLE_RATE = 16000

# (stage_name, fraction_complete)
ProgressCallback = Callable[[str, float], None]


@dataclass
class StreamInput:
    """
    A decoded audio stream ready for alignment.

    All streams in one run must share the same sample rate.
    """

    samples: Sequence[float]
    sample_rate: int

    # Falls back to the stream's position in the input list
    id: Optional[str] = None

    # Wall-clock start reported by the recording device, if any
    original_start_time: Optional[datetime] = None


class StreamAlignment(BaseModel):
    """Offset of one stream relative to the reference stream."""

    id: str

    # Positive: this stream lags the reference; negative: it leads
    offset_seconds: float = 0.0
    offset_samples: int = 0

    # Normalized correlation at the peak (0-1 nominal)
    confidence: float = Field(default=1.0, ge=0.0)

    corrected_start_time: Optional[datetime] = None


class RunResult(BaseModel):
    """Outcome of aligning a set of streams to one reference."""

    reference_id: str
    results: list[StreamAlignment] = Field(default_factory=list)
    sample_rate: int = DEFAULT_SAMPLE_RATE
    success: bool = True
    error: Optional[str] = None

    def get_result(self, stream_id: str) -> Optional[StreamAlignment]:
        """Get the alignment for a stream by id."""
        for result in self.results:
            if result.id == stream_id:
                return result
        return None


@dataclass
class PairwiseOffset:
    """Offset between a single reference/target pair."""

    offset_samples: int
    offset_seconds: float
    confidence: float

    # Correlation length used, for diagnostics
    correlation_length: int = field(default=0)
