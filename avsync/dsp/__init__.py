"""
Signal processing primitives for audio alignment.

- Discrete Fourier transform (radix-2, recursive)
- Frequency-domain cross-correlation
- Peak lag resolution and confidence scoring
- Per-stream preprocessing
"""

from avsync.dsp.transform import (
    TransformLengthError,
    fft,
    fft_complex,
    ifft,
    is_power_of_two,
    next_power_of_two,
    pad_to_power_of_two,
)
from avsync.dsp.correlation import (
    cross_correlate,
    find_peak_offset,
    lag_from_index,
    calculate_confidence,
    signal_energy,
)
from avsync.dsp.preprocess import preprocess, mix_to_mono, downsample

__all__ = [
    # Transform
    "TransformLengthError",
    "fft",
    "fft_complex",
    "ifft",
    "is_power_of_two",
    "next_power_of_two",
    "pad_to_power_of_two",
    # Correlation
    "cross_correlate",
    "find_peak_offset",
    "lag_from_index",
    "calculate_confidence",
    "signal_energy",
    # Preprocessing
    "preprocess",
    "mix_to_mono",
    "downsample",
]
