"""
Frequency-domain cross-correlation and peak analysis.

Uses the correlation theorem: corr(a, b) = IDFT(DFT(a) * conj(DFT(b))).
Both inputs are zero-padded to a power of two of at least
len(a) + len(b) - 1 so the circular result contains the full linear
correlation without wraparound.
"""

from __future__ import annotations

import math
from typing import Sequence

from avsync.dsp.transform import fft, ifft, next_power_of_two, pad_to_power_of_two


def cross_correlate(signal_a: Sequence[float], signal_b: Sequence[float]) -> list[float]:
    """
    Full linear cross-correlation of two real sequences.

    Element k of the result is sum(a[n + k] * b[n]); index k maps to a
    signed lag via lag_from_index().

    Args:
        signal_a: Reference signal
        signal_b: Signal being aligned against the reference

    Returns:
        Correlation sequence of power-of-two length
    """
    n = next_power_of_two(len(signal_a) + len(signal_b) - 1)

    spectrum_a = fft(pad_to_power_of_two(signal_a, n))
    spectrum_b = fft(pad_to_power_of_two(signal_b, n))

    product = [a * b.conjugate() for a, b in zip(spectrum_a, spectrum_b)]

    return [value.real for value in ifft(product)]


def lag_from_index(index: int, n: int) -> int:
    """Map a circular correlation index to a signed lag."""
    if index > n / 2:
        return index - n
    return index


def find_peak_offset(correlation: Sequence[float], reference_length: int) -> int:
    """
    Find the lag of the largest correlation value.

    Ties resolve to the earliest index, so a flat sequence yields 0.

    Args:
        correlation: Output of cross_correlate()
        reference_length: Original length of the aligned signal. Kept for
            call-site symmetry; the mapping depends only on len(correlation).

    Returns:
        Signed offset in samples. Positive means the first correlated
        signal is delayed relative to the second.
    """
    max_value = -math.inf
    max_index = 0

    for i, value in enumerate(correlation):
        if value > max_value:
            max_value = value
            max_index = i

    return lag_from_index(max_index, len(correlation))


def signal_energy(samples: Sequence[float]) -> float:
    """Sum of squared amplitudes."""
    return sum(s * s for s in samples)


def calculate_confidence(
    signal_a: Sequence[float],
    signal_b: Sequence[float],
    correlation: Sequence[float],
    peak_offset: int,
) -> float:
    """
    Normalized correlation coefficient at the detected peak.

    Normalizes by the energy of the full signals rather than the energy
    of the overlapping window, so values can exceed 1 in degenerate edge
    cases. Threshold defaults are tuned against this exact formula.

    Returns:
        |peak| / sqrt(energy_a * energy_b), or 0.0 if either signal is silent
    """
    index = len(correlation) + peak_offset if peak_offset < 0 else peak_offset
    peak_value = correlation[index]

    norm_factor = math.sqrt(signal_energy(signal_a) * signal_energy(signal_b))
    if norm_factor == 0:
        return 0.0

    return abs(peak_value) / norm_factor
