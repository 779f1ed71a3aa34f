"""
Discrete Fourier transform for power-of-two-length sequences.

Recursive radix-2 decimation in time:
- Forward transform over real or complex input
- Inverse transform via conjugate symmetry (no second algorithm)
- Padding helpers used by the correlation stage
"""

from __future__ import annotations

import cmath
import math
from typing import Sequence


class TransformLengthError(ValueError):
    """Raised when a transform input length is not a power of two."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Transform length must be a power of two, got {length}")


def is_power_of_two(n: int) -> bool:
    """Check if n is a positive power of two."""
    return n > 0 and (n & (n - 1)) == 0


def next_power_of_two(n: int) -> int:
    """Smallest power of two greater than or equal to n (1 for n <= 1)."""
    if n <= 1:
        return 1
    return 1 << math.ceil(math.log2(n))


def pad_to_power_of_two(values: Sequence[float], target_length: int) -> list[float]:
    """
    Zero-pad a sequence on the right to target_length.

    Args:
        values: Sequence to pad
        target_length: Desired length, must be a power of two and >= len(values)

    Returns:
        New list of length target_length
    """
    if not is_power_of_two(target_length):
        raise TransformLengthError(target_length)
    if target_length < len(values):
        raise ValueError(
            f"Target length {target_length} is shorter than input length {len(values)}"
        )

    padded = [float(v) for v in values]
    padded.extend([0.0] * (target_length - len(values)))
    return padded


def fft(values: Sequence[float]) -> list[complex]:
    """
    Forward transform of a real-valued sequence.

    Treats every element as a complex number with zero imaginary part,
    so the result matches fft_complex() on the same values.
    """
    return fft_complex([complex(v, 0.0) for v in values])


def fft_complex(values: Sequence[complex]) -> list[complex]:
    """
    Forward transform of a complex sequence.

    Args:
        values: Input of power-of-two length

    Returns:
        Frequency bins X[k] = sum(x[j] * exp(-2*pi*i*j*k/n))

    Raises:
        TransformLengthError: If len(values) is not a power of two
    """
    n = len(values)
    if not is_power_of_two(n):
        raise TransformLengthError(n)

    return _radix2(list(values))


def ifft(values: Sequence[complex]) -> list[complex]:
    """
    Inverse transform.

    Conjugates the input, applies the forward transform, then conjugates
    again and scales by 1/n.
    """
    n = len(values)
    if not is_power_of_two(n):
        raise TransformLengthError(n)

    conjugated = [v.conjugate() for v in values]
    spectrum = _radix2(conjugated)
    return [v.conjugate() / n for v in spectrum]


def _radix2(values: list[complex]) -> list[complex]:
    n = len(values)

    # 0 Hz bin
    if n == 1:
        return [values[0]]

    half = n // 2
    even = _radix2(values[0::2])
    odd = _radix2(values[1::2])

    result: list[complex] = [0j] * n
    for k in range(half):
        twiddle = cmath.exp(-2j * math.pi * k / n)
        t = twiddle * odd[k]
        result[k] = even[k] + t
        result[k + half] = even[k] - t

    return result
