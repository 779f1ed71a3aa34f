"""Sample conditioning applied to every stream before correlation."""

from __future__ import annotations

from typing import Sequence


def preprocess(samples: Sequence[float]) -> list[float]:
    """
    Remove DC bias and peak-normalize to [-1, 1].

    Silence stays all zero instead of being divided by zero.
    """
    if len(samples) == 0:
        return []

    mean = sum(samples) / len(samples)
    centered = [s - mean for s in samples]

    max_abs = max(abs(s) for s in centered)
    if max_abs == 0:
        return centered

    return [s / max_abs for s in centered]


def mix_to_mono(interleaved: Sequence[float], channels: int) -> list[float]:
    """
    Average interleaved multi-channel samples into one channel.

    A trailing partial frame is dropped.
    """
    if channels < 1:
        raise ValueError(f"Channel count must be positive, got {channels}")
    if channels == 1:
        return list(interleaved)

    frames = len(interleaved) // channels
    return [
        sum(interleaved[f * channels:(f + 1) * channels]) / channels
        for f in range(frames)
    ]


def downsample(samples: Sequence[float], from_rate: int, to_rate: int) -> list[float]:
    """
    Decimate by picking the nearest lower source sample.

    No anti-aliasing filter is applied.
    """
    if from_rate <= 0 or to_rate <= 0:
        raise ValueError(f"Sample rates must be positive, got {from_rate} -> {to_rate}")
    if from_rate == to_rate:
        return list(samples)

    ratio = from_rate / to_rate
    new_length = int(len(samples) / ratio)
    return [samples[int(i * ratio)] for i in range(new_length)]
