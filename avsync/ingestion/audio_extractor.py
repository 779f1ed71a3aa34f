"""Audio extraction from video containers via FFmpeg."""

from __future__ import annotations

import asyncio
import sys
from array import array
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Sequence

import structlog

from avsync.dsp.preprocess import mix_to_mono

logger = structlog.get_logger(__name__)


class ExtractionError(RuntimeError):
    """Raised when audio cannot be decoded from a source file."""

    def __init__(
        self,
        message: str,
        cmd: list[str] | None = None,
        returncode: int | None = None,
        stderr: str = "",
    ):
        self.cmd = cmd or []
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


@dataclass
class ExtractOptions:
    """Configuration for audio extraction."""

    sample_rate: int = 16000
    mono: bool = True

    # Only the first N seconds are decoded
    max_duration: float = 60.0

    ffmpeg_binary: str = "ffmpeg"


@dataclass
class AudioData:
    """Decoded single-channel PCM audio."""

    samples: Sequence[float]
    sample_rate: int

    # Channel count of the decoded stream before mixdown
    channels: int = 1

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        if self.sample_rate <= 0:
            return 0.0
        return len(self.samples) / self.sample_rate


class AudioExtractor(Protocol):
    """Protocol for anything that can turn a media file into samples."""

    async def extract(self, path: Path | str, options: ExtractOptions) -> AudioData: ...


def pcm16_to_float(data: bytes) -> list[float]:
    """
    Convert signed 16-bit little-endian PCM to floats in [-1, 1).

    A trailing odd byte is ignored.
    """
    pcm = array("h")
    pcm.frombytes(data[: len(data) - (len(data) % 2)])
    if sys.byteorder == "big":
        pcm.byteswap()
    return [s / 32768 for s in pcm]


def build_ffmpeg_command(path: Path | str, options: ExtractOptions) -> list[str]:
    """Build the FFmpeg command that writes raw PCM to stdout."""
    return [
        options.ffmpeg_binary,
        "-hide_banner", "-loglevel", "error",
        "-i", str(path),
        "-vn",
        "-ac", "1" if options.mono else "2",
        "-ar", str(options.sample_rate),
        "-f", "s16le",
        "-t", str(options.max_duration),
        "pipe:1",
    ]


class FFmpegAudioExtractor:
    """
    Decodes the audio track of a media file with an FFmpeg subprocess.

    Stereo output is mixed down, so callers always receive one channel.
    """

    def __init__(self):
        self.logger = structlog.get_logger(__name__)

    async def extract(self, path: Path | str, options: ExtractOptions | None = None) -> AudioData:
        """
        Extract PCM samples from a media file.

        Args:
            path: Video or audio file
            options: Extraction settings

        Returns:
            AudioData with mono float samples

        Raises:
            ExtractionError: If the file is missing, FFmpeg is not installed,
                or FFmpeg exits with an error
        """
        options = options or ExtractOptions()
        path = Path(path)

        if not path.exists():
            raise ExtractionError(f"Media file not found: {path}")

        cmd = build_ffmpeg_command(path, options)
        self.logger.debug("Extracting audio", path=str(path), sample_rate=options.sample_rate)

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise ExtractionError(
                f"FFmpeg binary not found: {options.ffmpeg_binary}", cmd=cmd
            ) from e

        stdout, stderr = await process.communicate()
        stderr_text = stderr.decode(errors="replace")

        if process.returncode != 0:
            raise ExtractionError(
                f"FFmpeg failed (rc={process.returncode}): {stderr_text[:500]}",
                cmd=cmd,
                returncode=process.returncode,
                stderr=stderr_text,
            )

        channels = 1 if options.mono else 2
        samples = mix_to_mono(pcm16_to_float(stdout), channels)

        if not samples:
            raise ExtractionError(
                f"No audio decoded from {path}", cmd=cmd, returncode=0, stderr=stderr_text
            )

        self.logger.info(
            "Audio extracted",
            path=path.name,
            samples=len(samples),
            seconds=round(len(samples) / options.sample_rate, 2),
        )

        return AudioData(samples=samples, sample_rate=options.sample_rate, channels=channels)
