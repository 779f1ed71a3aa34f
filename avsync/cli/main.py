"""Main CLI entry point for avsync."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import structlog
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from avsync.alignment.models import DEFAULT_MIN_CONFIDENCE, DEFAULT_SAMPLE_RATE, RunResult
from avsync.alignment.sync import AudioVideoSync, SyncOptions, VideoInput
from avsync.ingestion.audio_extractor import ExtractionError, ExtractOptions

load_dotenv()

app = typer.Typer(
    name="avsync",
    help="Synchronize multi-camera videos by cross-correlating their audio",
    add_completion=False,
)
console = Console()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(level))


def _extract_options(
    sample_rate: int,
    max_duration: float,
    ffmpeg: str,
) -> ExtractOptions:
    return ExtractOptions(
        sample_rate=sample_rate,
        max_duration=max_duration,
        ffmpeg_binary=ffmpeg,
    )


@app.command()
def align(
    videos: list[Path] = typer.Argument(
        ...,
        help="Video files to synchronize",
        exists=True,
        dir_okay=False,
    ),
    reference: int = typer.Option(
        0,
        "--reference", "-r",
        help="Index of the reference video",
    ),
    min_confidence: float = typer.Option(
        DEFAULT_MIN_CONFIDENCE,
        "--min-confidence", "-c",
        min=0.0,
        max=1.0,
        envvar="AVSYNC_MIN_CONFIDENCE",
        help="Minimum confidence for every non-reference video",
    ),
    sample_rate: int = typer.Option(
        DEFAULT_SAMPLE_RATE,
        "--sample-rate", "-s",
        min=1,
        envvar="AVSYNC_SAMPLE_RATE",
        help="Sample rate audio is decoded at",
    ),
    max_duration: float = typer.Option(
        60.0,
        "--max-duration", "-d",
        min=0.1,
        envvar="AVSYNC_MAX_DURATION",
        help="Seconds of audio decoded from each video",
    ),
    start_time: Optional[datetime] = typer.Option(
        None,
        "--start-time",
        help="Wall-clock start of the reference video (ISO 8601)",
    ),
    ffmpeg: str = typer.Option(
        "ffmpeg",
        "--ffmpeg",
        envvar="AVSYNC_FFMPEG",
        help="FFmpeg binary",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Output file for results (JSON)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """
    Align videos on the timeline of a reference video.

    Offsets are positive when a video started after the reference.
    """
    _configure_logging(verbose)

    console.print(Panel.fit(
        "[bold blue]avsync[/bold blue]\n"
        f"Aligning {len(videos)} videos (reference index {reference})",
        border_style="blue",
    ))

    inputs = [
        VideoInput(
            path=path,
            id=path.name,
            original_start_time=start_time if i == reference else None,
        )
        for i, path in enumerate(videos)
    ]

    result = asyncio.run(_run_sync(
        inputs,
        reference=reference,
        min_confidence=min_confidence,
        extract=_extract_options(sample_rate, max_duration, ffmpeg),
    ))

    _display_result(result, min_confidence)

    if output:
        output.write_text(result.model_dump_json(indent=2))
        console.print(f"\n[green]Results saved to {output}[/green]")

    if not result.success:
        raise typer.Exit(1)


async def _run_sync(
    videos: list[VideoInput],
    reference: int,
    min_confidence: float,
    extract: ExtractOptions,
) -> RunResult:
    """Run synchronization with a progress bar per stage."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        tasks: dict[str, int] = {}

        def on_progress(stage: str, fraction: float) -> None:
            if stage not in tasks:
                tasks[stage] = progress.add_task(f"{stage.capitalize()}...", total=1.0)
            progress.update(tasks[stage], completed=fraction)

        options = SyncOptions(
            reference_index=reference,
            min_confidence=min_confidence,
            on_progress=on_progress,
            extract=extract,
        )
        return await AudioVideoSync().sync_videos(videos, options)


def _confidence_style(confidence: float, min_confidence: float) -> str:
    return "green" if confidence >= min_confidence else "red"


def _display_result(result: RunResult, min_confidence: float) -> None:
    """Display alignment results as a table."""
    table = Table(title=f"Reference: {result.reference_id}")
    table.add_column("Video", style="cyan")
    table.add_column("Offset (s)", justify="right")
    table.add_column("Offset (samples)", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Corrected start")

    for r in result.results:
        confidence_style = _confidence_style(r.confidence, min_confidence)
        table.add_row(
            r.id,
            f"{r.offset_seconds:+.3f}",
            str(r.offset_samples),
            f"[{confidence_style}]{r.confidence:.1%}[/{confidence_style}]",
            r.corrected_start_time.isoformat() if r.corrected_start_time else "-",
        )

    if result.results:
        console.print(table)

    if result.success:
        console.print("[green]Synchronization succeeded[/green]")
    else:
        console.print(f"[red]Synchronization failed: {result.error}[/red]")


@app.command()
def offset(
    reference: Path = typer.Argument(..., help="Reference video", exists=True, dir_okay=False),
    target: Path = typer.Argument(..., help="Video to measure", exists=True, dir_okay=False),
    sample_rate: int = typer.Option(
        DEFAULT_SAMPLE_RATE, "--sample-rate", "-s", min=1, envvar="AVSYNC_SAMPLE_RATE"
    ),
    max_duration: float = typer.Option(
        60.0, "--max-duration", "-d", min=0.1, envvar="AVSYNC_MAX_DURATION"
    ),
    ffmpeg: str = typer.Option("ffmpeg", "--ffmpeg", envvar="AVSYNC_FFMPEG"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """
    Measure the offset of one video against another.

    Example:
        avsync offset cam_a.mp4 cam_b.mp4
    """
    _configure_logging(verbose)

    sync = AudioVideoSync()
    try:
        pair = asyncio.run(sync.calculate_offset(
            reference,
            target,
            _extract_options(sample_rate, max_duration, ffmpeg),
        ))
    except ExtractionError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"Offset: [bold]{pair.offset_seconds:+.3f}s[/bold] ({pair.offset_samples} samples)")
    console.print(f"Confidence: {pair.confidence:.1%}")


@app.command()
def version():
    """Show version information."""
    from avsync import __version__

    console.print(f"avsync v{__version__}")


if __name__ == "__main__":
    app()
