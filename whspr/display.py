"""Terminal presentation of the final transcript."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .models import PipelineResult

MAX_WIDTH = 80


def format_duration(seconds: float) -> str:
    total = int(round(seconds))
    minutes, secs = divmod(total, 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def count_words(text: str) -> int:
    return len(text.split())


def render_transcript(console: Console, result: PipelineResult) -> None:
    stats = Text()
    stats.append("Audio: ", style="dim")
    stats.append(format_duration(result.audio_seconds))
    stats.append(" • Processing: ", style="dim")
    stats.append(f"{result.processing_seconds:.1f}s")
    console.print(stats)

    console.print(
        Panel(
            Text(result.text),
            title=Text(" TRANSCRIPT ", style="cyan"),
            title_align="left",
            subtitle=Text(f" {result.word_count} words • {result.char_count} chars ", style="dim"),
            subtitle_align="right",
            border_style="dim",
            box=box.SQUARE,
            width=min(console.width, MAX_WIDTH),
        )
    )
