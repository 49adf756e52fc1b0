"""Command line interface for whspr."""

from __future__ import annotations

import logging

import typer
from rich.console import Console

from . import __version__
from . import config as config_mod
from .client import create_client
from .config import MissingCredentialError
from .convert import ConversionError
from .pipeline import Pipeline, RecordingNotPreservedError, RecordingPreservedError
from .postprocess import GroqCorrector
from .recorder import AudioRecorder, RecordingCancelled
from .transcriber import GroqWhisperBackend

app = typer.Typer(add_completion=False, help="Record, transcribe and clean up dictation.")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_pipeline(cfg: config_mod.Config, api_key: str, console: Console) -> Pipeline:
    client = create_client(api_key, timeout=cfg.api_timeout)
    return Pipeline(
        cfg,
        AudioRecorder(),
        GroqWhisperBackend(client),
        GroqCorrector(client, cfg.correction_model),
        console=console,
    )


@app.command()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show raw transcription and diagnostics."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Record from the microphone until Enter, then copy the cleaned-up transcript."""

    if version:
        typer.echo(f"whspr v{__version__}")
        raise typer.Exit()

    try:
        api_key = config_mod.require_api_key()
    except MissingCredentialError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        typer.secho("Get your API key at https://console.groq.com/keys", fg=typer.colors.BRIGHT_BLACK)
        typer.secho('Then run: export GROQ_API_KEY="your-api-key"', fg=typer.colors.BRIGHT_BLACK)
        raise typer.Exit(code=1) from exc

    cfg = config_mod.load_config().with_verbose(verbose)
    _configure_logging(cfg.verbose)
    console = Console()

    try:
        pipeline = _build_pipeline(cfg, api_key, console)
        pipeline.run()
    except RecordingCancelled:
        raise typer.Exit(code=0)
    except ConversionError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        typer.secho(f"Raw recording kept at: {exc.source}", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1) from exc
    except RecordingPreservedError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        typer.secho(f"Recording saved to: {exc.saved_to}", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1) from exc
    except RecordingNotPreservedError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        typer.secho(f"Could not save recording: {exc.storage_error}", fg=typer.colors.YELLOW, err=True)
        typer.secho(f"Recording left at: {exc.left_at}", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1) from exc
    except RuntimeError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


if __name__ == "__main__":  # pragma: no cover
    app()
