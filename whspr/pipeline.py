"""Recording → transcription → correction → clipboard, with recovery on failure."""

from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Protocol

from rich.console import Console
from rich.status import Status

from .clipboard import ClipboardError, copy_to_clipboard
from .convert import convert_to_mp3
from .display import count_words, render_transcript
from .models import Config, CustomVocabulary, PipelineResult, Recording
from .postprocess import Corrector, postprocess
from .recorder import RecordingCancelled
from .storage import StorageError, discard, preserve_recording
from .transcriber import TranscriptionBackend, transcribe_audio
from .vocabulary import load_custom_vocabulary

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    CONVERTING = "converting"
    TRANSCRIBING = "transcribing"
    POST_PROCESSING = "post-processing"
    DELIVERING = "delivering"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RecordingPreservedError(RuntimeError):
    """A late failure; the converted audio was moved to ``saved_to``."""

    def __init__(self, stage: Stage, cause: BaseException, saved_to: Path) -> None:
        super().__init__(str(cause))
        self.stage = stage
        self.cause = cause
        self.saved_to = saved_to


class RecordingNotPreservedError(RuntimeError):
    """A late failure where moving the audio also failed; it is still at ``left_at``."""

    def __init__(
        self, stage: Stage, cause: BaseException, left_at: Path, storage_error: StorageError
    ) -> None:
        super().__init__(str(cause))
        self.stage = stage
        self.cause = cause
        self.left_at = left_at
        self.storage_error = storage_error


class Recorder(Protocol):
    def record(self, console: Console) -> Recording:
        """Capture audio and return the recording, or raise RecordingCancelled."""


class Pipeline:
    """Runs one dictation from microphone to clipboard.

    ``stage`` tracks progress. Failures after conversion move the MP3 into the
    recovery directory before surfacing as :class:`RecordingPreservedError`.
    """

    def __init__(
        self,
        config: Config,
        recorder: Recorder,
        transcriber: TranscriptionBackend,
        corrector: Corrector,
        *,
        console: Console,
        convert: Callable[[Path], Path] = convert_to_mp3,
        copy: Callable[[str], None] = copy_to_clipboard,
        load_vocabulary: Callable[[], CustomVocabulary] = load_custom_vocabulary,
        recordings_dir: Optional[Path] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.stage = Stage.IDLE
        self._recorder = recorder
        self._transcriber = transcriber
        self._corrector = corrector
        self._console = console
        self._convert = convert
        self._copy = copy
        self._load_vocabulary = load_vocabulary
        self._recordings_dir = recordings_dir
        self._clock = clock

    def run(self) -> PipelineResult:
        self.stage = Stage.RECORDING
        try:
            recording = self._recorder.record(self._console)
        except RecordingCancelled:
            self.stage = Stage.CANCELLED
            raise
        except Exception:
            self.stage = Stage.FAILED
            raise
        process_start = self._clock()

        with self._console.status("Converting to MP3...", spinner="dots") as status:
            self.stage = Stage.CONVERTING
            try:
                mp3_path = self._convert(recording.path)
            except Exception:
                self.stage = Stage.FAILED
                raise

            try:
                text = self._process(mp3_path, status)
            except Exception as exc:
                failed_at = self.stage
                self.stage = Stage.FAILED
                try:
                    saved_to = preserve_recording(mp3_path, self._recordings_dir)
                except StorageError as storage_exc:
                    logger.debug("Could not save recording: %s", storage_exc)
                    raise RecordingNotPreservedError(failed_at, exc, mp3_path, storage_exc) from exc
                logger.debug("Saved recording to %s after %s failed", saved_to, failed_at.value)
                raise RecordingPreservedError(failed_at, exc, saved_to) from exc

        self.stage = Stage.DELIVERING
        result = PipelineResult(
            text=text,
            word_count=count_words(text),
            char_count=len(text),
            audio_seconds=recording.duration_seconds,
            processing_seconds=self._clock() - process_start,
        )
        render_transcript(self._console, result)
        self._deliver(result.text)
        discard(mp3_path)
        self.stage = Stage.DONE
        return result

    def _process(self, mp3_path: Path, status: Status) -> str:
        config = self.config

        self.stage = Stage.TRANSCRIBING
        status.update("Transcribing...")
        raw_text = transcribe_audio(self._transcriber, mp3_path, config, self._console)
        if config.verbose:
            self._console.print(f"Raw: {raw_text}", style="dim", markup=False, highlight=False)

        vocabulary = self._load_vocabulary()
        if vocabulary.text is not None and config.verbose:
            self._console.print(
                f"Using custom vocabulary from: {' + '.join(vocabulary.sources)}",
                style="dim",
                markup=False,
                highlight=False,
            )

        self.stage = Stage.POST_PROCESSING
        status.update("Post-processing...")
        fixed_text = postprocess(self._corrector, raw_text, vocabulary.text, config, self._console)

        if config.suffix:
            fixed_text = fixed_text + config.suffix
        return fixed_text

    def _deliver(self, text: str) -> None:
        try:
            self._copy(text)
        except ClipboardError as exc:
            # the transcript is already on screen
            logger.warning("%s", exc)
            self._console.print(f"! {exc}", style="yellow", markup=False, highlight=False)
            return
        self._console.print("[green]✓[/green] [grey50]Copied to clipboard[/grey50]")
