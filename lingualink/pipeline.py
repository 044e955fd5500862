"""Record → transcribe → translate → speak pipeline orchestration."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Protocol, TypeVar

from .adapters import AdapterError
from .capture import CaptureDevice, DeviceError
from .history import HistoryStore
from .languages import is_supported
from .models import SynthesizedAudio, TranslationRecord
from .playback import AudioPlayer, PlaybackError

T = TypeVar("T")

DEFAULT_STAGE_TIMEOUT = 60.0


class PipelineState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    TRANSLATING = "translating"
    SYNTHESIZING = "synthesizing"
    ERROR = "error"


class NoticeKind(str, Enum):
    ERROR = "error"
    EMPTY = "empty"
    INFO = "info"


@dataclass(frozen=True)
class Notice:
    """A user-visible message produced by the pipeline."""

    kind: NoticeKind
    title: str
    message: str
    error: Optional[BaseException] = None


class Relay(Protocol):
    async def transcribe(self, audio: bytes, source_language: str, content_type: str = "audio/wav") -> str:
        ...

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        ...

    async def synthesize(self, text: str, language: str) -> SynthesizedAudio:
        ...


class Orchestrator:
    """Single-flight state machine driving one translation at a time.

    Failures in any stage end in a :class:`Notice` and a return to
    :attr:`PipelineState.IDLE`; no stage lets an exception escape. The
    capture device is released on every exit path.
    """

    def __init__(
        self,
        capture: CaptureDevice,
        relay: Relay,
        history: HistoryStore,
        player: Optional[AudioPlayer] = None,
        source_language: str = "en",
        target_language: str = "es",
        auto_play: bool = False,
        stage_timeout: float = DEFAULT_STAGE_TIMEOUT,
        on_notice: Optional[Callable[[Notice], None]] = None,
        on_state: Optional[Callable[[PipelineState], None]] = None,
    ) -> None:
        self._capture = capture
        self._relay = relay
        self._history = history
        self._player = player
        self.auto_play = auto_play
        self.stage_timeout = stage_timeout
        self._on_notice = on_notice
        self._on_state = on_state

        self._state = PipelineState.IDLE
        self._speech: Optional[object] = None
        self._generation = 0
        self.source_language = source_language
        self.target_language = target_language
        self.original_text = ""
        self.translated_text = ""
        self.notices: List[Notice] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def can_record(self) -> bool:
        return self._state in (PipelineState.IDLE, PipelineState.RECORDING)

    @property
    def is_speaking(self) -> bool:
        return self._speech is not None

    def set_languages(self, source_language: str, target_language: str) -> None:
        for code in (source_language, target_language):
            if not is_supported(code):
                raise ValueError(f"Unsupported language: {code}")
        if self._state is not PipelineState.IDLE:
            raise RuntimeError("Languages can only be changed while idle.")
        self.source_language = source_language
        self.target_language = target_language

    def _set_state(self, state: PipelineState) -> None:
        if state is self._state:
            return
        logging.debug("Pipeline state %s -> %s", self._state.value, state.value)
        self._state = state
        if self._on_state is not None:
            try:
                self._on_state(state)
            except Exception:
                logging.exception("State handler failed")

    def _notify(self, notice: Notice) -> None:
        self.notices.append(notice)
        if self._on_notice is not None:
            try:
                self._on_notice(notice)
            except Exception:
                logging.exception("Notice handler failed")

    def _fail(self, title: str, message: str, error: Optional[BaseException] = None) -> None:
        self._set_state(PipelineState.ERROR)
        self._notify(Notice(NoticeKind.ERROR, title, message, error))
        self._set_state(PipelineState.IDLE)

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.stage_timeout)

    async def start_recording(self) -> bool:
        if self._state is not PipelineState.IDLE:
            logging.debug("Ignoring start while %s", self._state.value)
            return False
        try:
            await self._capture.start()
        except DeviceError as exc:
            await self._release_capture()
            self._fail(
                "Microphone Error",
                "Could not access your microphone. Please check permissions.",
                exc,
            )
            return False
        self._set_state(PipelineState.RECORDING)
        return True

    async def stop_recording(self) -> Optional[TranslationRecord]:
        """Finish the recording and run it through transcription and translation.

        Returns the new history record, or ``None`` when the run ended early.
        """

        if self._state is not PipelineState.RECORDING:
            return None
        generation = self._generation
        self._set_state(PipelineState.TRANSCRIBING)

        try:
            audio = await self._capture.stop()
        except Exception as exc:
            self._fail_stage("Microphone Error", "Could not finish the recording", exc)
            return None
        finally:
            await self._release_capture()

        if not audio:
            self._notify_empty()
            return None

        self.original_text = ""
        self.translated_text = ""
        try:
            text = await self._bounded(
                self._relay.transcribe(audio, self.source_language, self._capture.content_type)
            )
        except Exception as exc:
            if generation == self._generation:
                self._fail_stage("Processing Error", "Speech-to-text failed", exc)
            return None
        if generation != self._generation:
            return None

        if not text.strip():
            self._notify_empty()
            return None

        self.original_text = text
        return await self._translate(generation)

    async def _translate(self, generation: int) -> Optional[TranslationRecord]:
        self._set_state(PipelineState.TRANSLATING)
        try:
            translated = await self._bounded(
                self._relay.translate(self.original_text, self.source_language, self.target_language)
            )
        except Exception as exc:
            if generation == self._generation:
                self._fail_stage("Processing Error", "Translation failed", exc)
            return None
        if generation != self._generation:
            return None

        self.translated_text = translated
        record = TranslationRecord.create(
            original_text=self.original_text,
            translated_text=translated,
            source_language=self.source_language,
            target_language=self.target_language,
        )
        self._history.append(record)
        self._set_state(PipelineState.IDLE)

        if self.auto_play:
            await self.speak()
        return record

    async def speak(self) -> bool:
        """Synthesize and play the current translation.

        Returns ``False`` without doing anything when another utterance is in
        flight, the pipeline is busy, or there is nothing to say.
        """

        if self._speech is not None or self._state is not PipelineState.IDLE or not self.translated_text:
            return False
        token = self._speech = object()
        generation = self._generation
        self._set_state(PipelineState.SYNTHESIZING)
        try:
            audio = await self._bounded(self._relay.synthesize(self.translated_text, self.target_language))
            if self._player is not None and generation == self._generation:
                await self._player.play(audio)
        except Exception as exc:
            if generation == self._generation:
                self._fail_stage("Speech Error", "Could not generate speech for the translated text", exc)
            return False
        finally:
            # A call abandoned by close() must not release a newer utterance.
            if self._speech is token:
                self._speech = None
                if self._state is PipelineState.SYNTHESIZING:
                    self._set_state(PipelineState.IDLE)
        return generation == self._generation

    def clear_history(self) -> None:
        self._history.clear()
        self._notify(Notice(NoticeKind.INFO, "History Cleared", "Your translation history has been cleared."))

    async def close(self) -> None:
        """Release devices; results of calls still in flight are discarded."""

        self._generation += 1
        await self._release_capture()
        if self._player is not None:
            self._player.stop()
        self._speech = None
        self._set_state(PipelineState.IDLE)

    async def _release_capture(self) -> None:
        try:
            await self._capture.close()
        except Exception:
            logging.exception("Failed to release capture device")

    def _notify_empty(self) -> None:
        self._set_state(PipelineState.IDLE)
        self._notify(
            Notice(
                NoticeKind.EMPTY,
                "No Speech Detected",
                "We couldn't detect any speech in the recording. Please try again.",
            )
        )

    def _fail_stage(self, title: str, fallback: str, exc: Exception) -> None:
        if isinstance(exc, asyncio.TimeoutError):
            message = f"{fallback}: the request timed out."
        elif isinstance(exc, (AdapterError, DeviceError, PlaybackError)):
            message = str(exc) or fallback
        else:
            logging.exception("Unexpected pipeline failure")
            message = fallback
        self._fail(title, message, exc)
