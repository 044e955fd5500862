"""Playback of synthesized speech."""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Protocol

from .models import SynthesizedAudio


class PlaybackError(RuntimeError):
    """Raised when synthesized audio cannot be played."""


class AudioPlayer(Protocol):
    async def play(self, audio: SynthesizedAudio) -> None:
        ...

    def stop(self) -> None:
        ...


class SoundDevicePlayer:
    """Decode audio with soundfile and play it on the default output device.

    Only one utterance plays at a time; a new ``play`` replaces the current one.
    """

    async def play(self, audio: SynthesizedAudio) -> None:
        try:
            import sounddevice as sd  # type: ignore
            import soundfile as sf  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise PlaybackError("The `sounddevice` and `soundfile` packages are required for playback.") from exc

        try:
            data, samplerate = await asyncio.to_thread(sf.read, io.BytesIO(audio.content), dtype="float32")
        except RuntimeError as exc:
            raise PlaybackError(f"Could not decode {audio.content_type} audio: {exc}") from exc

        try:
            sd.play(data, samplerate)
            await asyncio.to_thread(sd.wait)
        except sd.PortAudioError as exc:
            raise PlaybackError(f"Could not play audio: {exc}") from exc

    def stop(self) -> None:
        try:
            import sounddevice as sd  # type: ignore
        except Exception:  # pragma: no cover - optional dependency
            return
        try:
            sd.stop()
        except sd.PortAudioError as exc:
            logging.debug("Failed to stop playback: %s", exc)
