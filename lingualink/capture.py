"""Microphone capture for the translation pipeline."""

from __future__ import annotations

import asyncio
import io
import logging
import threading
from typing import Optional, Protocol

import numpy as np


class DeviceError(RuntimeError):
    """Raised when the audio capture device cannot be used."""


class CaptureDevice(Protocol):
    """Exclusive handle on a microphone.

    ``stop`` returns the whole recording encoded as a single clip and releases
    the device. ``close`` releases the device without producing a clip and is
    safe to call at any time.
    """

    content_type: str

    @property
    def active(self) -> bool:
        ...

    async def start(self) -> None:
        ...

    async def stop(self) -> bytes:
        ...

    async def close(self) -> None:
        ...


class SoundDeviceCapture:
    """Record the default input device into an in-memory WAV clip."""

    content_type = "audio/wav"

    def __init__(self, samplerate: int = 16000, channels: int = 1) -> None:
        self._samplerate = samplerate
        self._channels = channels
        self._sd = None
        self._stream = None
        self._frames: list[np.ndarray] = []
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._stream is not None

    async def start(self) -> None:
        if self._stream is not None:
            raise DeviceError("Recording is already active.")
        try:
            import sounddevice as sd  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise DeviceError("The `sounddevice` package is required for recording.") from exc
        self._sd = sd

        with self._lock:
            self._frames = []
        try:
            stream = sd.InputStream(
                samplerate=self._samplerate,
                channels=self._channels,
                dtype="float32",
                callback=self._callback,
            )
        except (sd.PortAudioError, OSError, ValueError) as exc:
            raise DeviceError(f"Could not access your microphone: {exc}") from exc
        try:
            await asyncio.to_thread(stream.start)
        except (sd.PortAudioError, OSError, ValueError) as exc:
            stream.close()
            raise DeviceError(f"Could not access your microphone: {exc}") from exc
        self._stream = stream

    async def stop(self) -> bytes:
        if self._stream is None:
            raise DeviceError("Recording is not active.")
        try:
            await self.close()
        except (self._sd.PortAudioError, OSError) as exc:
            raise DeviceError(f"Could not release your microphone: {exc}") from exc

        with self._lock:
            frames, self._frames = self._frames, []
        if not frames:
            return b""
        try:
            audio = np.concatenate(frames, axis=0)
            return await asyncio.to_thread(self._encode, audio)
        except (RuntimeError, ValueError) as exc:
            raise DeviceError(f"Could not encode the recording: {exc}") from exc

    async def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            await asyncio.to_thread(stream.stop)
        finally:
            stream.close()

    def _encode(self, audio: np.ndarray) -> bytes:
        import soundfile as sf  # type: ignore

        buffer = io.BytesIO()
        sf.write(buffer, audio, self._samplerate, format="WAV")
        return buffer.getvalue()

    def _callback(self, indata, frames, time, status) -> None:  # type: ignore[override]
        if status:
            logging.debug("Recorder status: %s", status)
        with self._lock:
            self._frames.append(indata.copy())
