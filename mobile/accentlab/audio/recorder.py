"""Microphone capture with ordered fragment collection."""

from __future__ import annotations

import io
import threading
from typing import Callable, Optional, Protocol

import numpy as np
import soundfile as sf

from ..errors import DeviceUnavailable, OperationInProgress
from ..services.logger import LogBuffer
from .types import AudioBlob

FragmentCallback = Callable[[bytes], None]


class CaptureDevice(Protocol):
    """Recording capability: opened once per capture, closed exactly once."""

    def open(self, on_fragment: FragmentCallback) -> None: ...

    def close(self) -> None: ...


class SoundDeviceInput:
    """16-bit PCM input stream backed by ``sounddevice``."""

    def __init__(self, sample_rate: int, channels: int = 1, *, blocksize: int = 0) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.blocksize = blocksize
        self._sd = self._try_import_sounddevice()
        self._stream = None

    def _try_import_sounddevice(self):
        try:
            import sounddevice as sd  # type: ignore

            return sd
        except Exception:
            return None

    def open(self, on_fragment: FragmentCallback) -> None:
        if self._sd is None:
            raise DeviceUnavailable("No audio input backend (sounddevice/PortAudio missing)")

        def _callback(indata, frames, time_info, status) -> None:
            on_fragment(bytes(indata))

        try:
            stream = self._sd.RawInputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=self.blocksize,
                callback=_callback,
            )
            stream.start()
        except Exception as exc:
            raise DeviceUnavailable(f"Microphone unavailable: {exc}") from exc
        self._stream = stream

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()


class CaptureAdapter:
    """Collects fragments between ``start()`` and ``stop()`` from one device."""

    def __init__(
        self,
        device: CaptureDevice,
        logger: LogBuffer,
        *,
        sample_rate: int,
        channels: int = 1,
        level_callback: Callable[[float], None] | None = None,
    ) -> None:
        self.device = device
        self.logger = logger
        self.sample_rate = sample_rate
        self.channels = channels
        self.level_callback = level_callback
        self._lock = threading.Lock()
        self._fragments: list[bytes] = []
        self._active = False

    @property
    def is_capturing(self) -> bool:
        return self._active

    def start(self) -> None:
        if self._active:
            raise OperationInProgress("A capture is already running")
        with self._lock:
            self._fragments = []
            self._active = True
        try:
            self.device.open(self._on_fragment)
        except Exception:
            self._active = False
            raise
        self.logger.add("Recording started")

    def stop(self) -> bytes:
        """Release the device and return every fragment joined in arrival order."""
        with self._lock:
            if not self._active:
                return b""
            self._active = False
        try:
            self.device.close()
        except Exception as exc:
            self.logger.add(f"Device release error: {exc}")
        with self._lock:
            data = b"".join(self._fragments)
            self._fragments = []
        self.logger.add(f"Recording stopped ({len(data)} bytes)")
        return data

    def finalize(self, pcm: bytes) -> AudioBlob:
        """Wrap raw 16-bit PCM into a WAV blob."""
        frame_bytes = 2 * self.channels
        usable = len(pcm) - (len(pcm) % frame_bytes)
        if usable <= 0:
            return AudioBlob(b"")
        samples = np.frombuffer(pcm[:usable], dtype=np.int16).reshape(-1, self.channels)
        buffer = io.BytesIO()
        sf.write(buffer, samples, self.sample_rate, format="WAV", subtype="PCM_16")
        return AudioBlob(buffer.getvalue(), mime_type="audio/wav", filename="audio.wav")

    def _on_fragment(self, data: bytes) -> None:
        if not data:
            return
        with self._lock:
            if not self._active:
                return
            self._fragments.append(data)
        self._report_level(data)

    def _report_level(self, data: bytes) -> Optional[float]:
        if not self.level_callback:
            return None
        usable = len(data) - (len(data) % 2)
        pcm = np.frombuffer(data[:usable], dtype=np.int16)
        level = float(np.max(np.abs(pcm.astype(np.int32)))) / 32768.0 if pcm.size else 0.0
        level = max(0.0, min(1.0, level))
        self.level_callback(level)
        return level


__all__ = ["CaptureAdapter", "CaptureDevice", "SoundDeviceInput"]
