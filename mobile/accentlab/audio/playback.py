"""Audio handles and windowed playback of transcript chunks."""

from __future__ import annotations

import io
import uuid
from typing import Protocol, Tuple

import numpy as np
import soundfile as sf

from ..errors import DeviceUnavailable, MissingInput
from .types import AudioBlob


class AudioHandle:
    """Owned reference to one audio blob; unusable once released."""

    def __init__(self, blob: AudioBlob) -> None:
        self.handle_id = uuid.uuid4().hex
        self._blob: AudioBlob | None = blob
        self._size = len(blob)
        self.mime_type = blob.mime_type

    @property
    def released(self) -> bool:
        return self._blob is None

    @property
    def size(self) -> int:
        return self._size

    def read(self) -> AudioBlob:
        if self._blob is None:
            raise RuntimeError(f"Audio handle {self.handle_id[:6]} has been released")
        return self._blob

    def release(self) -> None:
        self._blob = None


class AudioPlayer(Protocol):
    def play(self, handle: AudioHandle, start: float, end: float) -> None: ...

    def stop(self) -> None: ...


def load_window(handle: AudioHandle, start: float, end: float) -> Tuple[np.ndarray, int]:
    """Decode only the frames between ``start`` and ``end`` seconds."""
    blob = handle.read()
    try:
        with sf.SoundFile(io.BytesIO(blob.data)) as sound:
            rate = sound.samplerate
            first = min(max(0, int(start * rate)), sound.frames)
            last = min(max(first, int(end * rate)), sound.frames)
            sound.seek(first)
            samples = sound.read(last - first, dtype="float32")
    except RuntimeError as exc:
        raise MissingInput(f"Audio could not be decoded: {exc}") from exc
    return samples, rate


class SoundDevicePlayer:
    """Plays the [start, end] window of a handle; playback stops at ``end``."""

    def __init__(self) -> None:
        self._sd = self._try_import_sounddevice()

    def _try_import_sounddevice(self):
        try:
            import sounddevice as sd  # type: ignore

            return sd
        except Exception:
            return None

    def play(self, handle: AudioHandle, start: float, end: float) -> None:
        if self._sd is None:
            raise DeviceUnavailable("No audio output backend (sounddevice/PortAudio missing)")
        samples, rate = load_window(handle, start, end)
        if samples.size == 0:
            return
        try:
            self._sd.stop()
            self._sd.play(samples, rate)
        except Exception as exc:
            raise DeviceUnavailable(f"Speaker unavailable: {exc}") from exc

    def stop(self) -> None:
        if self._sd is not None:
            self._sd.stop()


__all__ = ["AudioHandle", "AudioPlayer", "SoundDevicePlayer", "load_window"]
