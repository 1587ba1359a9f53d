"""Dataclasses shared across audio helpers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class AudioBlob:
    """A finished piece of audio, ready to upload or play."""

    data: bytes
    mime_type: str = "audio/wav"
    filename: str = "audio.wav"

    def __len__(self) -> int:
        return len(self.data)

    @property
    def is_empty(self) -> bool:
        return not self.data
