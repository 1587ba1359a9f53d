"""Session phases and read-only state snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..models import Accent, Chunk


class Phase(str, Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    UPLOADING = "uploading"
    REVIEWING = "reviewing"
    CHUNK_CAPTURING = "chunk_capturing"
    CHUNK_UPLOADING = "chunk_uploading"
    SYNTHESIZING = "synthesizing"


# Phases with a mutating operation outstanding.
BUSY_PHASES = frozenset(
    {
        Phase.CAPTURING,
        Phase.UPLOADING,
        Phase.CHUNK_CAPTURING,
        Phase.CHUNK_UPLOADING,
        Phase.SYNTHESIZING,
    }
)


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    kind: str
    message: str


@dataclass(frozen=True, slots=True)
class SessionSnapshot:
    phase: Phase
    chunks: Tuple[Chunk, ...]
    generation: int
    selected_accent: Optional[Accent]
    active_chunk_index: Optional[int]
    last_error: Optional[ErrorInfo]
    transcript: str
    has_audio: bool
    has_synthesized_audio: bool
    has_image: bool

    @property
    def busy(self) -> bool:
        return self.phase in BUSY_PHASES


__all__ = ["BUSY_PHASES", "ErrorInfo", "Phase", "SessionSnapshot"]
