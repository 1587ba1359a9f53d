"""Pydantic schemas for API contracts."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field

from mobile.accentlab.session.state import SessionSnapshot


class ChunkOut(BaseModel):
    index: int
    start: float
    end: float
    text: str
    prediction: Dict[str, float] = Field(default_factory=dict)


class ErrorOut(BaseModel):
    error: str
    message: str


class SessionStateResponse(BaseModel):
    phase: str
    busy: bool
    generation: int
    selected_accent: str | None = None
    active_chunk_index: int | None = None
    last_error: ErrorOut | None = None
    transcript: str = ""
    has_audio: bool = False
    has_synthesized_audio: bool = False
    has_image: bool = False
    chunks: List[ChunkOut] = Field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionStateResponse":
        error = snapshot.last_error
        return cls(
            phase=snapshot.phase.value,
            busy=snapshot.busy,
            generation=snapshot.generation,
            selected_accent=snapshot.selected_accent.value if snapshot.selected_accent else None,
            active_chunk_index=snapshot.active_chunk_index,
            last_error=ErrorOut(error=error.kind, message=error.message) if error else None,
            transcript=snapshot.transcript,
            has_audio=snapshot.has_audio,
            has_synthesized_audio=snapshot.has_synthesized_audio,
            has_image=snapshot.has_image,
            chunks=[
                ChunkOut(
                    index=idx,
                    start=chunk.start,
                    end=chunk.end,
                    text=chunk.text,
                    prediction=dict(chunk.prediction),
                )
                for idx, chunk in enumerate(snapshot.chunks)
            ],
        )


class AccentRequest(BaseModel):
    accent: str | None = None


class TranscriptRequest(BaseModel):
    text: str | None = None


class LogResponse(BaseModel):
    count: int
    lines: List[str]


class HealthResponse(BaseModel):
    ok: bool
    phase: str
    timestamp: datetime
