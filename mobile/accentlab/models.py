"""Transcript chunk and prediction payload models."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Accent(str, Enum):
    BRITISH = "british"
    US = "us"


class Chunk(BaseModel):
    """Timestamped transcript segment (seconds) with per-accent probabilities."""

    model_config = ConfigDict(frozen=True)

    start: float = Field(ge=0.0)
    end: float = Field(ge=0.0)
    text: str = ""
    prediction: Dict[str, float] = Field(default_factory=dict)

    @field_validator("prediction")
    @classmethod
    def _check_probabilities(cls, value: Dict[str, float]) -> Dict[str, float]:
        for label, probability in value.items():
            if not 0.0 <= probability <= 1.0:
                raise ValueError(f"probability for '{label}' outside [0, 1]: {probability}")
        return value

    @model_validator(mode="after")
    def _check_range(self) -> "Chunk":
        if self.start > self.end:
            raise ValueError(f"chunk start {self.start} is after end {self.end}")
        return self

    def top_accent(self) -> str | None:
        if not self.prediction:
            return None
        return max(self.prediction.items(), key=lambda item: item[1])[0]


class PredictionResponse(BaseModel):
    """Body returned by the prediction service."""

    image_base64: str | None = None
    chunks: List[Chunk] = Field(default_factory=list)


__all__ = ["Accent", "Chunk", "PredictionResponse"]
