"""Client configuration resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field


class ClientConfig(BaseModel):
    prediction_url: str = Field(
        default=os.getenv("ACCENTLAB_PREDICTION_URL", "http://localhost:5000")
    )
    synthesis_url: str = Field(
        default=os.getenv("ACCENTLAB_SYNTHESIS_URL", "http://localhost:5001")
    )
    request_timeout: float = Field(default=float(os.getenv("ACCENTLAB_REQUEST_TIMEOUT", "60")))
    sample_rate: int = Field(default=int(os.getenv("ACCENTLAB_SAMPLE_RATE", "16000")))
    channels: int = Field(default=int(os.getenv("ACCENTLAB_CHANNELS", "1")))
    default_accent: str = Field(default=os.getenv("ACCENTLAB_DEFAULT_ACCENT", "british"))
    log_history: int = Field(default=int(os.getenv("ACCENTLAB_LOG_HISTORY", "200")))


@lru_cache()
def get_config() -> ClientConfig:
    return ClientConfig()


CONFIG = get_config()
