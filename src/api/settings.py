"""API settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field


class APISettings(BaseModel):
    app_name: str = Field(default="Accent Lab Session API")
    version: str = Field(default="1.0.0")
    max_upload_bytes: int = Field(
        default=int(os.getenv("ACCENTLAB_MAX_UPLOAD_BYTES", str(25 * 1024 * 1024)))
    )


@lru_cache()
def get_settings() -> APISettings:
    return APISettings()
