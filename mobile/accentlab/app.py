"""Wires devices, service clients and the session controller together."""

from __future__ import annotations

from typing import Callable

from .audio.playback import SoundDevicePlayer
from .audio.recorder import CaptureAdapter, SoundDeviceInput
from .config import ClientConfig, get_config
from .services.logger import LogBuffer
from .services.network import PredictionClient, SynthesisClient
from .session.controller import SessionController


def build_session(
    config: ClientConfig | None = None,
    *,
    logger: LogBuffer | None = None,
    level_callback: Callable[[float], None] | None = None,
) -> SessionController:
    config = config or get_config()
    logger = logger or LogBuffer(config.log_history)
    capture = CaptureAdapter(
        SoundDeviceInput(config.sample_rate, config.channels),
        logger,
        sample_rate=config.sample_rate,
        channels=config.channels,
        level_callback=level_callback,
    )
    return SessionController(
        capture,
        PredictionClient(config.prediction_url, timeout=config.request_timeout),
        SynthesisClient(config.synthesis_url, timeout=config.request_timeout),
        player=SoundDevicePlayer(),
        logger=logger,
        default_accent=config.default_accent or None,
    )


__all__ = ["build_session"]
