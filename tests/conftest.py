"""Pytest configuration helpers."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_on_path() -> None:
    """Allow tests to import from repo modules without setting PYTHONPATH."""
    repo_root = Path(__file__).resolve().parents[1]
    path_str = str(repo_root)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)


_ensure_repo_on_path()

from mobile.accentlab.audio.recorder import CaptureAdapter  # noqa: E402
from mobile.accentlab.audio.types import AudioBlob  # noqa: E402
from mobile.accentlab.errors import DeviceUnavailable  # noqa: E402
from mobile.accentlab.models import Chunk  # noqa: E402
from mobile.accentlab.services.logger import LogBuffer  # noqa: E402
from mobile.accentlab.services.network import PredictionResult  # noqa: E402
from mobile.accentlab.session.controller import SessionController  # noqa: E402

SPEECH = b"\x10\x27" * 800


class FakeDevice:
    """Capture capability that replays canned fragments on open."""

    def __init__(self) -> None:
        self.fragments: list[bytes] = []
        self.unavailable = False
        self.opened = 0
        self.closed = 0
        self._emit = None

    def open(self, on_fragment) -> None:
        if self.unavailable:
            raise DeviceUnavailable("Microphone unavailable: permission denied")
        self.opened += 1
        self._emit = on_fragment
        for fragment in self.fragments:
            on_fragment(fragment)

    def emit(self, data: bytes) -> None:
        self._emit(data)

    def close(self) -> None:
        self.closed += 1


class FakePredictor:
    """Returns queued results (or raises queued errors) one call at a time."""

    def __init__(self) -> None:
        self.outcomes: list = []
        self.calls: list[AudioBlob] = []
        self.gate = None

    def reply(self, *chunks: Chunk, image_png: bytes | None = None) -> None:
        self.outcomes.append(PredictionResult(chunks=list(chunks), image_png=image_png))

    def fail(self, error: Exception) -> None:
        self.outcomes.append(error)

    async def predict(self, blob: AudioBlob) -> PredictionResult:
        self.calls.append(blob)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeSynthesizer:
    def __init__(self) -> None:
        self.outcomes: list = []
        self.calls: list[tuple] = []
        self.gate = None

    async def synthesize(self, text, accent) -> AudioBlob:
        self.calls.append((text, accent))
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakePlayer:
    def __init__(self) -> None:
        self.played: list[tuple] = []

    def play(self, handle, start: float, end: float) -> None:
        self.played.append((handle, start, end))

    def stop(self) -> None:
        pass


@pytest.fixture()
def logger():
    return LogBuffer(50)


@pytest.fixture()
def device():
    return FakeDevice()


@pytest.fixture()
def predictor():
    return FakePredictor()


@pytest.fixture()
def synthesizer():
    return FakeSynthesizer()


@pytest.fixture()
def player():
    return FakePlayer()


@pytest.fixture()
def capture(device, logger):
    return CaptureAdapter(device, logger, sample_rate=16000, channels=1)


@pytest.fixture()
def controller(capture, predictor, synthesizer, player, logger):
    return SessionController(capture, predictor, synthesizer, player=player, logger=logger)


@pytest.fixture()
def three_chunks():
    return [
        Chunk(start=0, end=1, text="hi", prediction={"british": 0.9, "us": 0.1}),
        Chunk(start=1, end=2, text="there", prediction={"british": 0.7, "us": 0.3}),
        Chunk(start=2, end=3, text="x", prediction={"british": 0.2, "us": 0.8}),
    ]


@pytest.fixture()
def speech():
    return SPEECH
