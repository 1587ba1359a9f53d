"""Error kinds surfaced by the session controller."""

from __future__ import annotations


class SessionError(Exception):
    """Base class for recoverable session failures."""

    kind = "SessionError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)


class DeviceUnavailable(SessionError):
    kind = "DeviceUnavailable"


class EmptyRecording(SessionError):
    kind = "EmptyRecording"


class PredictionFailed(SessionError):
    kind = "PredictionFailed"


class SynthesisFailed(SessionError):
    kind = "SynthesisFailed"


class MissingInput(SessionError):
    kind = "MissingInput"


class OperationInProgress(SessionError):
    kind = "OperationInProgress"


class StaleChunkIndex(SessionError):
    kind = "StaleChunkIndex"


class InvalidPhase(SessionError):
    kind = "InvalidPhase"


__all__ = [
    "DeviceUnavailable",
    "EmptyRecording",
    "InvalidPhase",
    "MissingInput",
    "OperationInProgress",
    "PredictionFailed",
    "SessionError",
    "StaleChunkIndex",
    "SynthesisFailed",
]
