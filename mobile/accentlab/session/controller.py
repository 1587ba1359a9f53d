"""Session state machine driving capture, prediction, re-recording and synthesis."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Protocol

from ..audio.playback import AudioHandle, AudioPlayer
from ..audio.recorder import CaptureAdapter
from ..audio.types import AudioBlob
from ..errors import (
    DeviceUnavailable,
    EmptyRecording,
    InvalidPhase,
    MissingInput,
    OperationInProgress,
    PredictionFailed,
    SessionError,
    StaleChunkIndex,
    SynthesisFailed,
)
from ..models import Accent, Chunk
from ..services.logger import LogBuffer
from ..services.network import ApiError, PredictionResult
from ..store.chunk_store import ChunkStore
from .state import BUSY_PHASES, ErrorInfo, Phase, SessionSnapshot

Listener = Callable[[SessionSnapshot], None]


class Predictor(Protocol):
    async def predict(self, blob: AudioBlob) -> PredictionResult: ...


class Synthesizer(Protocol):
    async def synthesize(self, text: str, accent: Accent) -> AudioBlob: ...


class SessionController:
    """Owns all session state; one mutating operation may run at a time.

    Intents either complete, or record ``last_error``, return the session to
    its resting phase (``reviewing`` while a transcript exists, else ``idle``)
    and raise the matching :class:`SessionError`.

    Service calls are never cancelled. When one lands after :meth:`reset` or
    after the phase moved on, its result is dropped. Chunk re-recordings are
    additionally checked against the store generation seen at start.
    """

    def __init__(
        self,
        capture: CaptureAdapter,
        predictor: Predictor,
        synthesizer: Synthesizer,
        *,
        player: AudioPlayer | None = None,
        logger: LogBuffer | None = None,
        store: ChunkStore | None = None,
        default_accent: Accent | str | None = Accent.BRITISH,
    ) -> None:
        self.capture = capture
        self.predictor = predictor
        self.synthesizer = synthesizer
        self.player = player
        self.logger = logger or LogBuffer()
        self.store = store or ChunkStore()
        self._phase = Phase.IDLE
        self._accent: Optional[Accent] = Accent(default_accent) if default_accent else None
        self._full_audio: Optional[AudioHandle] = None
        self._synthesized_audio: Optional[AudioHandle] = None
        self._image_png: Optional[bytes] = None
        self._transcript_override: Optional[str] = None
        self._active_chunk_index: Optional[int] = None
        self._active_chunk_generation: Optional[int] = None
        self._session_generation = 0
        self._last_error: Optional[ErrorInfo] = None
        self._listeners: List[Listener] = []

    # -- observation -----------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        return self.store.snapshot()

    @property
    def last_error(self) -> Optional[ErrorInfo]:
        return self._last_error

    @property
    def selected_accent(self) -> Optional[Accent]:
        return self._accent

    @property
    def active_chunk_index(self) -> Optional[int]:
        return self._active_chunk_index

    @property
    def full_audio(self) -> Optional[AudioHandle]:
        return self._full_audio

    @property
    def synthesized_audio(self) -> Optional[AudioHandle]:
        return self._synthesized_audio

    @property
    def image_png(self) -> Optional[bytes]:
        return self._image_png

    @property
    def session_generation(self) -> int:
        return self._session_generation

    @property
    def transcript(self) -> str:
        if self._transcript_override is not None:
            return self._transcript_override
        return self.store.joined_text()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            phase=self._phase,
            chunks=self.store.snapshot(),
            generation=self.store.generation,
            selected_accent=self._accent,
            active_chunk_index=self._active_chunk_index,
            last_error=self._last_error,
            transcript=self.transcript,
            has_audio=self._full_audio is not None,
            has_synthesized_audio=self._synthesized_audio is not None,
            has_image=self._image_png is not None,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with a fresh snapshot after every state change."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # -- full capture / upload -------------------------------------------

    def start_capture(self) -> None:
        self._require(Phase.IDLE, Phase.REVIEWING, action="start recording")
        self._last_error = None
        try:
            self.capture.start()
        except (DeviceUnavailable, OperationInProgress) as exc:
            self._fail(exc)
            raise
        self._transition(Phase.CAPTURING)

    async def stop_capture(self) -> None:
        self._require(Phase.CAPTURING, action="stop recording")
        blob = self.capture.finalize(self.capture.stop())
        if blob.is_empty:
            raise self._fail(EmptyRecording("Recorded audio is empty"), self._resting_phase())
        await self._predict_full(blob)

    async def upload_audio(self, blob: AudioBlob) -> None:
        self._require(Phase.IDLE, Phase.REVIEWING, action="upload audio")
        if blob.is_empty:
            raise self._fail(EmptyRecording("Selected audio file is empty"))
        self._last_error = None
        await self._predict_full(blob)

    async def _predict_full(self, blob: AudioBlob) -> None:
        token = self._session_generation
        self._transition(Phase.UPLOADING)
        self.logger.add(f"Uploading {len(blob)} bytes for prediction")
        try:
            result = await self.predictor.predict(blob)
        except ApiError as exc:
            if self._is_stale(token, Phase.UPLOADING):
                self.logger.add(f"Ignoring failed upload from an abandoned session: {exc}")
                return
            raise self._fail(PredictionFailed(str(exc)), self._resting_phase()) from exc
        except BaseException:
            self._abandon(token, Phase.UPLOADING)
            raise
        if self._is_stale(token, Phase.UPLOADING):
            self.logger.add("Ignoring prediction for an abandoned session")
            return
        if not result.chunks:
            raise self._fail(PredictionFailed("No speech was recognised"), self._resting_phase())
        self.store.replace_all(result.chunks)
        self._replace_full_audio(AudioHandle(blob))
        self._image_png = result.image_png
        self._transcript_override = None
        self._release_synthesized_audio()
        self.logger.add(f"Transcript ready: {len(result.chunks)} chunk(s)")
        self._transition(Phase.REVIEWING)

    # -- single chunk re-recording ---------------------------------------

    def start_chunk_capture(self, index: int) -> None:
        self._require(Phase.REVIEWING, action="re-record a chunk")
        if not self.store.is_valid_index(index):
            raise self._fail(MissingInput(f"There is no chunk {index}"))
        self._last_error = None
        try:
            self.capture.start()
        except (DeviceUnavailable, OperationInProgress) as exc:
            self._fail(exc)
            raise
        self._active_chunk_index = index
        self._active_chunk_generation = self.store.generation
        self.logger.add(f"Re-recording chunk {index}")
        self._transition(Phase.CHUNK_CAPTURING)

    async def stop_chunk_capture(self) -> None:
        self._require(Phase.CHUNK_CAPTURING, action="stop re-recording")
        index = self._active_chunk_index
        generation = self._active_chunk_generation
        blob = self.capture.finalize(self.capture.stop())
        if blob.is_empty:
            self._clear_active_chunk()
            raise self._fail(
                EmptyRecording(f"Re-recording of chunk {index} is empty"), self._resting_phase()
            )
        token = self._session_generation
        self._transition(Phase.CHUNK_UPLOADING)
        try:
            result = await self.predictor.predict(blob)
        except ApiError as exc:
            if self._is_stale(token, Phase.CHUNK_UPLOADING):
                self.logger.add(f"Ignoring failed re-recording from an abandoned session: {exc}")
                return
            self._clear_active_chunk()
            raise self._fail(PredictionFailed(str(exc)), self._resting_phase()) from exc
        except BaseException:
            self._abandon(token, Phase.CHUNK_UPLOADING)
            raise
        if self._is_stale(token, Phase.CHUNK_UPLOADING):
            self.logger.add(f"Ignoring re-recording of chunk {index} for an abandoned session")
            return
        self._clear_active_chunk()
        if not result.chunks:
            raise self._fail(
                PredictionFailed("No speech was recognised in the re-recording"),
                self._resting_phase(),
            )
        if len(result.chunks) > 1:
            self.logger.add(
                f"Re-recording returned {len(result.chunks)} chunks; keeping the first",
                logging.WARNING,
            )
        try:
            self.store.replace_at(index, result.chunks[0], expected_generation=generation)
        except StaleChunkIndex as exc:
            self._fail(exc, self._resting_phase())
            raise
        self.logger.add(f"Chunk {index} replaced")
        self._transition(Phase.REVIEWING)

    # -- synthesis --------------------------------------------------------

    async def request_synthesis(self) -> None:
        if self._phase in BUSY_PHASES:
            raise self._fail(OperationInProgress(f"Cannot synthesize while {self._phase.value}"))
        if self._phase is not Phase.REVIEWING:
            raise self._fail(MissingInput("Record or upload audio before synthesizing"))
        text = self.transcript.strip()
        if not text:
            raise self._fail(MissingInput("Transcript text is empty"))
        if self._accent is None:
            raise self._fail(MissingInput("Select an accent first"))
        accent = self._accent
        token = self._session_generation
        self._last_error = None
        self._transition(Phase.SYNTHESIZING)
        try:
            blob = await self.synthesizer.synthesize(text, accent)
        except ApiError as exc:
            if self._is_stale(token, Phase.SYNTHESIZING):
                self.logger.add(f"Ignoring failed synthesis from an abandoned session: {exc}")
                return
            raise self._fail(SynthesisFailed(str(exc)), self._resting_phase()) from exc
        except BaseException:
            self._abandon(token, Phase.SYNTHESIZING)
            raise
        if self._is_stale(token, Phase.SYNTHESIZING):
            self.logger.add("Ignoring synthesized audio for an abandoned session")
            return
        self._release_synthesized_audio()
        self._synthesized_audio = AudioHandle(blob)
        self.logger.add(f"Synthesized {len(blob)} bytes in {accent.value} accent")
        self._transition(self._resting_phase())

    # -- read-only and settings intents ------------------------------------

    def play_chunk(self, index: int) -> None:
        if self._full_audio is None:
            raise self._fail(MissingInput("No audio loaded"))
        if not self.store.is_valid_index(index):
            raise self._fail(MissingInput(f"There is no chunk {index}"))
        if self.player is None:
            raise self._fail(DeviceUnavailable("No audio output configured"))
        chunk = self.store[index]
        try:
            self.player.play(self._full_audio, chunk.start, chunk.end)
        except SessionError as exc:
            self._fail(exc)
            raise
        self.logger.add(f"Playing chunk {index} ({chunk.start:.2f}s - {chunk.end:.2f}s)")

    def select_accent(self, accent: Accent | str | None) -> None:
        if accent is None:
            self._accent = None
        else:
            try:
                self._accent = Accent(accent)
            except ValueError:
                raise self._fail(MissingInput(f"Unknown accent '{accent}'")) from None
        self.logger.add(f"Accent set to {self._accent.value if self._accent else 'none'}")
        self._notify()

    def set_transcript(self, text: str | None) -> None:
        """Override the text sent to synthesis; ``None`` restores the chunk text."""
        self._transcript_override = text
        self._notify()

    def reset(self) -> None:
        """Abandon the current workflow and return to ``idle``."""
        if self._phase in (Phase.CAPTURING, Phase.CHUNK_CAPTURING):
            self.capture.stop()
        self._session_generation += 1
        self.store.clear()
        self._replace_full_audio(None)
        self._release_synthesized_audio()
        self._image_png = None
        self._transcript_override = None
        self._clear_active_chunk()
        self._last_error = None
        self.logger.add("Session reset")
        self._transition(Phase.IDLE)

    async def aclose(self) -> None:
        self.reset()
        for client in (self.predictor, self.synthesizer):
            closer = getattr(client, "aclose", None)
            if closer is not None:
                await closer()

    # -- internals --------------------------------------------------------

    def _require(self, *allowed: Phase, action: str) -> None:
        if self._phase in allowed:
            return
        message = f"Cannot {action} while {self._phase.value}"
        if self._phase in BUSY_PHASES:
            raise self._fail(OperationInProgress(message))
        raise self._fail(InvalidPhase(message))

    def _resting_phase(self) -> Phase:
        return Phase.REVIEWING if len(self.store) else Phase.IDLE

    def _is_stale(self, token: int, expected: Phase) -> bool:
        return token != self._session_generation or self._phase is not expected

    def _abandon(self, token: int, expected: Phase) -> None:
        if self._is_stale(token, expected):
            return
        self._clear_active_chunk()
        self._transition(self._resting_phase())

    def _clear_active_chunk(self) -> None:
        self._active_chunk_index = None
        self._active_chunk_generation = None

    def _replace_full_audio(self, handle: AudioHandle | None) -> None:
        previous, self._full_audio = self._full_audio, handle
        if previous is not None:
            previous.release()
            self.logger.add(f"Released audio {previous.handle_id[:6]}")

    def _release_synthesized_audio(self) -> None:
        previous, self._synthesized_audio = self._synthesized_audio, None
        if previous is not None:
            previous.release()

    def _set_phase(self, phase: Phase) -> None:
        if phase is not self._phase:
            self.logger.add(f"Phase {self._phase.value} -> {phase.value}")
            self._phase = phase

    def _transition(self, phase: Phase) -> None:
        self._set_phase(phase)
        self._notify()

    def _fail(self, error: SessionError, phase: Phase | None = None) -> SessionError:
        if phase is not None:
            self._set_phase(phase)
        self._last_error = ErrorInfo(error.kind, str(error))
        self.logger.add(f"{error.kind}: {error}", logging.WARNING)
        self._notify()
        return error

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                self.logger.add(f"State listener failed: {exc}", logging.WARNING)


__all__ = ["Listener", "Predictor", "SessionController", "Synthesizer"]
