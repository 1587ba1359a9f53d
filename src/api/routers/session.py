"""Session intents and state observation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile

from mobile.accentlab.audio.types import AudioBlob
from mobile.accentlab.session.controller import SessionController

from ..schemas import AccentRequest, LogResponse, SessionStateResponse, TranscriptRequest
from ..settings import APISettings, get_settings

router = APIRouter(prefix="/v1/session", tags=["session"])


def get_controller(request: Request) -> SessionController:
    return request.app.state.controller


def _state(controller: SessionController) -> SessionStateResponse:
    return SessionStateResponse.from_snapshot(controller.snapshot())


@router.get("", response_model=SessionStateResponse)
async def read_session(controller: SessionController = Depends(get_controller)):
    return _state(controller)


@router.post("/capture/start", response_model=SessionStateResponse)
async def start_capture(controller: SessionController = Depends(get_controller)):
    controller.start_capture()
    return _state(controller)


@router.post("/capture/stop", response_model=SessionStateResponse)
async def stop_capture(controller: SessionController = Depends(get_controller)):
    await controller.stop_capture()
    return _state(controller)


@router.post("/upload", response_model=SessionStateResponse)
async def upload_audio(
    file: UploadFile = File(...),
    controller: SessionController = Depends(get_controller),
    settings: APISettings = Depends(get_settings),
):
    data = await file.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Audio file too large")
    blob = AudioBlob(
        data,
        mime_type=file.content_type or "audio/wav",
        filename=file.filename or "audio.wav",
    )
    await controller.upload_audio(blob)
    return _state(controller)


@router.post("/chunks/{index}/capture/start", response_model=SessionStateResponse)
async def start_chunk_capture(index: int, controller: SessionController = Depends(get_controller)):
    controller.start_chunk_capture(index)
    return _state(controller)


@router.post("/chunks/capture/stop", response_model=SessionStateResponse)
async def stop_chunk_capture(controller: SessionController = Depends(get_controller)):
    await controller.stop_chunk_capture()
    return _state(controller)


@router.post("/chunks/{index}/play", response_model=SessionStateResponse)
async def play_chunk(index: int, controller: SessionController = Depends(get_controller)):
    controller.play_chunk(index)
    return _state(controller)


@router.put("/accent", response_model=SessionStateResponse)
async def select_accent(payload: AccentRequest, controller: SessionController = Depends(get_controller)):
    controller.select_accent(payload.accent)
    return _state(controller)


@router.put("/transcript", response_model=SessionStateResponse)
async def set_transcript(payload: TranscriptRequest, controller: SessionController = Depends(get_controller)):
    controller.set_transcript(payload.text)
    return _state(controller)


@router.post("/synthesize", response_model=SessionStateResponse)
async def synthesize(controller: SessionController = Depends(get_controller)):
    await controller.request_synthesis()
    return _state(controller)


@router.post("/reset", response_model=SessionStateResponse)
async def reset_session(controller: SessionController = Depends(get_controller)):
    controller.reset()
    return _state(controller)


@router.get("/audio")
async def read_audio(controller: SessionController = Depends(get_controller)):
    handle = controller.full_audio
    if handle is None:
        raise HTTPException(status_code=404, detail="No audio loaded")
    blob = handle.read()
    return Response(content=blob.data, media_type=blob.mime_type)


@router.get("/synthesized")
async def read_synthesized(controller: SessionController = Depends(get_controller)):
    handle = controller.synthesized_audio
    if handle is None:
        raise HTTPException(status_code=404, detail="No synthesized audio yet")
    blob = handle.read()
    return Response(content=blob.data, media_type=blob.mime_type)


@router.get("/image")
async def read_image(controller: SessionController = Depends(get_controller)):
    if controller.image_png is None:
        raise HTTPException(status_code=404, detail="No prediction image yet")
    return Response(content=controller.image_png, media_type="image/png")


@router.get("/log", response_model=LogResponse)
async def read_log(controller: SessionController = Depends(get_controller)):
    lines = controller.logger.get()
    return LogResponse(count=len(lines), lines=lines)
