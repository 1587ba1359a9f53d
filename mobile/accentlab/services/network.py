"""HTTP clients for the prediction and synthesis services."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..audio.types import AudioBlob
from ..models import Accent, Chunk, PredictionResponse


class ApiError(Exception):
    pass


@dataclass(slots=True)
class PredictionResult:
    chunks: List[Chunk]
    image_png: bytes | None = None


class _ServiceClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _url(self, path: str) -> str:
        base = self.base_url.rstrip("/")
        if not base:
            raise ApiError("Service URL missing")
        return f"{base}{path}"

    async def aclose(self) -> None:
        await self._client.aclose()


class PredictionClient(_ServiceClient):
    """Uploads one audio blob and returns the parsed chunk sequence."""

    async def predict(self, blob: AudioBlob) -> PredictionResult:
        try:
            files = {"file": (blob.filename, blob.data, blob.mime_type)}
            resp = await self._client.post(self._url("/predict"), files=files)
            resp.raise_for_status()
            try:
                payload = resp.json()
            except ValueError as exc:
                raise ApiError(f"Invalid response: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise ApiError(f"Prediction failed: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"Prediction service unreachable: {exc}") from exc
        try:
            parsed = PredictionResponse.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(f"Invalid prediction payload: {exc.error_count()} error(s)") from exc
        return PredictionResult(chunks=list(parsed.chunks), image_png=_decode_image(parsed.image_base64))


class SynthesisClient(_ServiceClient):
    """Turns transcript text into speech in the requested accent."""

    async def synthesize(self, text: str, accent: Accent | str) -> AudioBlob:
        label = accent.value if isinstance(accent, Accent) else str(accent)
        try:
            resp = await self._client.post(
                self._url("/synthesize"),
                json={"text": text, "accent": label},
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ApiError(f"Synthesis failed: {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise ApiError(f"Synthesis service unreachable: {exc}") from exc
        if not resp.content:
            raise ApiError("Synthesis returned no audio")
        mime = resp.headers.get("content-type", "audio/wav").split(";")[0].strip()
        return AudioBlob(resp.content, mime_type=mime or "audio/wav", filename="synthesized.wav")


def _decode_image(value: str | None) -> bytes | None:
    if not value:
        return None
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ApiError(f"Invalid image artifact: {exc}") from exc


__all__ = ["ApiError", "PredictionClient", "PredictionResult", "SynthesisClient"]
