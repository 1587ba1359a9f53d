import asyncio
import base64
import json

import httpx
import pytest

from mobile.accentlab.audio.types import AudioBlob
from mobile.accentlab.models import Accent
from mobile.accentlab.services.network import ApiError, PredictionClient, SynthesisClient


def make_prediction_client(transport):
    return PredictionClient(
        "http://predict.example.com",
        client=httpx.AsyncClient(transport=transport),
    )


def make_synthesis_client(transport):
    return SynthesisClient(
        "http://synth.example.com/",
        client=httpx.AsyncClient(transport=transport),
    )


def test_predict_success():
    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/predict"
        body = request.content.decode("utf-8", errors="ignore")
        assert 'name="file"' in body
        assert 'filename="audio.wav"' in body
        return httpx.Response(
            200,
            json={
                "image_base64": base64.b64encode(b"png-bytes").decode(),
                "chunks": [
                    {"start": 0, "end": 1, "text": "hi", "prediction": {"british": 0.9, "us": 0.1}},
                    {"start": 1, "end": 2, "text": "there", "prediction": {"british": 0.2, "us": 0.8}},
                ],
            },
        )

    client = make_prediction_client(httpx.MockTransport(handler))
    result = asyncio.run(client.predict(AudioBlob(b"RIFF....")))
    assert [chunk.text for chunk in result.chunks] == ["hi", "there"]
    assert result.image_png == b"png-bytes"


def test_predict_http_error():
    client = make_prediction_client(httpx.MockTransport(lambda request: httpx.Response(500)))
    with pytest.raises(ApiError) as excinfo:
        asyncio.run(client.predict(AudioBlob(b"data")))
    assert "500" in str(excinfo.value)


def test_predict_rejects_malformed_chunks():
    def handler(request):
        return httpx.Response(200, json={"chunks": [{"start": 3, "end": 1, "text": "bad"}]})

    client = make_prediction_client(httpx.MockTransport(handler))
    with pytest.raises(ApiError):
        asyncio.run(client.predict(AudioBlob(b"data")))


def test_predict_rejects_non_json():
    client = make_prediction_client(
        httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
    )
    with pytest.raises(ApiError):
        asyncio.run(client.predict(AudioBlob(b"data")))


def test_predict_connection_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = make_prediction_client(httpx.MockTransport(handler))
    with pytest.raises(ApiError) as excinfo:
        asyncio.run(client.predict(AudioBlob(b"data")))
    assert "unreachable" in str(excinfo.value)


def test_synthesize_posts_json_and_returns_audio():
    def handler(request):
        assert request.url.path == "/synthesize"
        assert json.loads(request.content) == {"text": "hello there", "accent": "us"}
        return httpx.Response(200, content=b"ID3audio", headers={"content-type": "audio/mpeg"})

    client = make_synthesis_client(httpx.MockTransport(handler))
    blob = asyncio.run(client.synthesize("hello there", Accent.US))
    assert blob.data == b"ID3audio"
    assert blob.mime_type == "audio/mpeg"


def test_synthesize_empty_body_is_error():
    client = make_synthesis_client(httpx.MockTransport(lambda request: httpx.Response(200)))
    with pytest.raises(ApiError):
        asyncio.run(client.synthesize("hello", "british"))
