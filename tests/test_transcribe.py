import httpx
import pytest

from app.core.errors import TranscriptionFailed
from app.services.stt.deepgram_service import DeepgramTranscriber
from app.services.stt.whisper_service import WhisperService, _dedupe_sentences
from fakes import FakeTranscriber, run

API = "/api"


def deepgram(handler, key="dg-key"):
    return DeepgramTranscriber(api_key=key, transport=httpx.MockTransport(handler))


def test_deepgram_posts_raw_audio():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"results": {"channels": [{"alternatives": [{"transcript": " Hello world. "}]}]}})

    text = run(deepgram(handler).transcribe(b"\x00\x01", "audio/ogg"))
    assert text == "Hello world."
    req = seen[0]
    assert req.headers["authorization"] == "Token dg-key"
    assert req.headers["content-type"] == "audio/ogg"
    assert req.url.params["model"] == "nova-2"
    assert req.url.params["smart_format"] == "true"
    assert req.content == b"\x00\x01"


def test_deepgram_errors_become_transcription_failed():
    for response in (httpx.Response(500, text="oops"), httpx.Response(200, json={"results": {}})):
        with pytest.raises(TranscriptionFailed):
            run(deepgram(lambda r, resp=response: resp).transcribe(b"x"))
    with pytest.raises(TranscriptionFailed):
        run(deepgram(lambda r: httpx.Response(200), key="").transcribe(b"x"))


def test_whisper_output_loops_are_collapsed():
    assert _dedupe_sentences("Hello there. Hello there. Hello there! Bye.") == "Hello there. Bye."


def test_whisper_decode_errors_become_transcription_failed(monkeypatch):
    class UndecodableModel:
        def transcribe(self, path, **kwargs):
            raise ValueError("Invalid data found when processing input")

    monkeypatch.setattr(WhisperService, "_model", UndecodableModel())
    monkeypatch.setattr(WhisperService, "_loaded_name", "base.en")
    with pytest.raises(TranscriptionFailed):
        run(WhisperService("base.en").transcribe(b"not audio", "audio/webm"))


def test_transcribe_endpoint(client, transcriber):
    r = client.post(f"{API}/transcribe", content=b"audio-bytes", headers={"Content-Type": "audio/webm"})
    assert r.status_code == 200
    assert r.json() == {"transcript": transcriber.text}
    assert transcriber.received == [(b"audio-bytes", "audio/webm")]


def test_transcribe_endpoint_rejects_empty_body(client):
    r = client.post(f"{API}/transcribe", content=b"", headers={"Content-Type": "audio/webm"})
    assert r.status_code == 400
    assert "error" in r.json()


def test_transcribe_endpoint_reports_remote_failure(client, transcriber):
    transcriber.error = TranscriptionFailed("Transcription failed (HTTP 500).")
    r = client.post(f"{API}/transcribe", content=b"x", headers={"Content-Type": "audio/webm"})
    assert r.status_code == 502
    assert r.json() == {"error": "Transcription failed (HTTP 500)."}


def test_transcribe_endpoint_without_configuration(client, transcriber):
    transcriber.configured = False
    r = client.post(f"{API}/transcribe", content=b"x")
    assert r.status_code == 500
