import base64
import json

import httpx
import pytest

from conftest import tone
from prepview.audio.types import AudioChunk, AudioSegment
from prepview.services.network import (
    ApiClient,
    ApiError,
    GenerationError,
    ResponseClient,
    TranscriptionError,
    TranscriptionGateway,
)


def make_client(handler, retries=1):
    transport = httpx.MockTransport(handler)
    return ApiClient(
        "https://api.example.com",
        retries=retries,
        client=httpx.Client(transport=transport, base_url="https://api.example.com"),
    )


def make_segment():
    samples = tone(800)
    return AudioSegment(1000, 1, [AudioChunk(samples.tobytes(), len(samples))])


def test_transcribe_posts_base64_flac_to_provider_path():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        body = json.loads(request.content)
        seen["audio"] = base64.b64decode(body["audio"])
        return httpx.Response(200, json={"text": "  Tell me about yourself.  "})

    gateway = TranscriptionGateway(make_client(handler), provider="openai")
    assert gateway.transcribe(make_segment()) == "Tell me about yourself."
    assert seen["path"] == "/api/transcribe"
    assert seen["audio"][:4] == b"fLaC"


def test_provider_is_read_at_call_time():
    paths = []
    current = {"provider": "openai"}

    def handler(request):
        paths.append(request.url.path)
        return httpx.Response(200, json={"text": "hi"})

    gateway = TranscriptionGateway(make_client(handler), provider=lambda: current["provider"])
    gateway.transcribe(make_segment())
    current["provider"] = "google"
    gateway.transcribe(make_segment())
    current["provider"] = "unknown"
    gateway.transcribe(make_segment())
    assert paths == ["/api/transcribe", "/api/transcribe-google", "/api/transcribe"]


def test_empty_text_is_not_an_error():
    gateway = TranscriptionGateway(make_client(lambda request: httpx.Response(200, json={"text": ""})))
    assert gateway.transcribe(make_segment()) == ""


def test_service_error_raises_transcription_error():
    gateway = TranscriptionGateway(
        make_client(lambda request: httpx.Response(400, json={"error": "No audio data provided"}))
    )
    with pytest.raises(TranscriptionError):
        gateway.transcribe(make_segment())


def test_non_string_text_is_rejected():
    gateway = TranscriptionGateway(make_client(lambda request: httpx.Response(200, json={"text": 42})))
    with pytest.raises(TranscriptionError):
        gateway.transcribe(make_segment())


def test_server_error_is_retried_once():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"text": "second try"})

    gateway = TranscriptionGateway(make_client(handler))
    assert gateway.transcribe(make_segment()) == "second try"
    assert len(calls) == 2


def test_timeout_exhausts_retries():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    client = make_client(handler, retries=1)
    with pytest.raises(ApiError):
        client.post_json("/api/transcribe", {"audio": ""})
    assert len(calls) == 2


def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(404)

    with pytest.raises(ApiError) as excinfo:
        make_client(handler).post_json("/api/transcribe", {})
    assert "404" in str(excinfo.value)
    assert len(calls) == 1


def test_generate_sends_context_and_caps_history():
    seen = {}

    def handler(request):
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"text": "I led the migration."})

    responder = ResponseClient(make_client(handler), history_limit=6)
    history = [{"role": "user", "content": f"q{i}"} for i in range(10)]
    answer = responder.generate(
        "What did you build?",
        resume="Ada Lovelace",
        job_description="Engineer",
        user_name="Ada Lovelace",
        history=history,
    )

    assert answer == "I led the migration."
    assert seen["jobDescription"] == "Engineer"
    assert seen["userName"] == "Ada Lovelace"
    assert [item["content"] for item in seen["history"]] == [f"q{i}" for i in range(4, 10)]


def test_generate_empty_answer_raises():
    responder = ResponseClient(make_client(lambda request: httpx.Response(200, json={"text": " "})))
    with pytest.raises(GenerationError):
        responder.generate("Why us?")


def test_health_check():
    def handler(request):
        assert request.url.path == "/healthz"
        return httpx.Response(200, json={"ok": True})

    assert make_client(handler).test_connection() is True
