import base64
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from conftest import make_pdf
from src.api.routers.generate import get_response_service
from src.api.routers.transcribe import get_transcription_service
from src.api.services.responder import ResponseService
from src.api.services.transcription_service import TranscriptionService
from src.api.settings import APISettings, get_settings

FLAC_BYTES = b"fLaC" + b"\x00" * 32


class FakeTranscriptions:
    def __init__(self, text="Tell me about a time you failed.", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeCompletions:
    def __init__(self, content="I once missed a deadline and learned to plan buffers.", error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_openai(transcriptions=None, completions=None):
    return SimpleNamespace(
        audio=SimpleNamespace(transcriptions=transcriptions or FakeTranscriptions()),
        chat=SimpleNamespace(completions=completions or FakeCompletions()),
    )


@pytest.fixture()
def settings():
    return APISettings(openai_api_key="sk-test", google_api_key=None)


@pytest.fixture()
def api_client(settings):
    from src.api.app import create_app

    get_settings.cache_clear()  # type: ignore
    openai_client = fake_openai()
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_transcription_service] = lambda: TranscriptionService(
        settings, openai_client=openai_client
    )
    app.dependency_overrides[get_response_service] = lambda: ResponseService(settings, openai_client=openai_client)
    return TestClient(app), openai_client


def _audio():
    return base64.b64encode(FLAC_BYTES).decode("ascii")


def test_health_reports_provider_configuration(api_client):
    client, _ = api_client
    resp = client.get("/healthz")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["openai"] == "configured"
    assert body["google"] == "missing"


def test_transcribe_returns_text(api_client):
    client, openai_client = api_client
    resp = client.post("/api/transcribe", json={"audio": _audio()})
    assert resp.status_code == 200
    assert resp.json() == {"text": "Tell me about a time you failed."}
    call = openai_client.audio.transcriptions.calls[0]
    assert call["model"] == "whisper-1"
    assert call["language"] == "en"
    assert call["file"][0] == "audio.flac"


def test_transcribe_without_audio_is_bad_request(api_client):
    client, _ = api_client
    resp = client.post("/api/transcribe", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No audio data provided"}


def test_transcribe_provider_failure(settings):
    from src.api.app import create_app

    broken = fake_openai(transcriptions=FakeTranscriptions(error=RuntimeError("upstream down")))
    app = create_app()
    app.dependency_overrides[get_transcription_service] = lambda: TranscriptionService(
        settings, openai_client=broken
    )
    resp = TestClient(app).post("/api/transcribe", json={"audio": _audio()})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to transcribe audio"}


def test_google_transcription_without_key(api_client):
    client, _ = api_client
    resp = client.post("/api/transcribe-google", json={"audio": _audio()})
    assert resp.status_code == 500
    assert "Google AI API key" in resp.json()["error"]


def test_generate_response(api_client):
    client, openai_client = api_client
    resp = client.post(
        "/api/generate-response",
        json={
            "question": "Tell me about a failure.",
            "resume": "Ada Lovelace",
            "jobDescription": "Analyst",
            "userName": "Ada Lovelace",
            "history": [{"role": "user", "content": "Hi"}, {"role": "assistant", "content": "Hello"}],
        },
    )
    assert resp.status_code == 200
    assert resp.json()["text"].startswith("I once missed")
    call = openai_client.chat.completions.calls[0]
    assert call["model"] == "gpt-4.1"
    assert call["messages"][0]["role"] == "system"
    assert "Ada Lovelace" in call["messages"][0]["content"]
    assert call["messages"][-1] == {"role": "user", "content": "Tell me about a failure."}
    assert len(call["messages"]) == 4


def test_generate_requires_question(api_client):
    client, _ = api_client
    resp = client.post("/api/generate-response", json={"question": "  "})
    assert resp.status_code == 400
    assert resp.json() == {"error": "No question provided"}


def test_generate_falls_back_when_completion_fails(settings):
    from src.api.app import create_app

    broken = fake_openai(completions=FakeCompletions(error=RuntimeError("rate limited")))
    app = create_app()
    app.dependency_overrides[get_response_service] = lambda: ResponseService(settings, openai_client=broken)
    resp = TestClient(app).post("/api/generate-response", json={"question": "Why us?"})
    assert resp.status_code == 200
    assert resp.json()["text"] == settings.fallback_answer


def test_generate_without_key_is_server_error():
    from src.api.app import create_app

    unconfigured = APISettings(openai_api_key=None)
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: unconfigured
    resp = TestClient(app).post("/api/generate-response", json={"question": "Why us?"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "OpenAI API key not configured"}


def test_metrics_endpoint(api_client):
    client, _ = api_client
    client.get("/healthz")
    client.get("/wp-login.php")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "prepview_api_requests_total" in resp.text
    assert 'route="/healthz"' in resp.text
    assert 'route="unmatched"' in resp.text
    assert "wp-login" not in resp.text
    assert 'route="/metrics"' not in resp.text


def test_extract_pdf_returns_text(api_client):
    client, _ = api_client
    files = {"file": ("resume.pdf", make_pdf("Ada Lovelace"), "application/pdf")}
    resp = client.post("/api/extract-pdf", files=files)
    assert resp.status_code == 200
    assert "Ada Lovelace" in resp.json()["text"]


def test_extract_pdf_requires_file(api_client):
    client, _ = api_client
    resp = client.post("/api/extract-pdf")
    assert resp.status_code == 400
    assert resp.json() == {"error": "No PDF file provided"}


def test_extract_pdf_rejects_unreadable_upload(api_client):
    client, _ = api_client
    files = {"file": ("resume.pdf", b"definitely not a pdf", "application/pdf")}
    resp = client.post("/api/extract-pdf", files=files)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to extract PDF text"}
