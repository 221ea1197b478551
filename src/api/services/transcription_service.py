"""Speech-to-text through OpenAI or Google AI for base64 audio payloads."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional, Tuple

import httpx
from openai import AsyncOpenAI

from ..metrics import TRANSCRIPTION_COUNTER
from ..settings import APISettings

LOGGER = logging.getLogger("prepview.api.transcription")

GOOGLE_PROMPT = (
    "Transcribe this audio accurately. Return only the transcription text "
    "without any additional commentary."
)


class ConfigurationError(RuntimeError):
    """A provider key required for the request is not configured."""


class AudioPayloadError(ValueError):
    """The request carried no usable audio."""


class ProviderError(RuntimeError):
    """The upstream AI provider failed."""


def decode_audio(payload: str | None, max_bytes: int) -> bytes:
    if not payload:
        raise AudioPayloadError("No audio data provided")
    if "," in payload and payload.startswith("data:"):
        payload = payload.split(",", 1)[1]
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AudioPayloadError("Audio is not valid base64") from exc
    if not data:
        raise AudioPayloadError("No audio data provided")
    if len(data) > max_bytes:
        raise AudioPayloadError("Audio payload too large")
    return data


def guess_audio_format(data: bytes) -> Tuple[str, str]:
    """File extension and MIME type sniffed from the container magic bytes."""

    if data.startswith(b"fLaC"):
        return "flac", "audio/flac"
    if data.startswith(b"RIFF") and data[8:12] == b"WAVE":
        return "wav", "audio/wav"
    if data.startswith(b"OggS"):
        return "ogg", "audio/ogg"
    if data.startswith(b"ID3") or data[:2] in (b"\xff\xfb", b"\xff\xf3"):
        return "mp3", "audio/mpeg"
    return "webm", "audio/webm"


class TranscriptionService:
    def __init__(
        self,
        settings: APISettings,
        *,
        openai_client: Optional[AsyncOpenAI] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings
        self._openai_client = openai_client
        self._http_client = http_client

    def _openai(self) -> AsyncOpenAI:
        if self._openai_client is None:
            if not self.settings.openai_api_key:
                raise ConfigurationError("OpenAI API key not configured")
            self._openai_client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
                timeout=self.settings.request_timeout,
            )
        return self._openai_client

    async def transcribe_openai(self, audio: str | None) -> str:
        client = self._openai()
        data = decode_audio(audio, self.settings.max_audio_bytes)
        ext, mime = guess_audio_format(data)
        try:
            transcription = await client.audio.transcriptions.create(
                model=self.settings.transcription_model,
                file=(f"audio.{ext}", data, mime),
                language=self.settings.transcription_language,
            )
        except Exception as exc:
            TRANSCRIPTION_COUNTER.labels(provider="openai", status="error").inc()
            LOGGER.error("OpenAI transcription failed: %s", exc)
            raise ProviderError("Failed to transcribe audio") from exc
        TRANSCRIPTION_COUNTER.labels(provider="openai", status="success").inc()
        return (transcription.text or "").strip()

    async def transcribe_google(self, audio: str | None) -> str:
        if not self.settings.google_api_key:
            raise ConfigurationError("Google AI API key not configured")
        data = decode_audio(audio, self.settings.max_audio_bytes)
        _, mime = guess_audio_format(data)
        url = (
            f"{self.settings.google_api_base.rstrip('/')}/models/"
            f"{self.settings.google_transcription_model}:generateContent"
        )
        body = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"inline_data": {"mime_type": mime, "data": base64.b64encode(data).decode("ascii")}},
                        {"text": GOOGLE_PROMPT},
                    ],
                }
            ]
        }
        try:
            if self._http_client is not None:
                resp = await self._http_client.post(url, params={"key": self.settings.google_api_key}, json=body)
            else:
                async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                    resp = await client.post(url, params={"key": self.settings.google_api_key}, json=body)
            resp.raise_for_status()
            text = _candidate_text(resp.json())
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as exc:
            TRANSCRIPTION_COUNTER.labels(provider="google", status="error").inc()
            LOGGER.error("Google AI transcription failed: %s", exc)
            raise ProviderError("Failed to transcribe audio") from exc
        TRANSCRIPTION_COUNTER.labels(provider="google", status="success").inc()
        return text.strip()


def _candidate_text(payload: dict) -> str:
    parts = payload["candidates"][0]["content"]["parts"]
    return "".join(part.get("text", "") for part in parts)
