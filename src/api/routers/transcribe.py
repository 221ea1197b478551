"""Transcription endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..schemas import TextResponse, TranscribeRequest
from ..services.transcription_service import (
    AudioPayloadError,
    ConfigurationError,
    ProviderError,
    TranscriptionService,
)
from ..settings import APISettings, get_settings

LOGGER = logging.getLogger("prepview.api.transcribe")

router = APIRouter(prefix="/api", tags=["transcribe"])


def get_transcription_service(settings: APISettings = Depends(get_settings)) -> TranscriptionService:
    return TranscriptionService(settings)


async def _run(provider: str, request: TranscribeRequest, service: TranscriptionService):
    try:
        if provider == "google":
            text = await service.transcribe_google(request.audio)
        else:
            text = await service.transcribe_openai(request.audio)
    except AudioPayloadError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    except ConfigurationError as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)
    except ProviderError as exc:
        LOGGER.error("Error transcribing audio via %s: %s", provider, exc.__cause__ or exc)
        return JSONResponse({"error": "Failed to transcribe audio"}, status_code=500)
    return TextResponse(text=text)


@router.post("/transcribe", response_model=TextResponse)
async def transcribe_openai(
    request: TranscribeRequest,
    service: TranscriptionService = Depends(get_transcription_service),
):
    return await _run("openai", request, service)


@router.post("/transcribe-google", response_model=TextResponse)
async def transcribe_google(
    request: TranscribeRequest,
    service: TranscriptionService = Depends(get_transcription_service),
):
    return await _run("google", request, service)
