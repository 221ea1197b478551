"""Answer generation endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..schemas import GenerateRequest, TextResponse
from ..services.responder import ResponseService
from ..services.transcription_service import ConfigurationError
from ..settings import APISettings, get_settings

router = APIRouter(prefix="/api", tags=["generate"])


def get_response_service(settings: APISettings = Depends(get_settings)) -> ResponseService:
    return ResponseService(settings)


@router.post("/generate-response", response_model=TextResponse)
async def generate_response(
    request: GenerateRequest,
    service: ResponseService = Depends(get_response_service),
):
    if not (request.question or "").strip():
        return JSONResponse({"error": "No question provided"}, status_code=400)
    try:
        text = await service.generate(request)
    except ConfigurationError as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)
    return TextResponse(text=text)
