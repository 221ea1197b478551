"""Resume PDF to text endpoint."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import JSONResponse

from ..schemas import TextResponse
from ..services.pdf_service import PdfExtractionError, extract_pdf_text

router = APIRouter(prefix="/api", tags=["extract"])


@router.post("/extract-pdf", response_model=TextResponse)
async def extract_pdf(file: Optional[UploadFile] = File(None)):
    if file is None:
        return JSONResponse({"error": "No PDF file provided"}, status_code=400)
    data = await file.read()
    if not data:
        return JSONResponse({"error": "No PDF file provided"}, status_code=400)
    try:
        text = extract_pdf_text(data)
    except PdfExtractionError as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)
    return TextResponse(text=text)
