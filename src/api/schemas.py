"""Pydantic schemas for API contracts."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class TranscribeRequest(BaseModel):
    audio: str | None = None


class TextResponse(BaseModel):
    text: str


class HistoryMessage(BaseModel):
    role: str = "user"
    content: str = ""


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str | None = None
    resume: str = ""
    job_description: str = Field(default="", alias="jobDescription")
    user_name: str | None = Field(default=None, alias="userName")
    history: List[HistoryMessage] = Field(default_factory=list)


class HealthResponse(BaseModel):
    ok: bool = True
    openai: str
    google: str
