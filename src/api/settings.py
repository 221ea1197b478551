"""API settings resolved from the environment."""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field


class APISettings(BaseModel):
    app_name: str = Field(default="PrepView API")
    version: str = Field(default="0.3.0")
    openai_api_key: str | None = Field(default=os.getenv("OPENAI_API_KEY"))
    google_api_key: str | None = Field(default=os.getenv("GOOGLE_AI_API_KEY") or os.getenv("GOOGLE_API_KEY"))
    openai_base_url: str | None = Field(default=os.getenv("OPENAI_BASE_URL"))
    transcription_model: str = Field(default=os.getenv("TRANSCRIPTION_MODEL", "whisper-1"))
    transcription_language: str = Field(default=os.getenv("TRANSCRIPTION_LANGUAGE", "en"))
    google_transcription_model: str = Field(
        default=os.getenv("GOOGLE_TRANSCRIPTION_MODEL", "gemini-1.5-pro")
    )
    google_api_base: str = Field(
        default=os.getenv("GOOGLE_API_BASE", "https://generativelanguage.googleapis.com/v1beta")
    )
    chat_model: str = Field(default=os.getenv("CHAT_MODEL", "gpt-4.1"))
    chat_temperature: float = Field(default=float(os.getenv("CHAT_TEMPERATURE", "0.7")))
    chat_max_tokens: int = Field(default=int(os.getenv("CHAT_MAX_TOKENS", "500")))
    chat_presence_penalty: float = Field(default=float(os.getenv("CHAT_PRESENCE_PENALTY", "0.5")))
    chat_frequency_penalty: float = Field(default=float(os.getenv("CHAT_FREQUENCY_PENALTY", "0.3")))
    history_limit: int = Field(default=int(os.getenv("HISTORY_LIMIT", "6")))
    default_user_name: str = Field(default=os.getenv("DEFAULT_USER_NAME", "the candidate"))
    request_timeout: float = Field(default=float(os.getenv("REQUEST_TIMEOUT", "30")))
    max_audio_bytes: int = Field(default=int(os.getenv("MAX_AUDIO_BYTES", str(10 * 1024 * 1024))))
    fallback_answer: str = Field(
        default=(
            "I appreciate that question. Based on my experience, "
            "I believe I'm well-qualified to handle this challenge."
        )
    )


@lru_cache()
def get_settings() -> APISettings:
    return APISettings()
