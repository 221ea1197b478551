"""HTTP clients for the transcription and response-generation collaborators."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

import httpx

from ..audio.types import AudioSegment
from ..config import CONFIG

LOGGER = logging.getLogger("prepview.network")

TRANSCRIBE_PATHS = {
    "openai": "/api/transcribe",
    "google": "/api/transcribe-google",
}
GENERATE_PATH = "/api/generate-response"


class ApiError(Exception):
    pass


class TranscriptionError(ApiError):
    pass


class GenerationError(ApiError):
    pass


class ApiClient:
    """JSON-over-HTTP client with a fixed timeout and a bounded retry."""

    def __init__(
        self,
        base_url: str = CONFIG.server_url,
        *,
        timeout: float = CONFIG.http_timeout,
        retries: int = CONFIG.http_retries,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = max(0, retries)
        self._client = client or httpx.Client(timeout=timeout)

    def _url(self, path: str) -> str:
        if not self.base_url:
            raise ApiError("Server URL missing")
        return f"{self.base_url}{path}"

    def post_json(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = self._url(path)
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                resp = self._client.post(url, json=payload)
            except (httpx.TimeoutException, httpx.TransportError) as exc:
                if attempt < attempts:
                    LOGGER.warning("POST %s failed (%s); retrying", path, exc)
                    continue
                raise ApiError(f"Request to {path} failed: {exc}") from exc
            if resp.status_code >= 500 and attempt < attempts:
                LOGGER.warning("POST %s returned %s; retrying", path, resp.status_code)
                continue
            try:
                resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise ApiError(f"{path} returned {exc.response.status_code}") from exc
            try:
                data = resp.json()
            except ValueError as exc:
                raise ApiError(f"Invalid response: {exc}") from exc
            if not isinstance(data, dict):
                raise ApiError("Invalid response: expected a JSON object")
            return data
        raise ApiError(f"Request to {path} failed")

    def test_connection(self) -> bool:
        try:
            resp = self._client.get(self._url("/healthz"))
        except httpx.HTTPError as exc:
            raise ApiError(str(exc)) from exc
        return resp.status_code == 200

    def close(self) -> None:
        self._client.close()


class TranscriptionGateway:
    """Sends one finished segment to the configured speech-to-text endpoint."""

    def __init__(self, client: ApiClient, provider: Callable[[], str] | str = "openai") -> None:
        self.client = client
        self._provider = provider

    @property
    def provider(self) -> str:
        value = self._provider() if callable(self._provider) else self._provider
        return value if value in TRANSCRIBE_PATHS else "openai"

    def transcribe(self, segment: AudioSegment) -> str:
        """Recognized text, or ``""`` when the service heard no speech."""

        path = TRANSCRIBE_PATHS[self.provider]
        try:
            data = self.client.post_json(path, {"audio": segment.to_base64()})
        except ApiError as exc:
            raise TranscriptionError(str(exc)) from exc
        text = data.get("text", "")
        if text is None:
            return ""
        if not isinstance(text, str):
            raise TranscriptionError("Invalid response: text is not a string")
        return text.strip()


class ResponseClient:
    """Asks the generation service for a first-person candidate answer."""

    def __init__(self, client: ApiClient, *, history_limit: int = CONFIG.history_limit) -> None:
        self.client = client
        self.history_limit = history_limit

    def generate(
        self,
        question: str,
        *,
        resume: str = "",
        job_description: str = "",
        user_name: str = "User",
        history: Iterable[Dict[str, str]] = (),
    ) -> str:
        recent: List[Dict[str, str]] = list(history)[-self.history_limit :] if self.history_limit > 0 else []
        payload = {
            "question": question,
            "resume": resume,
            "jobDescription": job_description,
            "userName": user_name,
            "history": recent,
        }
        try:
            data = self.client.post_json(GENERATE_PATH, payload)
        except ApiError as exc:
            raise GenerationError(str(exc)) from exc
        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise GenerationError("Empty response from generation service")
        return text.strip()


__all__ = [
    "ApiClient",
    "ApiError",
    "GenerationError",
    "ResponseClient",
    "TranscriptionError",
    "TranscriptionGateway",
]
