"""Persistent key-value storage for the resume, job description and provider."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PdfReadError

PROVIDERS = ("openai", "google")
TEXT_SUFFIXES = {".txt", ".md", ".markdown"}
PDF_SUFFIX = ".pdf"

# On-disk keys, kept identical to the names the collaborators use.
STORAGE_KEYS = {
    "resume": "resume",
    "job_description": "jobDescription",
    "ai_provider": "aiProvider",
}


@dataclass(slots=True)
class ContextData:
    resume: str = ""
    job_description: str = ""
    ai_provider: str = "openai"


def read_pdf_text(file_path: Path) -> str:
    try:
        reader = PdfReader(str(file_path))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, OSError, ValueError) as exc:
        raise ValueError(f"Failed to extract PDF text: {exc}") from exc
    return "\n\n".join(page.strip() for page in pages).strip()


class ContextStore:
    """Read once at start, written through on every edit."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._data = self._load()

    def _load(self) -> ContextData:
        if not self.path.exists():
            return ContextData()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except Exception:
            raw = {}
        if not isinstance(raw, dict):
            raw = {}
        data = ContextData()
        data.resume = str(raw.get(STORAGE_KEYS["resume"], "") or "")
        data.job_description = str(raw.get(STORAGE_KEYS["job_description"], "") or "")
        provider = str(raw.get(STORAGE_KEYS["ai_provider"], data.ai_provider))
        data.ai_provider = provider if provider in PROVIDERS else data.ai_provider
        return data

    def get(self) -> ContextData:
        return self._data

    def read(self, key: str) -> str:
        return getattr(self._data, self._field(key))

    def update(self, **kwargs) -> ContextData:
        for key, value in kwargs.items():
            name = self._field(key)
            value = "" if value is None else str(value)
            if name == "ai_provider" and value not in PROVIDERS:
                raise ValueError(f"Unknown provider '{value}'")
            setattr(self._data, name, value)
        self._persist()
        return self._data

    def remove(self, key: str) -> ContextData:
        name = self._field(key)
        default = next(f.default for f in fields(ContextData) if f.name == name)
        setattr(self._data, name, default)
        self._persist()
        return self._data

    def import_file(self, key: str, file_path: Path) -> str:
        file_path = Path(file_path)
        suffix = file_path.suffix.lower()
        if suffix == PDF_SUFFIX:
            text = read_pdf_text(file_path)
        elif suffix in TEXT_SUFFIXES:
            text = file_path.read_text(encoding="utf-8")
        else:
            raise ValueError("Please upload a PDF, text or markdown file")
        self.update(**{self._field(key): text})
        return text

    def _field(self, key: str) -> str:
        if key in STORAGE_KEYS:
            return key
        for name, stored in STORAGE_KEYS.items():
            if stored == key:
                return name
        raise KeyError(key)

    def _persist(self) -> None:
        payload = {stored: getattr(self._data, name) for name, stored in STORAGE_KEYS.items()}
        self.path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")


__all__ = ["ContextData", "ContextStore", "PROVIDERS", "read_pdf_text"]
