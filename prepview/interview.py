"""Conversation state: interviewer questions in, first-person answers out."""

from __future__ import annotations

import re
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .config import CONFIG
from .services.logger import LogBuffer
from .services.network import GenerationError, ResponseClient
from .store.context_store import ContextStore

INTERVIEWER = "interviewer"
ASSISTANT = "assistant"

_HEADER_WORDS = re.compile(r"\b(email|phone|address|github|linkedin)\b", re.IGNORECASE)
_NAME_PATTERN = re.compile(r"(?:name|full name|my name is)[:\s]+([A-Za-z\s\.]+)", re.IGNORECASE)


@dataclass(slots=True)
class Message:
    role: str
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


def extract_user_name(resume: str, default: str = "User") -> str:
    """Best-effort candidate name from the top of a resume."""

    lines = resume.split("\n")
    first = lines[0].strip() if lines else ""
    lowered = first.lower()
    if (
        0 < len(first) < 40
        and "resume" not in lowered
        and "curriculum" not in lowered
        and not _HEADER_WORDS.search(first)
    ):
        return first
    match = _NAME_PATTERN.search(resume)
    if match and match.group(1).strip():
        return match.group(1).strip()
    return default


class InterviewSession:
    def __init__(
        self,
        responder: ResponseClient,
        store: ContextStore,
        logger: LogBuffer,
        *,
        history_limit: int = CONFIG.history_limit,
        on_message: Optional[Callable[[Message], None]] = None,
    ) -> None:
        self.responder = responder
        self.store = store
        self.logger = logger
        self.history_limit = history_limit
        self.on_message = on_message
        self._messages: List[Message] = []
        self._lock = threading.Lock()

    @property
    def messages(self) -> List[Message]:
        with self._lock:
            return list(self._messages)

    @property
    def user_name(self) -> str:
        return extract_user_name(self.store.get().resume)

    def handle_question(self, question: str) -> Optional[Message]:
        """Record the question and append the generated answer, if any."""

        history = self._history()
        self._append(Message(INTERVIEWER, question))
        context = self.store.get()
        try:
            answer = self.responder.generate(
                question,
                resume=context.resume,
                job_description=context.job_description,
                user_name=self.user_name,
                history=history,
            )
        except GenerationError as exc:
            self.logger.warn(f"Failed to generate a response. Please try again. ({exc})")
            return None
        message = Message(ASSISTANT, answer)
        self._append(message)
        return message

    def export_text(self) -> str:
        blocks = []
        for message in self.messages:
            speaker = "Interviewer" if message.role == INTERVIEWER else "You (AI)"
            blocks.append(f"[{message.timestamp.strftime('%H:%M:%S')}] {speaker}: {message.content}")
        return "\n\n".join(blocks)

    def save_export(self, directory: Path) -> Path:
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / f"interview-{datetime.now().strftime('%Y-%m-%d')}.txt"
        target.write_text(self.export_text(), encoding="utf-8")
        self.logger.add(f"Interview transcript exported to {target}")
        return target

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()

    def _history(self) -> List[Dict[str, str]]:
        recent = self.messages[-self.history_limit :] if self.history_limit > 0 else []
        return [
            {"role": "user" if message.role == INTERVIEWER else message.role, "content": message.content}
            for message in recent
        ]

    def _append(self, message: Message) -> None:
        with self._lock:
            self._messages.append(message)
        if self.on_message:
            self.on_message(message)


__all__ = ["InterviewSession", "Message", "extract_user_name"]
