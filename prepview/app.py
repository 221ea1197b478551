"""Wires capture, transcription and answer generation into one local session."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .audio.types import AudioSegment, AutoMode, ManualMode
from .capture.auto import AutoListenController
from .capture.manual import ManualCaptureController
from .config import CONFIG, ClientConfig
from .interview import InterviewSession, Message
from .services.logger import LogBuffer
from .services.network import ApiClient, ApiError, ResponseClient, TranscriptionGateway
from .services.transcriber import TranscriptionWorker
from .store.context_store import ContextStore


class PrepViewApp:
    """Front-end facing surface; a UI binds its buttons to these methods."""

    def __init__(
        self,
        config: ClientConfig = CONFIG,
        *,
        api_client: Optional[ApiClient] = None,
        context_path: Optional[Path] = None,
        on_notice: Optional[Callable[[str], None]] = None,
        on_message: Optional[Callable[[Message], None]] = None,
        device_factory: Optional[Callable[[], object]] = None,
    ) -> None:
        self.config = config
        self.logger = LogBuffer(config.log_limit, listener=on_notice)
        self.store = ContextStore(context_path or config.context_path)
        self.api_client = api_client or ApiClient(
            config.server_url, timeout=config.http_timeout, retries=config.http_retries
        )
        self.gateway = TranscriptionGateway(self.api_client, provider=lambda: self.store.get().ai_provider)
        self.interview = InterviewSession(
            ResponseClient(self.api_client, history_limit=config.history_limit),
            self.store,
            self.logger,
            history_limit=config.history_limit,
            on_message=on_message,
        )
        self.transcriber = TranscriptionWorker(self.gateway, self.logger, self.interview.handle_question)
        self.auto = AutoListenController(
            self.transcriber.submit, self.logger, config=config, device_factory=device_factory
        )
        self.manual = ManualCaptureController(
            self.transcriber.process, self.logger, config=config, device_factory=device_factory
        )

    def start(self) -> None:
        self.transcriber.start()
        context = self.store.get()
        if context.resume:
            self.logger.add(f"Loaded resume for {self.interview.user_name}")

    def shutdown(self) -> None:
        self.auto.stop_auto_listening()
        self.stop_recording()
        self.transcriber.stop()
        # Segments handed off by the final flush are still queued.
        self.transcriber.drain()
        self.api_client.close()

    @property
    def auto_mode(self) -> AutoMode:
        return self.auto.mode

    @property
    def manual_mode(self) -> ManualMode:
        return self.manual.mode

    def toggle_listening(self) -> None:
        if self.auto.mode is AutoMode.IDLE:
            self.auto.start_auto_listening()
        else:
            self.auto.stop_auto_listening()

    def start_recording(self) -> bool:
        return self.manual.start_manual_recording()

    def stop_recording(self) -> Optional[AudioSegment]:
        return self.manual.stop_manual_recording()

    def ask(self, question: str) -> Optional[Message]:
        """Typed fallback for when no microphone is available."""

        question = question.strip()
        if not question:
            return None
        return self.interview.handle_question(question)

    def set_resume(self, text: str) -> None:
        self.store.update(resume=text)
        self.logger.add("Resume saved")

    def set_job_description(self, text: str) -> None:
        self.store.update(job_description=text)
        self.logger.add("Job description saved")

    def clear_context(self, key: str) -> None:
        self.store.remove(key)
        self.logger.add(f"{'Resume' if key == 'resume' else 'Job description'} cleared")

    def set_provider(self, provider: str) -> None:
        self.store.update(ai_provider=provider)
        self.logger.add(f"Transcription provider changed to {provider}")

    def export_conversation(self, directory: Optional[Path] = None) -> Path:
        return self.interview.save_export(directory or self.config.data_dir)

    def test_connection(self) -> bool:
        try:
            ok = self.api_client.test_connection()
        except ApiError as exc:
            self.logger.warn(f"Connection error: {exc}")
            return False
        self.logger.add("Connection OK" if ok else "Connection failed")
        return ok


__all__ = ["PrepViewApp"]
