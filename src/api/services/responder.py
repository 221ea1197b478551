"""Prompt construction and chat completion for first-person answers."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from openai import AsyncOpenAI

from ..metrics import GENERATION_COUNTER
from ..schemas import GenerateRequest, HistoryMessage
from ..settings import APISettings
from .transcription_service import ConfigurationError

LOGGER = logging.getLogger("prepview.api.responder")

CHAT_ROLES = {"system", "user", "assistant"}

RESPONSE_GUIDELINES = """RESPONSE GUIDELINES:
1. Speak in a confident, natural voice that sounds like a real person in an interview
2. Use the first-person perspective consistently (I, me, my)
3. Keep responses clear and concise - around 3-4 sentences for most questions
4. Incorporate specific achievements and experiences from the resume naturally
5. Show enthusiasm and personality while maintaining professionalism
6. NEVER mention that you are AI or that this is practice
7. Add relevant details that showcase knowledge and experience, even if not explicitly in the resume
8. Speak with authority and confidence on topics related to your field
9. For technical questions, demonstrate both theoretical knowledge and practical experience
10. Balance humility with confidence - acknowledge areas for growth while highlighting strengths

FOR TECHNICAL QUESTIONS:
- For Data Structures & Algorithms questions: provide concise, correct answers with time/space complexity analysis
- For LeetCode-style problems: briefly outline your approach, pseudocode or solution steps, and complexity analysis
- For system design questions: discuss trade-offs, scalability considerations, and architecture choices
- For OOP questions: demonstrate understanding of principles (encapsulation, inheritance, polymorphism, abstraction)
- ALWAYS provide an answer no matter how difficult the question; never answer "I don't know"
- When appropriate, mention specific technologies or projects from the resume that relate to the question"""


def build_system_message(user_name: str, resume: str = "", job_description: str = "") -> str:
    message = (
        f"You are helping {user_name} during an interview practice session.\n"
        f"Your role is to respond AS IF YOU ARE {user_name}, using first-person perspective.\n\n"
    )
    if resume:
        message += "The job applicant's resume information (respond using this information):\n" + resume + "\n\n"
    if job_description:
        message += "The job description they're interviewing for:\n" + job_description + "\n\n"
    return message + RESPONSE_GUIDELINES


def format_history(history: Iterable[HistoryMessage], limit: int) -> List[Dict[str, str]]:
    recent = list(history)[-limit:] if limit > 0 else []
    formatted = []
    for item in recent:
        role = item.role if item.role in CHAT_ROLES else "user"
        formatted.append({"role": role, "content": item.content})
    return formatted


class ResponseService:
    def __init__(self, settings: APISettings, *, openai_client: Optional[AsyncOpenAI] = None) -> None:
        self.settings = settings
        self._client = openai_client

    def _openai(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.settings.openai_api_key:
                raise ConfigurationError("OpenAI API key not configured")
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
                timeout=self.settings.request_timeout,
            )
        return self._client

    def build_messages(self, request: GenerateRequest) -> List[Dict[str, str]]:
        user_name = (request.user_name or "").strip() or self.settings.default_user_name
        messages = [
            {
                "role": "system",
                "content": build_system_message(user_name, request.resume, request.job_description),
            }
        ]
        messages.extend(format_history(request.history, self.settings.history_limit))
        messages.append({"role": "user", "content": request.question or ""})
        return messages

    async def generate(self, request: GenerateRequest) -> str:
        client = self._openai()
        messages = self.build_messages(request)
        try:
            completion = await client.chat.completions.create(
                model=self.settings.chat_model,
                messages=messages,
                temperature=self.settings.chat_temperature,
                max_tokens=self.settings.chat_max_tokens,
                presence_penalty=self.settings.chat_presence_penalty,
                frequency_penalty=self.settings.chat_frequency_penalty,
                stream=False,
            )
            text = completion.choices[0].message.content
        except Exception as exc:
            GENERATION_COUNTER.labels(status="fallback").inc()
            LOGGER.error("Chat completion failed, using fallback answer: %s", exc)
            return self.settings.fallback_answer
        GENERATION_COUNTER.labels(status="success").inc()
        return (text or "").strip() or self.settings.fallback_answer
