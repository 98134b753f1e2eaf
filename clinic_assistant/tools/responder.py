"""
Free-text responders for the question-and-answer step.

``FaqResponder`` answers common questions from a keyword table and needs
no network access. ``OpenAIResponder`` forwards the question and the
conversational history to the OpenAI chat completions API.
"""

import logging
from typing import Any, Optional, Protocol, Sequence

from openai import OpenAI, OpenAIError

from clinic_assistant.config import ResponderConfig, settings
from clinic_assistant.prompts.messages import institutional_context
from clinic_assistant.schemas.conversation_schema import Sender, Turn
from clinic_assistant.tools.errors import ResponderError
from clinic_assistant.utils import fold_text

logger = logging.getLogger(__name__)

_clinic = settings.clinic

FAQ_TOPICS: dict[str, str] = {
    "hours": f"We are open {_clinic.hours}.",
    "phone": f"You can reach us at {_clinic.phone} or by email at {_clinic.email}.",
    "address": f"Our units are located in {_clinic.locations}.",
    "insurance": (
        "We accept the main health plans. Bring your plan card and an ID "
        "document to every appointment."
    ),
    "exams": (
        "Exams are performed by appointment. Some exams require fasting or "
        "other preparation; the instructions are sent when the exam is booked."
    ),
    "authorization": (
        "Procedures that require audit are reviewed by the health plan. "
        "Use option 3 of the main menu to upload your referral and check "
        "the audit period."
    ),
}

# Folded keywords mapped to FAQ topics. Longer phrases are checked first.
FAQ_ALIASES: dict[str, str] = {
    "opening hours": "hours", "hours": "hours", "open": "hours",
    "horario": "hours", "schedule": "hours",
    "phone": "phone", "telephone": "phone", "call": "phone",
    "email": "phone", "contact": "phone", "telefone": "phone",
    "address": "address", "location": "address", "where": "address",
    "unit": "address", "endereco": "address",
    "insurance": "insurance", "health plan": "insurance", "plan": "insurance",
    "convenio": "insurance",
    "exam": "exams", "fasting": "exams", "preparation": "exams", "exame": "exams",
    "authorization": "authorization", "audit": "authorization",
    "referral": "authorization", "autorizacao": "authorization",
}

FALLBACK_ANSWER = (
    "I could not find an answer to that question. Please contact our team at "
    f"{_clinic.phone} or {_clinic.email}."
)


class Responder(Protocol):
    """Free-text responder consumed by the question-and-answer step."""

    def respond(self, text: str, prior_turns: Sequence[Turn]) -> str: ...


class FaqResponder:
    """Keyword-table responder used when no LLM is configured."""

    def __init__(self, topics: Optional[dict[str, str]] = None, aliases: Optional[dict[str, str]] = None) -> None:
        self._topics = topics if topics is not None else FAQ_TOPICS
        self._aliases = aliases if aliases is not None else FAQ_ALIASES

    def match_topic(self, text: str) -> Optional[str]:
        folded = fold_text(text)
        words = set(folded.replace("?", " ").replace(",", " ").split())
        for alias in sorted(self._aliases, key=len, reverse=True):
            if " " in alias:
                if alias in folded:
                    return self._aliases[alias]
            elif alias in words or alias + "s" in words:
                return self._aliases[alias]
        return None

    def respond(self, text: str, prior_turns: Sequence[Turn]) -> str:
        topic = self.match_topic(text)
        if topic is None:
            logger.info("No FAQ topic matched, using fallback answer")
            return FALLBACK_ANSWER
        logger.info("FAQ topic matched: %s", topic)
        return self._topics[topic]


class OpenAIResponder:
    """Chat-completion responder with the clinic's institutional prompt."""

    def __init__(self, config: ResponderConfig, client: Optional[Any] = None) -> None:
        self._config = config
        self._client = client if client is not None else OpenAI(api_key=config.openai_api_key)

    def build_messages(self, text: str, prior_turns: Sequence[Turn]) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": institutional_context()}]
        history = list(prior_turns)
        if self._config.max_history_turns:
            history = history[-self._config.max_history_turns:]
        else:
            history = []
        for turn in history:
            role = "user" if turn.sender == Sender.CALLER else "assistant"
            messages.append({"role": role, "content": turn.text})
        messages.append({"role": "user", "content": text})
        return messages

    def respond(self, text: str, prior_turns: Sequence[Turn]) -> str:
        messages = self.build_messages(text, prior_turns)
        try:
            completion = self._client.chat.completions.create(
                model=self._config.llm_model,
                messages=messages,
                temperature=self._config.llm_temperature,
            )
        except OpenAIError as exc:
            raise ResponderError(f"LLM request failed: {exc}") from exc
        answer = (completion.choices[0].message.content or "").strip()
        if not answer:
            raise ResponderError("LLM returned an empty answer")
        return answer


def build_responder(config: ResponderConfig) -> Responder:
    """Return the OpenAI responder when an API key is configured, else the FAQ table."""
    if config.openai_api_key:
        logger.info("Using OpenAI responder with model %s", config.llm_model)
        return OpenAIResponder(config)
    logger.info("OPENAI_API_KEY not set, using FAQ responder")
    return FaqResponder()
