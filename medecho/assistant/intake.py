"""Symptom intake conversation and clinical report filing."""

import logging
import uuid
from typing import Optional, Protocol, Sequence, TypeVar

from pydantic import BaseModel

from medecho.assistant.models import AssistantReply, ChatTurn, ClinicalSummary, ConversationContext
from medecho.assistant.prompts import INTAKE_SYSTEM_PROMPT, REPORT_TRIGGER, SUMMARY_SYSTEM_PROMPT
from medecho.core.schemas import MedicalReport, Vitals
from medecho.llm.base import LLMResponse, Message, MessageRole

logger = logging.getLogger(__name__)

AI_DOCTOR_ID = "ai-assistant"
DEFAULT_PERSONA = "Echo"
DEFAULT_CONFIDENCE = 80.0

T = TypeVar("T", bound=BaseModel)


class CompletionModel(Protocol):
    """What the assistant needs from an LLM; ``LLMRouter`` and ``BaseLLM`` both fit."""

    async def complete(self, messages: list[Message], **kwargs) -> LLMResponse: ...

    async def complete_structured(self, messages: list[Message], schema: type[T], **kwargs) -> T: ...


class ClinicalAssistant(Protocol):
    async def converse(
        self,
        transcript: Sequence[ChatTurn],
        context: Optional[ConversationContext] = None,
    ) -> AssistantReply: ...

    async def extract_clinical_summary(self, transcript: Sequence[ChatTurn]) -> ClinicalSummary: ...


def format_transcript(transcript: Sequence[ChatTurn]) -> str:
    speaker = {"user": "Patient", "assistant": "Assistant"}
    return "\n".join(f"{speaker[turn.role]}: {turn.content}" for turn in transcript)


class SymptomIntakeAssistant:
    """Runs the two-phase intake chat over an LLM.

    LLM failures are not caught here; callers see ``LLMError``.
    """

    def __init__(self, llm: CompletionModel, temperature: float = 0.7):
        self.llm = llm
        self.temperature = temperature

    async def converse(
        self,
        transcript: Sequence[ChatTurn],
        context: Optional[ConversationContext] = None,
    ) -> AssistantReply:
        if not transcript or transcript[-1].role != "user":
            raise ValueError("Transcript must end with a patient message")

        system = INTAKE_SYSTEM_PROMPT
        if context is not None:
            if context.patient_name:
                system += f"\n\nThe patient's name is {context.patient_name}."
            if context.language:
                system += f"\nReply in {context.language}."

        messages = [Message(role=MessageRole.SYSTEM, content=system)]
        messages.extend(Message(role=MessageRole(turn.role), content=turn.content) for turn in transcript)

        response = await self.llm.complete(messages, temperature=self.temperature)
        return parse_reply(response.content)

    async def extract_clinical_summary(self, transcript: Sequence[ChatTurn]) -> ClinicalSummary:
        if not transcript:
            raise ValueError("Cannot summarise an empty transcript")
        messages = [
            Message(role=MessageRole.SYSTEM, content=SUMMARY_SYSTEM_PROMPT),
            Message(
                role=MessageRole.USER,
                content=f"Transcript:\n{format_transcript(transcript)}",
            ),
        ]
        summary = await self.llm.complete_structured(messages, ClinicalSummary)
        logger.info(
            f"Extracted '{summary.condition}' ({summary.confidence:.0f}%) "
            f"from {len(transcript)} turns"
        )
        return summary


def parse_reply(text: str) -> AssistantReply:
    """Strip the report marker and note whether it was present."""
    if REPORT_TRIGGER in text:
        return AssistantReply(message=text.replace(REPORT_TRIGGER, "").rstrip(), report_requested=True)
    return AssistantReply(message=text.strip())


def build_report(
    summary: Optional[ClinicalSummary],
    patient_id: str,
    report_date: str,
    *,
    transcript: Sequence[ChatTurn] = (),
    persona: str = DEFAULT_PERSONA,
    language: Optional[str] = None,
) -> MedicalReport:
    """File an AI consultation as a medical report for *patient_id*."""
    text = (summary.advice or summary.summary) if summary else ""
    if not text:
        text = format_transcript(transcript) or "Session recorded."
    return MedicalReport(
        id=f"r-{uuid.uuid4().hex[:9]}",
        patient_id=patient_id,
        doctor_id=AI_DOCTOR_ID,
        doctor_name=f"AI-Doc ({persona})",
        date=report_date,
        summary=text,
        diagnosis=(summary.condition if summary else "") or "Checkup Completed",
        prescription=["Follow-up as advised"],
        ai_confidence=summary.confidence if summary else DEFAULT_CONFIDENCE,
        input_language=language,
        vitals=Vitals(temperature="98.6F"),
    )
