"""AI symptom intake assistant."""

from medecho.assistant.intake import (
    AI_DOCTOR_ID,
    ClinicalAssistant,
    SymptomIntakeAssistant,
    build_report,
    parse_reply,
)
from medecho.assistant.models import AssistantReply, ChatTurn, ClinicalSummary, ConversationContext
from medecho.assistant.prompts import REPORT_TRIGGER

__all__ = [
    "AI_DOCTOR_ID",
    "AssistantReply",
    "ChatTurn",
    "ClinicalAssistant",
    "ClinicalSummary",
    "ConversationContext",
    "REPORT_TRIGGER",
    "SymptomIntakeAssistant",
    "build_report",
    "parse_reply",
]
