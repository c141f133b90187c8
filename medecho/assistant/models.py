"""Chat and report schemas for the symptom intake assistant."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ConversationContext(BaseModel):
    """Optional facts about the patient that shape the conversation."""

    patient_name: Optional[str] = None
    language: Optional[str] = Field(
        default=None,
        description="Language to answer in; otherwise mirror the patient",
    )


class AssistantReply(BaseModel):
    message: str = Field(..., description="Reply text with the report marker removed")
    report_requested: bool = Field(
        default=False,
        description="True once the assistant has concluded and a report should be filed",
    )


class ClinicalSummary(BaseModel):
    """Structured reading of an intake transcript."""

    condition: str = Field(..., description="Preliminary clinical observation")
    confidence: float = Field(..., ge=0, le=100)
    symptoms_extracted: list[str] = Field(default_factory=list)
    advice: str = Field(default="", description="Harmless precautions given to the patient")
    summary: str = Field(default="", description="Professional summary of the patient's account")
