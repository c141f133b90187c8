"""AI symptom intake endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from medecho.api.dependencies import get_assistant, get_calendar, get_session_context, require_role
from medecho.assistant import (
    AssistantReply,
    ChatTurn,
    ConversationContext,
    SymptomIntakeAssistant,
    build_report,
)
from medecho.core.database import get_db
from medecho.core.repository import ReportRepository
from medecho.core.schemas import MedicalReport, UserRole
from medecho.core.session import SessionContext
from medecho.llm import LLMError
from medecho.scheduling.clock import CalendarPolicy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assistant")


class ConverseRequest(BaseModel):
    transcript: list[ChatTurn] = Field(..., min_length=1)
    language: Optional[str] = None


class ReportRequest(BaseModel):
    transcript: list[ChatTurn] = Field(..., min_length=1)
    persona: str = "Echo"
    language: Optional[str] = None


@router.post("/converse", response_model=AssistantReply)
async def converse(
    body: ConverseRequest,
    session: SessionContext = Depends(get_session_context),
    assistant: SymptomIntakeAssistant = Depends(get_assistant),
) -> AssistantReply:
    patient = require_role(session, UserRole.PATIENT)
    context = ConversationContext(
        patient_name=patient.name,
        language=body.language or patient.preferred_language,
    )
    try:
        return await assistant.converse(body.transcript, context)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMError as e:
        logger.error(f"Assistant reply failed: {e}")
        raise HTTPException(status_code=502, detail="AI assistant is unavailable")


@router.post("/report", response_model=MedicalReport, status_code=201)
async def file_report(
    body: ReportRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
    assistant: SymptomIntakeAssistant = Depends(get_assistant),
    calendar: CalendarPolicy = Depends(get_calendar),
) -> MedicalReport:
    """Summarise a finished intake chat and file it as the patient's report."""
    patient = require_role(session, UserRole.PATIENT)
    try:
        summary = await assistant.extract_clinical_summary(body.transcript)
    except LLMError as e:
        logger.error(f"Clinical summary failed: {e}")
        raise HTTPException(status_code=502, detail="AI assistant is unavailable")

    report = build_report(
        summary,
        patient.id,
        calendar.today(),
        transcript=body.transcript,
        persona=body.persona,
        language=body.language or patient.preferred_language,
    )
    return await ReportRepository(db).create(report)
