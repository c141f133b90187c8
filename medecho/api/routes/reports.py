"""Medical report endpoints."""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from medecho.api.dependencies import get_current_user, get_session_context, require_role
from medecho.core.database import get_db
from medecho.core.repository import ReportRepository, UserRepository
from medecho.core.schemas import MedicalReport, MedicalReportCreate, UserProfile, UserRole
from medecho.core.session import SessionContext

router = APIRouter(prefix="/reports")


@router.get("", response_model=list[MedicalReport])
async def list_reports(
    patient_id: Optional[str] = Query(None, description="Doctors/admins: a patient's history"),
    db: AsyncSession = Depends(get_db),
    current_user: UserProfile = Depends(get_current_user),
) -> list[MedicalReport]:
    repo = ReportRepository(db)
    if current_user.role == UserRole.PATIENT:
        return await repo.list_for_patient(current_user.id)
    if patient_id:
        return await repo.list_for_patient(patient_id)
    if current_user.role == UserRole.DOCTOR:
        return await repo.list_for_doctor(current_user.id)
    raise HTTPException(status_code=400, detail="patient_id is required")


@router.post("", response_model=MedicalReport, status_code=201)
async def create_report(
    body: MedicalReportCreate,
    db: AsyncSession = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
) -> MedicalReport:
    doctor = require_role(session, UserRole.DOCTOR)

    patient = await UserRepository(db).get_by_id(body.patient_id)
    if patient is None or patient.role != UserRole.PATIENT.value:
        raise HTTPException(status_code=404, detail="Patient not found")

    report = MedicalReport(
        id=f"r-{uuid.uuid4().hex[:9]}",
        doctor_id=doctor.id,
        doctor_name=doctor.name,
        **body.model_dump(),
    )
    return await ReportRepository(db).create(report)
