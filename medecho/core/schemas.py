"""Pydantic schemas for users and medical reports."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    PATIENT = "PATIENT"
    DOCTOR = "DOCTOR"
    ADMIN = "ADMIN"


# --- User ---

class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: UserRole
    avatar: Optional[str] = None
    specialization: Optional[str] = None
    contact: Optional[str] = None
    preferred_language: Optional[str] = None
    is_available: bool = True

    @property
    def is_doctor(self) -> bool:
        return self.role == UserRole.DOCTOR


class UserCreate(BaseModel):
    name: str
    email: str
    role: UserRole = UserRole.PATIENT
    password: Optional[str] = None
    avatar: Optional[str] = None
    specialization: Optional[str] = None
    contact: Optional[str] = None
    preferred_language: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    avatar: Optional[str] = None
    specialization: Optional[str] = None
    contact: Optional[str] = None
    preferred_language: Optional[str] = None
    is_available: Optional[bool] = None


# --- Medical report ---

class Vitals(BaseModel):
    bp: Optional[str] = None
    weight: Optional[str] = None
    temperature: Optional[str] = None


class MedicalReport(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    doctor_id: str
    doctor_name: str
    date: str
    summary: str = ""
    diagnosis: str = ""
    prescription: list[str] = Field(default_factory=list)
    ai_confidence: Optional[float] = Field(default=None, ge=0, le=100)
    input_language: Optional[str] = None
    vitals: Optional[Vitals] = None


class MedicalReportCreate(BaseModel):
    patient_id: str
    date: str
    summary: str = ""
    diagnosis: str = ""
    prescription: list[str] = Field(default_factory=list)
    vitals: Optional[Vitals] = None
