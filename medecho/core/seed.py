"""Demo clinic data: doctors with weekly templates, patients, a report and a booking."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from medecho.core.auth import hash_password
from medecho.core.models import ReportDB
from medecho.core.repository import (
    AppointmentRepository,
    ProfileRepository,
    ReportRepository,
    UserRepository,
)
from medecho.core.schemas import MedicalReport, UserRole, Vitals
from medecho.scheduling.models import (
    Appointment,
    AppointmentStatus,
    DaySchedule,
    Modality,
    ProviderAvailabilityProfile,
    WorkingRange,
)

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "medecho-demo"

MON_FRI = (1, 2, 3, 4, 5)

# (id, name, specialization, email, contact, ranges, active days)
DEMO_DOCTORS = [
    ("d1", "Dr. Sarah Wilson", "Cardiologist", "sarah.w@medecho.ai", "+1 234 567 890",
     [("09:00", "13:00"), ("15:00", "18:00")], MON_FRI),
    ("d2", "Dr. James Miller", "Neurologist", "james.m@medecho.ai", "+1 234 567 891",
     [("10:00", "16:00")], MON_FRI),
    ("d3", "Dr. Elena Rodriguez", "Pediatrician", "elena.r@medecho.ai", "+1 234 567 892",
     [("08:00", "14:00")], (1, 2, 3, 4, 5, 6)),
    ("d4", "Dr. Marcus Chen", "Orthopedic Surgeon", "marcus.c@medecho.ai", "+1 234 567 893",
     [("11:00", "19:00")], (1, 3, 5)),
    ("d5", "Dr. Amara Okafor", "Psychiatrist", "amara.o@medecho.ai", "+1 234 567 894",
     [("09:00", "17:00")], MON_FRI),
]

DEMO_PATIENTS = [
    ("p1", "John Doe", "john@example.com"),
    ("p2", "Jane Smith", "jane@example.com"),
    ("p3", "Robert Brown", "robert@example.com"),
]


def weekly_template(ranges: list[tuple[str, str]], active_days: tuple[int, ...]) -> list[DaySchedule]:
    """Same ranges on every day, switched on for *active_days* only."""
    return [
        DaySchedule(
            day_index=i,
            ranges=[WorkingRange(start=s, end=e) for s, e in ranges],
            is_active=i in active_days,
        )
        for i in range(7)
    ]


async def seed_demo_data(session: AsyncSession) -> int:
    """Insert demo records that are not there yet. Returns the number of users added."""
    users = UserRepository(session)
    profiles = ProfileRepository(session)
    password_hash = hash_password(DEMO_PASSWORD)
    added = 0

    for user_id, name, specialization, email, contact, ranges, days in DEMO_DOCTORS:
        if await users.get_by_id(user_id):
            continue
        await users.create(
            id=user_id,
            name=name,
            email=email,
            role=UserRole.DOCTOR.value,
            password_hash=password_hash,
            specialization=specialization,
            contact=contact,
            preferred_language="English",
        )
        await profiles.save(
            ProviderAvailabilityProfile(provider_id=user_id, schedules=weekly_template(ranges, days))
        )
        added += 1

    for user_id, name, email in DEMO_PATIENTS:
        if await users.get_by_id(user_id):
            continue
        await users.create(
            id=user_id,
            name=name,
            email=email,
            role=UserRole.PATIENT.value,
            password_hash=password_hash,
            preferred_language="English",
        )
        added += 1

    if await session.get(ReportDB, "r1") is None:
        await ReportRepository(session).create(
            MedicalReport(
                id="r1",
                patient_id="p1",
                doctor_id="d1",
                doctor_name="Dr. Sarah Wilson",
                date="2023-10-15",
                summary="Patient reported minor dizziness. Blood pressure was slightly elevated.",
                diagnosis="Mild Hypertension",
                prescription=["Lisinopril 10mg", "Low sodium diet"],
                vitals=Vitals(bp="140/90", weight="72kg", temperature="98.6F"),
            )
        )
    appointments = AppointmentRepository(session)
    if await appointments.get("a1") is None:
        await appointments.create(
            Appointment(
                id="a1",
                provider_id="d1",
                subject_id="p1",
                provider_name="Dr. Sarah Wilson",
                subject_name="John Doe",
                date="2026-03-20",
                time="10:00",
                status=AppointmentStatus.PENDING,
                modality=Modality.IN_PERSON,
            )
        )

    logger.info(f"Seeded {added} demo users")
    return added
