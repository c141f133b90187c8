"""Pytest configuration and fixtures."""

from typing import Optional

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from medecho.core.database import build_engine
from medecho.core.models import Base
from medecho.llm import LLMResponse, LLMRouter, Message, MessageRole
from medecho.scheduling import (
    Appointment,
    AppointmentStatus,
    DaySchedule,
    ProviderAvailabilityProfile,
    WorkingRange,
)


# ---------------------------------------------------------------------------
# Domain builders
# ---------------------------------------------------------------------------

def _make_profile(
    provider_id: str = "d1",
    day_ranges: Optional[dict[int, list[tuple[str, str]]]] = None,
    active_days: tuple[int, ...] = (1,),
    **kwargs,
) -> ProviderAvailabilityProfile:
    """Profile where only *active_days* are on; unlisted days have no ranges."""
    day_ranges = day_ranges or {1: [("09:00", "12:00")]}
    schedules = [
        DaySchedule(
            day_index=i,
            ranges=[WorkingRange(start=s, end=e) for s, e in day_ranges.get(i, [])],
            is_active=i in active_days,
        )
        for i in range(7)
    ]
    return ProviderAvailabilityProfile(provider_id=provider_id, schedules=schedules, **kwargs)


def _make_appointment(
    time: str,
    date: str = "2024-06-03",
    provider_id: str = "d1",
    status: AppointmentStatus = AppointmentStatus.PENDING,
    appointment_id: Optional[str] = None,
    subject_id: str = "p1",
) -> Appointment:
    return Appointment(
        id=appointment_id or f"a-{provider_id}-{date}-{time}",
        provider_id=provider_id,
        subject_id=subject_id,
        date=date,
        time=time,
        status=status,
        provider_name="Dr. Sarah Wilson",
        subject_name="John Doe",
    )


@pytest.fixture
def make_profile():
    return _make_profile


@pytest.fixture
def make_appointment():
    return _make_appointment


@pytest.fixture
def monday_profile():
    """Monday 09:00-12:00 only."""
    return _make_profile()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    eng = build_engine("sqlite+aiosqlite://")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as sess:
        yield sess
        await sess.rollback()


# ---------------------------------------------------------------------------
# LLM mocks
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_llm_response():
    return LLMResponse(
        content="How long have you had the headache?",
        model="test-model",
        usage={"input_tokens": 100, "output_tokens": 12},
    )


@pytest.fixture
def mock_llm():
    """Mock LLM with async completion methods."""
    llm = MagicMock()
    llm.complete = AsyncMock()
    llm.complete_structured = AsyncMock()
    llm.health_check = AsyncMock(return_value=True)
    llm.model_name = "mock-model"
    llm.provider = "mock"
    return llm


@pytest.fixture
def mock_llm_router(mock_llm):
    router = MagicMock(spec=LLMRouter)
    router.complete = mock_llm.complete
    router.complete_structured = mock_llm.complete_structured
    router.health_check = AsyncMock(return_value={"primary": True})
    return router


@pytest.fixture
def sample_messages():
    return [
        Message(role=MessageRole.SYSTEM, content="You are a clinical intake assistant."),
        Message(role=MessageRole.USER, content="I have had a headache since yesterday."),
    ]
