"""Fixtures for API tests: the full app over in-memory SQLite with seeded users."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from medecho.api.app import create_app
from medecho.api.dependencies import get_calendar
from medecho.core.database import get_db
from medecho.core.seed import DEMO_PASSWORD, seed_demo_data
from medecho.scheduling import ProviderLocks
from medecho.scheduling.clock import CalendarPolicy

# Monday morning; the seeded doctors all work Mondays.
FIXED_NOW = datetime(2030, 1, 7, 8, 0, tzinfo=timezone.utc)
MONDAY = "2030-01-07"


@pytest_asyncio.fixture
async def app(session_factory, mock_llm_router):
    async with session_factory() as session:
        await seed_demo_data(session)
        await session.commit()

    async def _override_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application = create_app()
    application.dependency_overrides[get_db] = _override_db
    application.dependency_overrides[get_calendar] = lambda: CalendarPolicy(clock=lambda: FIXED_NOW)
    # ASGITransport does not run the lifespan
    application.state.llm_router = mock_llm_router
    application.state.provider_locks = ProviderLocks()
    return application


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def login(client):
    """Log in as a demo user and return bearer headers.

    The cookie jar is cleared so several users can share one client.
    """

    async def _login(email: str, password: str = DEMO_PASSWORD) -> dict[str, str]:
        response = await client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest_asyncio.fixture
async def patient_headers(login):
    return await login("john@example.com")


@pytest_asyncio.fixture
async def other_patient_headers(login):
    return await login("jane@example.com")


@pytest_asyncio.fixture
async def doctor_headers(login):
    return await login("sarah.w@medecho.ai")
