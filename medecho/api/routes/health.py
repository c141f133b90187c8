"""Health check endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from medecho import __version__
from medecho.core.database import get_db

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    return {
        "status": "healthy",
        "service": "medecho",
        "version": __version__,
    }


@router.get("/health/ready")
async def readiness_check(request: Request, db: AsyncSession = Depends(get_db)) -> dict:
    """Readiness: the database answers and at least one LLM backend is up."""
    errors = []

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        errors.append(f"Database check failed: {e}")

    llm_health: dict[str, bool] = {}
    router_ = getattr(request.app.state, "llm_router", None)
    if router_ is None:
        errors.append("LLM router not initialised")
    else:
        try:
            llm_health = await router_.health_check()
            if not any(llm_health.values()):
                errors.append("No LLM available")
        except Exception as e:
            errors.append(f"LLM check failed: {e}")

    if errors:
        return {"status": "not_ready", "errors": errors}

    return {"status": "ready", "llm": llm_health}


@router.get("/health/live")
async def liveness_check() -> dict:
    return {"status": "alive"}
