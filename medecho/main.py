"""Process entry point: logging setup, the `medecho` console script, and a small programmatic API."""

import logging
import sys

from medecho.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

# Libraries that are chatty at DEBUG and say nothing useful about the clinic
QUIET_LOGGERS = ("aiosqlite", "httpcore", "httpx", "openai", "anthropic")


def setup_logging():
    """Send all records to stdout at the configured level."""
    level = get_settings().log_level
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def main():
    setup_logging()

    from medecho.cli.commands import app

    app()


async def find_slots(provider_id: str, date: str) -> list[str]:
    """Free start times for *provider_id* on *date* (YYYY-MM-DD), read from the configured database.

    Example:
        import asyncio
        from medecho.main import find_slots

        asyncio.run(find_slots("d1", "2030-01-07"))
    """
    from medecho.core.database import session_scope
    from medecho.core.repository import SqlSchedulingBackend
    from medecho.scheduling import BookingService
    from medecho.scheduling.clock import calendar_from_settings

    settings = get_settings()
    async with session_scope() as session:
        service = BookingService(
            SqlSchedulingBackend(session),
            calendar=calendar_from_settings(),
            step_minutes=settings.slot_step_minutes,
        )
        return await service.available_slots(provider_id, date)


if __name__ == "__main__":
    main()
