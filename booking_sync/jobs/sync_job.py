"""
Booking sync job: one scheduled run of the synchroniser.

The scheduler (cron, container job, timer) invokes this once per interval;
the run either completes or raises so the failure shows up in run-level
alerting.
"""

import asyncio
from datetime import UTC, datetime

from booking_sync.config import Settings, get_settings
from booking_sync.errors import AccessDeniedError
from booking_sync.infrastructure.observability.logging import (
    BusinessTelemetry,
    get_logger,
    log_access_denied_event,
    log_event,
    setup_logging,
)
from booking_sync.jobs.dependencies import build_dependencies
from booking_sync.services.crm.requests import to_iso_string
from booking_sync.sync.synchroniser import Synchroniser

logger = get_logger(__name__)


def new_sync_timestamp() -> str:
    return to_iso_string(datetime.now(UTC))


async def run_booking_sync(settings: Settings | None = None) -> dict:
    """
    Run the synchroniser once.

    Returns:
        dict: Per-pass counts for the run

    Raises:
        Any error the synchroniser treats as fatal
    """
    # Captured before anything else so every booking in the run shares it
    sync_timestamp = new_sync_timestamp()

    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    log_event(logger, BusinessTelemetry.LAUNCH, "Synchroniser timer")
    logger.info("Running booking synchroniser", sync_timestamp=sync_timestamp)

    try:
        dependencies = await build_dependencies(settings, logger)
        try:
            synchroniser = Synchroniser(
                sync_timestamp,
                dependencies.crm,
                dependencies.saras,
                enricher=dependencies.enricher,
                logger=logger,
            )
            report = await synchroniser.process_bookings()
        finally:
            await dependencies.close()
    except AccessDeniedError as e:
        log_access_denied_event(logger, e)
        raise

    logger.info("Booking synchroniser finished", sync_timestamp=sync_timestamp)
    return report.to_dict()


if __name__ == "__main__":
    asyncio.run(run_booking_sync())
