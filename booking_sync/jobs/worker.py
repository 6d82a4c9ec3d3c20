"""
Entry point for the scheduled booking sync.

The platform scheduler starts one process per interval. The job to run comes
from the first CLI argument or WORKER_JOB and defaults to the booking sync.
The process exits non-zero when the run aborts so the scheduler records a
failed execution.
"""

import asyncio
import os
import sys
from collections.abc import Awaitable, Callable
from typing import Any

from booking_sync.infrastructure.observability.logging import get_logger
from booking_sync.jobs.sync_job import run_booking_sync

logger = get_logger(__name__)

DEFAULT_JOB = "booking_sync"

JobCoroutine = Callable[[], Awaitable[Any]]

JOB_REGISTRY: dict[str, JobCoroutine] = {
    DEFAULT_JOB: run_booking_sync,
}


def _resolve_job_name() -> str:
    raw = sys.argv[1] if len(sys.argv) > 1 else os.getenv("WORKER_JOB", DEFAULT_JOB)
    return raw.strip().lower()


async def run_worker(job_name: str | None = None) -> Any:
    """
    Run one registered job to completion and return its result.

    Raises:
        ValueError: If no job is registered under the name
    """
    name = (job_name or _resolve_job_name()).strip().lower()
    job = JOB_REGISTRY.get(name)
    if job is None:
        known = ", ".join(sorted(JOB_REGISTRY))
        raise ValueError(f"Unknown job '{name}', expected one of: {known}")

    logger.info("Job started", job=name)
    result = await job()
    logger.info("Job completed", job=name, result=result)
    return result


def main() -> None:
    try:
        asyncio.run(run_worker(_resolve_job_name()))
    except Exception:
        logger.exception("Job aborted")
        sys.exit(1)


if __name__ == "__main__":
    main()
