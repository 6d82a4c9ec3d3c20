from unittest.mock import AsyncMock

import pytest

from booking_sync.jobs import worker


@pytest.mark.asyncio
async def test_run_worker_returns_job_result(monkeypatch):
    job = AsyncMock(return_value={"passes": []})
    monkeypatch.setitem(worker.JOB_REGISTRY, "dummy", job)

    assert await worker.run_worker(" Dummy ") == {"passes": []}
    job.assert_awaited_once_with()


@pytest.mark.asyncio
async def test_run_worker_rejects_unknown_job():
    with pytest.raises(ValueError, match="booking_sync"):
        await worker.run_worker("missing")


def test_default_job_is_booking_sync(monkeypatch):
    monkeypatch.setattr(worker.sys, "argv", ["booking-sync"])
    monkeypatch.delenv("WORKER_JOB", raising=False)

    assert worker._resolve_job_name() == "booking_sync"
    assert worker.JOB_REGISTRY["booking_sync"] is worker.run_booking_sync


def test_job_name_from_environment(monkeypatch):
    monkeypatch.setattr(worker.sys, "argv", ["booking-sync"])
    monkeypatch.setenv("WORKER_JOB", "Nightly ")

    assert worker._resolve_job_name() == "nightly"


def test_main_exits_non_zero_when_job_aborts(monkeypatch):
    monkeypatch.setattr(worker.sys, "argv", ["booking-sync", "failing"])
    monkeypatch.setitem(worker.JOB_REGISTRY, "failing", AsyncMock(side_effect=RuntimeError("boom")))

    with pytest.raises(SystemExit) as exc_info:
        worker.main()

    assert exc_info.value.code == 1
