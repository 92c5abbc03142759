"""Tests for app.jobs.retention - age/status eviction and the record cap."""

import asyncio
from datetime import timedelta

import pytest

from app.jobs.models import JobRecord, JobStatus, utcnow
from app.jobs.registry import JobRegistry
from app.jobs.retention import RetentionSweeper


def _add(registry, status, age_minutes, now):
    stamp = now - timedelta(minutes=age_minutes)
    job = JobRecord(status=status, created_at=stamp, updated_at=stamp)
    registry.add(job)
    return job.id


@pytest.fixture
def now():
    return utcnow()


@pytest.fixture
def mixed(registry, now):
    """Old and fresh jobs of every status."""
    return {
        "old_completed": _add(registry, JobStatus.COMPLETED, 120, now),
        "old_failed": _add(registry, JobStatus.FAILED, 120, now),
        "old_running": _add(registry, JobStatus.RUNNING, 120, now),
        "old_pending": _add(registry, JobStatus.PENDING, 120, now),
        "fresh_completed": _add(registry, JobStatus.COMPLETED, 5, now),
        "fresh_failed": _add(registry, JobStatus.FAILED, 5, now),
        "fresh_running": _add(registry, JobStatus.RUNNING, 5, now),
    }


class TestSweep:
    """Test one sweep pass."""

    def test_preserve_completed(self, registry, mixed, now):
        """Only non-completed jobs past max age are removed."""
        sweeper = RetentionSweeper(registry)

        removed = sweeper.sweep(max_age=timedelta(minutes=60), preserve_completed=True, now=now)

        assert removed == 3
        remaining = {name for name, job_id in mixed.items() if job_id in registry}
        assert remaining == {"old_completed", "fresh_completed", "fresh_failed", "fresh_running"}

    def test_without_preserve_completed(self, registry, mixed, now):
        """Old completed jobs go too when preservation is off."""
        sweeper = RetentionSweeper(registry)

        removed = sweeper.sweep(max_age=timedelta(minutes=60), preserve_completed=False, now=now)

        assert removed == 4
        remaining = {name for name, job_id in mixed.items() if job_id in registry}
        assert remaining == {"fresh_completed", "fresh_failed", "fresh_running"}

    def test_uses_configured_policy_by_default(self, registry, mixed, now):
        sweeper = RetentionSweeper(registry, max_age_minutes=60, preserve_completed=False)

        assert sweeper.sweep(now=now) == 4

    def test_default_max_age_keeps_recent_history(self, registry, mixed, now):
        """The default 24h window keeps two-hour-old jobs."""
        sweeper = RetentionSweeper(registry)

        assert sweeper.sweep(now=now) == 0
        assert len(registry) == len(mixed)

    def test_eviction_clears_external_index(self, registry, now):
        job_id = _add(registry, JobStatus.FAILED, 120, now)
        registry.bind_external_id(job_id, "ws_1")

        RetentionSweeper(registry, max_age_minutes=60).sweep(now=now)

        assert registry.find_by_external_id("ws_1") is None

    def test_on_evict_called_per_removal(self, registry, mixed, now):
        evicted = []
        sweeper = RetentionSweeper(registry, max_age_minutes=60, on_evict=evicted.append)

        sweeper.sweep(now=now)

        assert sorted(evicted) == sorted([mixed["old_failed"], mixed["old_running"], mixed["old_pending"]])


class TestRecordCap:
    """Past max_records, oldest terminal jobs go first."""

    def test_cap_evicts_oldest_terminal(self, registry, now):
        oldest = _add(registry, JobStatus.COMPLETED, 40, now)
        older = _add(registry, JobStatus.FAILED, 30, now)
        old = _add(registry, JobStatus.COMPLETED, 20, now)
        newest = _add(registry, JobStatus.COMPLETED, 10, now)
        running = _add(registry, JobStatus.RUNNING, 50, now)
        sweeper = RetentionSweeper(registry, max_age_minutes=1440, max_records=2)

        removed = sweeper.sweep(now=now)

        assert removed == 3
        assert {j.id for j in registry.snapshot()} == {newest, running}
        for job_id in (oldest, older, old):
            assert job_id not in registry

    def test_cap_never_evicts_active_jobs(self, registry, now):
        ids = [_add(registry, JobStatus.RUNNING, i, now) for i in range(4)]
        sweeper = RetentionSweeper(registry, max_records=2)

        assert sweeper.sweep(now=now) == 0
        assert all(job_id in registry for job_id in ids)


class TestSweepLoop:
    """Test the background timer."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        registry = JobRegistry()
        job_id = _add(registry, JobStatus.FAILED, 120, utcnow())
        sweeper = RetentionSweeper(registry, interval_minutes=0.0001, max_age_minutes=60)

        await sweeper.start()
        for _ in range(50):
            if job_id not in registry:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert job_id not in registry

    @pytest.mark.asyncio
    async def test_stop_without_start(self, registry):
        await RetentionSweeper(registry).stop()
