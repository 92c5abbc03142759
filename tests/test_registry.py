"""Tests for app.jobs.registry."""

import pytest

from app.jobs.errors import JobNotFound
from app.jobs.models import JobRecord, JobStatus


class TestJobRegistry:

    def test_add_and_get(self, registry):
        job = registry.add(JobRecord(input_params={"search": {"query": "x"}}))

        assert registry.get(job.id) is job
        assert job.status == JobStatus.PENDING
        assert job.id in registry
        assert len(registry) == 1

    def test_ids_are_unique(self, registry):
        ids = {registry.add(JobRecord()).id for _ in range(50)}
        assert len(ids) == 50

    def test_duplicate_id_rejected(self, registry):
        job = registry.add(JobRecord())

        with pytest.raises(ValueError):
            registry.add(JobRecord(id=job.id))

    def test_require_unknown(self, registry):
        with pytest.raises(JobNotFound) as exc_info:
            registry.require("missing", phase="poll")

        assert exc_info.value.job_id == "missing"
        assert exc_info.value.phase == "poll"

    def test_bind_external_id_once(self, registry):
        job = registry.add(JobRecord())

        registry.bind_external_id(job.id, "ws_1")
        registry.bind_external_id(job.id, "ws_1")

        assert registry.find_by_external_id("ws_1") is job
        with pytest.raises(ValueError):
            registry.bind_external_id(job.id, "ws_2")
        assert job.external_job_id == "ws_1"
        assert registry.find_by_external_id("ws_2") is None

    def test_remove_clears_index(self, registry):
        job = registry.add(JobRecord())
        registry.bind_external_id(job.id, "ws_1")

        assert registry.remove(job.id) is True
        assert registry.remove(job.id) is False
        assert registry.get(job.id) is None
        assert registry.find_by_external_id("ws_1") is None

    def test_iteration_tolerates_removal(self, registry):
        for _ in range(3):
            registry.add(JobRecord())

        for job in registry:
            registry.remove(job.id)

        assert len(registry) == 0
