"""Tests for queueing jobs on the arq worker."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from settlement.tasks import (
    RECONCILE_JOB_ID,
    enqueue_reconcile_invoice_statuses,
    enqueue_task,
    get_redis_pool,
    redis_settings,
)


@pytest.fixture
def fake_pool():
    """An ArqRedis stand-in returned by get_redis_pool."""
    pool = MagicMock()
    pool.enqueue_job = AsyncMock()
    pool.close = AsyncMock()
    with patch("settlement.tasks.get_redis_pool", new=AsyncMock(return_value=pool)):
        yield pool


class TestGetRedisPool:
    @pytest.mark.asyncio
    async def test_uses_configured_settings(self):
        sentinel = MagicMock()
        with patch("settlement.tasks.create_pool", new=AsyncMock(return_value=sentinel)) as create:
            assert await get_redis_pool() is sentinel
        create.assert_awaited_once_with(redis_settings)


class TestEnqueueTask:
    @pytest.mark.asyncio
    async def test_forwards_arguments(self, fake_pool):
        job = MagicMock(job_id="job-1")
        fake_pool.enqueue_job.return_value = job

        assert await enqueue_task("some_task", "a", option="b") is job
        fake_pool.enqueue_job.assert_awaited_once_with("some_task", "a", option="b")
        fake_pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_pool_closed_when_enqueue_fails(self, fake_pool):
        fake_pool.enqueue_job.side_effect = ConnectionError("redis unavailable")

        with pytest.raises(ConnectionError, match="redis unavailable"):
            await enqueue_task("some_task")
        fake_pool.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_job_id_yields_none(self, fake_pool):
        """arq returns None when a job with the same id is already queued."""
        fake_pool.enqueue_job.return_value = None

        result = await enqueue_task("reconcile_invoice_statuses_task", _job_id=RECONCILE_JOB_ID)

        assert result is None
        fake_pool.close.assert_awaited_once()


class TestEnqueueReconcile:
    @pytest.mark.asyncio
    async def test_queues_under_fixed_job_id(self, fake_pool):
        job = MagicMock()
        fake_pool.enqueue_job.return_value = job

        assert await enqueue_reconcile_invoice_statuses() is job
        fake_pool.enqueue_job.assert_awaited_once_with(
            "reconcile_invoice_statuses_task", _job_id=RECONCILE_JOB_ID
        )
