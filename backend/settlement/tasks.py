"""Helpers for queueing settlement jobs on the arq worker."""

from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from settlement.core.config import settings

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)

# Fixed id so a reconciliation requested while one is queued is not queued twice
RECONCILE_JOB_ID = "reconcile-invoice-statuses"


async def get_redis_pool() -> ArqRedis:
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job | None:
    """Queue ``task_name`` on the worker.

    Keyword arguments are passed through to ``enqueue_job``, including arq's
    own ``_job_id`` and ``_defer_by`` options.

    Returns:
        The queued job, or None if a job with the same ``_job_id`` is already
        queued.
    """
    pool = await get_redis_pool()
    try:
        return await pool.enqueue_job(task_name, *args, **kwargs)
    finally:
        await pool.close()


async def enqueue_reconcile_invoice_statuses() -> Job | None:
    """Queue an immediate invoice status reconciliation."""
    return await enqueue_task("reconcile_invoice_statuses_task", _job_id=RECONCILE_JOB_ID)
