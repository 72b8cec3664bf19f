# worker.py
# Background worker: periodically re-prices overdue tickets and notifies their managers.
# Shares tickets with the API through the Redis store.

import asyncio
import logging
from typing import Optional

import redis.asyncio as aioredis

from config import COST_SWEEP_INTERVAL_SECONDS, configure_logging
from cost_of_delay import CostOfDelayService, OverdueProcessingResult
from notifications import build_sink
from salary_service import SalaryService
from ticket_store import build_store

logger = logging.getLogger(__name__)


async def run_cost_sweep(service: CostOfDelayService) -> OverdueProcessingResult:
    """One recompute-and-notify pass."""
    result = await service.process_overdue_tickets()
    cost_data = result.cost_data
    sent = sum(1 for n in result.notifications if n.success)

    logger.info(
        f"💸 Sweep done: {len(cost_data.overdue_tickets)} overdue tickets, "
        f"total cost ${cost_data.total_cost:.2f}, "
        f"{sent}/{len(result.notifications)} notifications sent"
    )
    return result


async def run_worker(
    interval_seconds: int = COST_SWEEP_INTERVAL_SECONDS,
    service: Optional[CostOfDelayService] = None,
    max_sweeps: Optional[int] = None,
) -> None:
    """
    Sweep forever (or `max_sweeps` times). A failed sweep is logged and the
    loop carries on with the next one.
    """
    if service is None:
        salary = SalaryService()
        await salary.load()
        service = CostOfDelayService(salary, store=build_store("redis"), sink=build_sink())
    logger.info(f"👷 Worker started, sweeping every {interval_seconds}s")

    sweeps = 0
    while max_sweeps is None or sweeps < max_sweeps:
        sweeps += 1
        try:
            await run_cost_sweep(service)
        except aioredis.ConnectionError as e:
            logger.error(f"❌ Redis connection lost: {e}. Retrying next sweep")
        except Exception as e:
            logger.error(f"❌ Unexpected error in cost sweep: {e}")
        await asyncio.sleep(interval_seconds)


if __name__ == "__main__":
    configure_logging()
    asyncio.run(run_worker())
