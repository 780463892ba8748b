"""
Timer trigger for the reconciliation sweep.

Runs the sweep on a fixed interval from a background asyncio task started at app startup.
The sweep itself is blocking SQLAlchemy work, so each tick runs it in a worker thread;
the runner's single-flight lock keeps ticks and manual triggers from overlapping.
The sweep is never run from the request path.
"""

import asyncio
from typing import Optional

from rentfleet.services.reconciliation import ReconciliationRunner
from rentfleet.utils.logger import get_logger

logger = get_logger(__name__)

# Minimum delay between ticks, whatever the configured interval
_MIN_INTERVAL = 1


async def reconciliation_loop(runner: ReconciliationRunner, interval_seconds: int,
                              run_immediately: bool = True, max_ticks: Optional[int] = None):
    """
    Tick forever (or `max_ticks` times). A tick that raises is logged and the loop keeps going;
    persistence failures are already rolled back inside the runner.
    """
    interval = max(_MIN_INTERVAL, interval_seconds)
    logger.info(f"🔁 Reconciliation loop started — every {interval}s")
    ticks = 0

    if not run_immediately:
        await asyncio.sleep(interval)

    while max_ticks is None or ticks < max_ticks:
        ticks += 1
        try:
            await asyncio.to_thread(runner.run_once)
        except Exception as e:
            logger.error(f"❌ Reconciliation tick failed unexpectedly: {e}", exc_info=True)

        if max_ticks is not None and ticks >= max_ticks:
            break
        await asyncio.sleep(interval)


def start_reconciliation_loop(runner: ReconciliationRunner, interval_seconds: int,
                              run_immediately: bool = True) -> asyncio.Task:
    """Launch the loop as a named background task. Called once at backend startup."""
    return asyncio.create_task(
        reconciliation_loop(runner, interval_seconds, run_immediately),
        name="reconciliation-loop",
    )


async def stop_reconciliation_loop(task: Optional[asyncio.Task]):
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    logger.info("🛑 Reconciliation loop stopped")
