"""Async run loop for the worker pool.

The pool manager is synchronous; its blocking calls run on worker
threads while the event loop waits for a shutdown signal.
"""

import signal

import anyio
import anyio.to_thread
from structlog.typing import FilteringBoundLogger

from rfarm.pool import WorkerPoolManager

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def run_pool(
    manager: WorkerPoolManager,
    logger: FilteringBoundLogger | None = None,
) -> int:
    """Load the pool, wait for SIGINT/SIGTERM, then close the pool.

    Signals delivered while the pool is still loading are queued and end
    the run as soon as loading finishes. The pool is closed even if
    loading fails.

    Returns:
        The number of workers loaded.

    Raises:
        WorkerStartError: If a worker fails to start during loading.
        PoolShutdownError: If any worker fails to shut down.
    """
    with anyio.open_signal_receiver(*SHUTDOWN_SIGNALS) as signals:
        try:
            loaded = await anyio.to_thread.run_sync(manager.load)
            if logger:
                logger.info("pool_running", workers=loaded)

            async for signum in signals:
                if logger:
                    logger.info("shutdown_signal_received", signal=signal.Signals(signum).name)
                break
        finally:
            with anyio.CancelScope(shield=True):
                await anyio.to_thread.run_sync(manager.close)

    return loaded
