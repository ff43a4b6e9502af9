"""
Estimate Poller
---------------

Re-prices an active rental on a fixed interval while somebody is watching it.
Each live view owns one poller, and a poller runs at most one task: starting
it again replaces the running task rather than adding a second one.
"""
import asyncio
from typing import Awaitable, Callable, Optional

from kiosk import logger
from kiosk.pricing import PriceEstimate

EstimateCallback = Callable[[PriceEstimate], Awaitable[None]]


class EstimatePoller:
    """
    :param get_estimate: Produces the current estimate.
    :param on_estimate: Receives each estimate as it is produced.
    :param interval: The seconds between estimates.
    """

    def __init__(self, get_estimate: Callable[[], Awaitable[PriceEstimate]], on_estimate: EstimateCallback,
                 interval: float = 15):
        self._get_estimate = get_estimate
        self._on_estimate = on_estimate
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """Starts polling, estimating once straight away, cancelling any poll already running."""
        self.stop()
        self._task = asyncio.ensure_future(self._run())
        return self._task

    def stop(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def close(self):
        """Stops polling and waits for the running task to unwind."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as error:
            logger.warning("Estimate poll ended with an error: %s", error)

    async def _run(self):
        while True:
            try:
                estimate = await self._get_estimate()
            except Exception as error:
                # a failed estimate is dropped, the next tick tries again
                logger.warning("Could not estimate rental price: %s", error)
            else:
                try:
                    await self._on_estimate(estimate)
                except Exception as error:
                    # nobody is left to receive estimates
                    logger.warning("Stopped polling, could not deliver estimate: %s", error)
                    return
            await asyncio.sleep(self.interval)
