"""Cancellable, time-deferred scheduling of provider recovery probes."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

logger = logging.getLogger(__name__)

ProbeFactory = Callable[[str], Awaitable[None]]


class RecoveryScheduler:
    """Keeps at most one pending recovery probe per provider.

    Scheduling a probe for a provider that already has one pending cancels the
    old one, so repeated failures never pile up timers. Probes run as detached
    asyncio tasks and never block the request that triggered them.
    """

    def __init__(self, probe: ProbeFactory):
        self._probe = probe
        self._pending: Dict[str, asyncio.Task] = {}

    def schedule(self, provider_name: str, delay: float) -> bool:
        """Run the probe for ``provider_name`` after ``delay`` seconds.

        Returns False when there is no running event loop; the periodic sweep
        picks such providers up later.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(
                f"No running event loop, recovery probe for {provider_name} deferred to sweep"
            )
            return False

        self.cancel(provider_name)
        task = loop.create_task(self._run_later(provider_name, delay))
        self._pending[provider_name] = task
        task.add_done_callback(lambda t, name=provider_name: self._forget(name, t))

        logger.debug(
            f"Scheduled recovery probe for {provider_name} in {delay:.1f}s",
            extra={"provider": provider_name, "delay": delay}
        )
        return True

    def cancel(self, provider_name: str) -> None:
        """Cancel the pending probe for ``provider_name`` if there is one."""
        task = self._pending.pop(provider_name, None)
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    def pending(self, provider_name: str) -> bool:
        """Check whether a probe is waiting for ``provider_name``."""
        task = self._pending.get(provider_name)
        return task is not None and not task.done()

    async def shutdown(self) -> None:
        """Cancel every pending probe and wait for them to finish."""
        tasks = list(self._pending.values())
        self._pending.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run_later(self, provider_name: str, delay: float) -> None:
        await asyncio.sleep(delay)
        try:
            await self._probe(provider_name)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"Recovery probe for {provider_name} failed: {e}",
                extra={"provider": provider_name},
                exc_info=True
            )

    def _forget(self, provider_name: str, task: asyncio.Task) -> None:
        if self._pending.get(provider_name) is task:
            del self._pending[provider_name]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
