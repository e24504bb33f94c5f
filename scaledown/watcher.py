"""Poll a resource until its observed replica count reaches the target."""

import asyncio
from concurrent.futures import Executor

from scaledown.config import ScaleDownSettings
from scaledown.exceptions import ConvergenceTimeoutError
from scaledown.scaler_logger import ScalerLogger
from scaledown.targets import ResourceSnapshot, ResourceTarget


logger = ScalerLogger(__name__).logger


class ConvergenceWatcher:
    def __init__(self, session, settings: ScaleDownSettings, executor: Executor | None = None):
        self.session = session
        self.settings = settings
        self.executor = executor

    async def await_convergence(self, target: ResourceTarget) -> ResourceSnapshot:
        """Return the first snapshot whose observed count equals the target.

        The first read happens one poll interval after the call. A failed read
        is raised as is. With `watch_timeout` set, ConvergenceTimeoutError is
        raised once a read taken at or after the deadline still disagrees.
        """
        loop = asyncio.get_running_loop()
        deadline = None
        if self.settings.watch_timeout is not None:
            deadline = loop.time() + self.settings.watch_timeout

        while True:
            interval = self.settings.poll_interval
            if deadline is not None:
                interval = max(0.0, min(interval, deadline - loop.time()))
            await asyncio.sleep(interval)

            snapshot = await loop.run_in_executor(
                self.executor, self.session.get, target.kind, target.namespace, target.name
            )
            if snapshot.observed_replicas == target.target_replicas:
                logger.info(f"{target.tag} Scale complete.")
                return snapshot

            if deadline is not None and loop.time() >= deadline:
                raise ConvergenceTimeoutError(
                    self.settings.watch_timeout,
                    snapshot.observed_replicas,
                    target.target_replicas,
                )

            logger.info(
                f"{target.tag} Waiting for {target.kind.value.lower()} scale down... "
                f"Current replicas: {snapshot.observed_replicas}"
            )


__all__ = ["ConvergenceWatcher"]
