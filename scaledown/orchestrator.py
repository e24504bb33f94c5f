"""Fan the Resource Scaler out over every target and aggregate the outcomes.

Every target gets its own asyncio task; there is no ordering between them and
no concurrency cap. The run waits for all tasks before aggregating. Setting
the cancellation event, or hitting `settings.timeout`, cancels whatever is
still in flight; those targets fail with ScaleCancelledError while targets
that already finished keep their outcome.
"""

import asyncio
from concurrent.futures import Executor

from scaledown.config import ScaleDownSettings
from scaledown.exceptions import ScaleCancelledError
from scaledown.scaler import ResourceScaler
from scaledown.scaler_logger import ScalerLogger
from scaledown.targets import AggregateResult, Outcome, ResourceTarget


logger = ScalerLogger(__name__).logger


class Orchestrator:
    def __init__(
        self,
        session,
        settings: ScaleDownSettings | None = None,
        scaler: ResourceScaler | None = None,
        executor: Executor | None = None,
    ):
        self.settings = settings or ScaleDownSettings()
        self.scaler = scaler or ResourceScaler(session, self.settings, executor=executor)

    async def _scale_into(self, target: ResourceTarget, outcomes: list[Outcome]) -> None:
        outcomes.append(await self.scaler.scale(target))

    async def run(
        self,
        targets: list[ResourceTarget],
        cancel_event: asyncio.Event | None = None,
    ) -> AggregateResult:
        outcomes: list[Outcome] = []
        tasks: dict[asyncio.Task, ResourceTarget] = {
            asyncio.create_task(self._scale_into(t, outcomes), name=t.address): t
            for t in targets
        }
        if not tasks:
            return AggregateResult(outcomes)

        cancel_event = cancel_event or asyncio.Event()
        stop = asyncio.create_task(cancel_event.wait())
        loop = asyncio.get_running_loop()
        deadline = None if self.settings.timeout is None else loop.time() + self.settings.timeout
        deadline_exceeded = False

        try:
            pending = set(tasks)
            while pending:
                timeout = None if deadline is None else max(0.0, deadline - loop.time())
                done, _ = await asyncio.wait(
                    pending | {stop}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                )
                pending -= done
                if stop in done:
                    logger.warning(f"Cancellation requested, aborting {len(pending)} in-flight targets")
                    break
                if not done:
                    deadline_exceeded = True
                    logger.warning(
                        f"Deadline of {self.settings.timeout}s exceeded, "
                        f"aborting {len(pending)} in-flight targets"
                    )
                    break
        finally:
            stop.cancel()
            unfinished = [t for t in tasks if not t.done()]
            for task in unfinished:
                task.cancel()
            await asyncio.gather(stop, *unfinished, return_exceptions=True)

        for task in unfinished:
            if task.cancelled():
                outcomes.append(
                    Outcome.failure(tasks[task], ScaleCancelledError(deadline_exceeded))
                )

        result = AggregateResult(outcomes)
        logger.info(
            f"Finished {len(result.outcomes)} targets, {len(result.failures)} failed"
        )
        return result


async def run_scale_down(
    session,
    targets: list[ResourceTarget],
    settings: ScaleDownSettings | None = None,
    cancel_event: asyncio.Event | None = None,
    executor: Executor | None = None,
) -> AggregateResult:
    return await Orchestrator(session, settings, executor=executor).run(targets, cancel_event)


__all__ = ["Orchestrator", "run_scale_down"]
