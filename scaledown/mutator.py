"""Set a resource's desired replica count under optimistic concurrency.

Each attempt reads a fresh snapshot and writes with that snapshot's
resourceVersion. Conflicts are retried with exponential backoff and jitter up
to `max_attempts`; every other error ends the attempt loop immediately.
"""

import asyncio
import random
from concurrent.futures import Executor

from scaledown.config import ScaleDownSettings
from scaledown.exceptions import ConflictError, RetriesExhaustedError
from scaledown.scaler_logger import ScalerLogger
from scaledown.targets import MutationResult, ResourceTarget


logger = ScalerLogger(__name__).logger


def backoff_delay(attempt: int, settings: ScaleDownSettings, rng: random.Random | None = None) -> float:
    """Sleep before retry number `attempt` (1-based), jittered upwards."""
    rng = rng or random
    delay = min(settings.backoff_max, settings.backoff_base * settings.backoff_factor ** (attempt - 1))
    return delay * (1 + settings.backoff_jitter * rng.random())


class ReplicaMutator:
    def __init__(
        self,
        session,
        settings: ScaleDownSettings,
        rng: random.Random | None = None,
        executor: Executor | None = None,
    ):
        self.session = session
        self.settings = settings
        self.rng = rng
        # None runs client calls on the loop's default executor
        self.executor = executor

    async def mutate(self, target: ResourceTarget) -> MutationResult:
        loop = asyncio.get_running_loop()
        last_conflict: ConflictError | None = None
        for attempt in range(1, self.settings.max_attempts + 1):
            snapshot = await loop.run_in_executor(
                self.executor, self.session.get, target.kind, target.namespace, target.name
            )

            if snapshot.desired_replicas == target.target_replicas:
                logger.info(f"{target.tag} Already at {target.target_replicas} replicas.")
                return MutationResult(already_at_target=True, attempts=attempt)

            if target.target_replicas > snapshot.desired_replicas:
                logger.warning(
                    f"{target.tag} Target {target.target_replicas} is above current "
                    f"{snapshot.desired_replicas} replicas, scaling up"
                )

            try:
                await loop.run_in_executor(
                    self.executor,
                    self.session.update_desired_replicas,
                    target.kind,
                    target.namespace,
                    target.name,
                    target.target_replicas,
                    snapshot.resource_version,
                )
            except ConflictError as e:
                last_conflict = e
                if attempt == self.settings.max_attempts:
                    break
                delay = backoff_delay(attempt, self.settings, self.rng)
                logger.debug(
                    f"{target.tag} Conflict on attempt {attempt}, retrying in {delay:.3f}s"
                )
                await asyncio.sleep(delay)
                continue

            logger.info(
                f"{target.tag} Scale down command sent "
                f"({snapshot.desired_replicas} -> {target.target_replicas})."
            )
            return MutationResult(already_at_target=False, attempts=attempt)

        raise RetriesExhaustedError(self.settings.max_attempts, last_conflict)


__all__ = ["ReplicaMutator", "backoff_delay"]
