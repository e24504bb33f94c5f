"""Drain one resource: mutate, then watch, and report a single Outcome."""

from concurrent.futures import Executor

from scaledown.config import ScaleDownSettings
from scaledown.exceptions import ConfigurationError, ScaleDownError
from scaledown.mutator import ReplicaMutator
from scaledown.scaler_logger import ScalerLogger
from scaledown.targets import Outcome, ResourceKind, ResourceTarget
from scaledown.watcher import ConvergenceWatcher


logger = ScalerLogger(__name__).logger


class ResourceScaler:
    def __init__(
        self,
        session,
        settings: ScaleDownSettings,
        mutator: ReplicaMutator | None = None,
        watcher: ConvergenceWatcher | None = None,
        executor: Executor | None = None,
    ):
        self.settings = settings
        self.mutator = mutator or ReplicaMutator(session, settings, executor=executor)
        self.watcher = watcher or ConvergenceWatcher(session, settings, executor=executor)

    async def scale(self, target: ResourceTarget) -> Outcome:
        """Never raises for per-target errors; cancellation still propagates."""
        logger.info(f"{target.tag} Starting scale down...")

        if not isinstance(target.kind, ResourceKind):
            cause = ConfigurationError(f"unsupported kind: {target.kind}")
            logger.error(f"{target.tag} {cause}")
            return Outcome.failure(target, cause)

        try:
            result = await self.mutator.mutate(target)
            if result.already_at_target and not self.settings.verify_when_at_target:
                return Outcome.success(target)

            logger.info(f"{target.tag} Watching for {target.target_replicas} replicas...")
            await self.watcher.await_convergence(target)
        except ScaleDownError as e:
            logger.error(f"{target.tag} {type(e).__name__}: {e}")
            return Outcome.failure(target, e)
        except Exception as e:
            logger.exception(f"{target.tag} Unexpected error")
            return Outcome.failure(target, e)

        return Outcome.success(target)


__all__ = ["ResourceScaler"]
