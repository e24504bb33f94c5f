"""Error taxonomy for a scale-down run.

Only ConfigurationError raised before orchestration aborts a whole run.
Everything else is caught per target and becomes that target's failure.
"""


class ScaleDownError(Exception):
    """Base class for every error this package raises."""


class ConfigurationError(ScaleDownError):
    """Unreadable or malformed input, or an unsupported resource kind."""


class ConflictError(ScaleDownError):
    """The stored resourceVersion no longer matches the one presented."""


class ResourceNotFoundError(ScaleDownError):
    pass


class ForbiddenError(ScaleDownError):
    pass


class TransportError(ScaleDownError):
    """Network failure or an unexpected API status."""


class RetriesExhaustedError(ScaleDownError):
    def __init__(self, attempts: int, last_error: Exception | None = None):
        self.attempts = attempts
        self.last_error = last_error
        msg = f"gave up after {attempts} conflicting update attempts"
        if last_error is not None:
            msg += f": {last_error}"
        super().__init__(msg)


class ConvergenceTimeoutError(ScaleDownError):
    def __init__(self, timeout: float, observed: int | None, target: int):
        self.timeout = timeout
        self.observed = observed
        self.target = target
        super().__init__(
            f"observed replicas {observed} did not reach {target} within {timeout}s"
        )


class ScaleCancelledError(ScaleDownError):
    """The run was aborted or hit its deadline before this target finished."""

    def __init__(self, deadline_exceeded: bool = False):
        self.deadline_exceeded = deadline_exceeded
        super().__init__("deadline exceeded" if deadline_exceeded else "cancelled")


__all__ = [
    "ScaleDownError",
    "ConfigurationError",
    "ConflictError",
    "ResourceNotFoundError",
    "ForbiddenError",
    "TransportError",
    "RetriesExhaustedError",
    "ConvergenceTimeoutError",
    "ScaleCancelledError",
]
