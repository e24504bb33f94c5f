"""Shared value types: what to scale, what was read, and how it ended."""

from dataclasses import dataclass, field
from enum import Enum


class ResourceKind(str, Enum):
    DEPLOYMENT = "Deployment"
    STATEFULSET = "StatefulSet"


@dataclass(frozen=True)
class ResourceTarget:
    """One workload to drain. Immutable; one target yields one scaler run."""

    kind: ResourceKind
    namespace: str
    name: str
    target_replicas: int = 0

    @property
    def address(self) -> str:
        kind = self.kind.value if isinstance(self.kind, ResourceKind) else str(self.kind)
        return f"{kind} {self.namespace}/{self.name}"

    @property
    def tag(self) -> str:
        """Prefix used on per-target log lines."""
        return f"[{self.namespace}/{self.name}]"


@dataclass(frozen=True)
class ResourceSnapshot:
    """A single read of a resource. Never reused across a write or a poll tick."""

    desired_replicas: int
    observed_replicas: int
    resource_version: str


@dataclass(frozen=True)
class MutationResult:
    already_at_target: bool
    attempts: int = 1


@dataclass(frozen=True)
class Outcome:
    target: ResourceTarget
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.cause is None

    @classmethod
    def success(cls, target: ResourceTarget) -> "Outcome":
        return cls(target=target)

    @classmethod
    def failure(cls, target: ResourceTarget, cause: BaseException) -> "Outcome":
        return cls(target=target, cause=cause)

    def describe(self) -> str:
        if self.ok:
            return f"{self.target.address}: ok"
        return f"{self.target.address}: {self.cause}"


@dataclass
class AggregateResult:
    """Outcomes of one run, in completion order."""

    outcomes: list[Outcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(o.ok for o in self.outcomes)

    @property
    def failures(self) -> list[Outcome]:
        return [o for o in self.outcomes if not o.ok]

    def summary_lines(self) -> list[str]:
        return [f"- {o.describe()}" for o in self.failures]


__all__ = [
    "ResourceKind",
    "ResourceTarget",
    "ResourceSnapshot",
    "MutationResult",
    "Outcome",
    "AggregateResult",
]
