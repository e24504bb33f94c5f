"""Scale Deployments and StatefulSets down in parallel and wait for them to drain."""

from scaledown.config import ScaleDownSettings, load_targets
from scaledown.orchestrator import Orchestrator, run_scale_down
from scaledown.targets import AggregateResult, Outcome, ResourceKind, ResourceTarget

__version__ = "0.1.0"

__all__ = [
    "AggregateResult",
    "Orchestrator",
    "Outcome",
    "ResourceKind",
    "ResourceTarget",
    "ScaleDownSettings",
    "load_targets",
    "run_scale_down",
]
