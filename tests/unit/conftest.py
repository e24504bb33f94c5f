"""In-memory control plane used by the scaler tests."""

import threading
from dataclasses import dataclass

import pytest

from scaledown.config import ScaleDownSettings
from scaledown.exceptions import ConflictError, ResourceNotFoundError
from scaledown.targets import ResourceKind, ResourceSnapshot, ResourceTarget


@dataclass
class FakeResource:
    desired: int
    observed: int
    version: int = 1
    # Replicas the controller removes per read; None never converges
    step: int | None = 1


class FakeSession:
    def __init__(self):
        self.resources: dict[tuple, FakeResource] = {}
        self.writes: list[tuple] = []
        self.reads: list[tuple] = []
        self.conflicts: dict[tuple, int] = {}
        self.get_errors: dict[tuple, Exception] = {}
        self.update_errors: dict[tuple, Exception] = {}
        self._lock = threading.Lock()

    def add(self, kind, namespace, name, desired, observed=None, step=1):
        self.resources[(kind, namespace, name)] = FakeResource(
            desired=desired,
            observed=desired if observed is None else observed,
            step=step,
        )

    def get(self, kind, namespace, name) -> ResourceSnapshot:
        key = (kind, namespace, name)
        with self._lock:
            self.reads.append(key)
            if key in self.get_errors:
                raise self.get_errors[key]
            res = self.resources.get(key)
            if res is None:
                raise ResourceNotFoundError(f"{kind.value} {namespace}/{name} not found")
            snapshot = ResourceSnapshot(
                desired_replicas=res.desired,
                observed_replicas=res.observed,
                resource_version=str(res.version),
            )
            if res.step is not None and res.observed != res.desired:
                if res.observed > res.desired:
                    res.observed = max(res.desired, res.observed - res.step)
                else:
                    res.observed = min(res.desired, res.observed + res.step)
            return snapshot

    def update_desired_replicas(self, kind, namespace, name, value, resource_version):
        key = (kind, namespace, name)
        with self._lock:
            if key in self.update_errors:
                raise self.update_errors[key]
            res = self.resources.get(key)
            if res is None:
                raise ResourceNotFoundError(f"{kind.value} {namespace}/{name} not found")
            if self.conflicts.get(key, 0) > 0:
                # Someone else wrote first
                self.conflicts[key] -= 1
                res.version += 1
            if str(res.version) != resource_version:
                raise ConflictError(f"{kind.value} {namespace}/{name} was modified concurrently")
            res.desired = value
            res.version += 1
            self.writes.append((key, value))

    def writes_for(self, kind, namespace, name) -> list[int]:
        return [v for k, v in self.writes if k == (kind, namespace, name)]


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def settings() -> ScaleDownSettings:
    return ScaleDownSettings(poll_interval=0.0, backoff_base=0.0)


def deployment(namespace="ns1", name="d1", replicas=0) -> ResourceTarget:
    return ResourceTarget(ResourceKind.DEPLOYMENT, namespace, name, replicas)


def statefulset(namespace="ns3", name="s1", replicas=0) -> ResourceTarget:
    return ResourceTarget(ResourceKind.STATEFULSET, namespace, name, replicas)


@pytest.fixture
def make_deployment():
    return deployment


@pytest.fixture
def make_statefulset():
    return statefulset
