import dataclasses

import pytest

from scaledown.exceptions import ResourceNotFoundError
from scaledown.targets import AggregateResult, Outcome, ResourceKind, ResourceTarget


def test_target_is_immutable():
    target = ResourceTarget(ResourceKind.DEPLOYMENT, "ns1", "d1")
    assert target.target_replicas == 0
    with pytest.raises(dataclasses.FrozenInstanceError):
        target.target_replicas = 3


def test_address_and_tag():
    target = ResourceTarget(ResourceKind.STATEFULSET, "ns3", "s1", 0)
    assert target.address == "StatefulSet ns3/s1"
    assert target.tag == "[ns3/s1]"


def test_aggregate_keeps_completion_order():
    a = ResourceTarget(ResourceKind.DEPLOYMENT, "ns1", "a")
    b = ResourceTarget(ResourceKind.DEPLOYMENT, "ns1", "b")
    c = ResourceTarget(ResourceKind.DEPLOYMENT, "ns1", "c")
    result = AggregateResult(
        [
            Outcome.failure(c, ResourceNotFoundError("Deployment ns1/c not found")),
            Outcome.success(b),
            Outcome.failure(a, RuntimeError("boom")),
        ]
    )

    assert not result.success
    assert [o.target.name for o in result.failures] == ["c", "a"]
    assert result.summary_lines() == [
        "- Deployment ns1/c: Deployment ns1/c not found",
        "- Deployment ns1/a: boom",
    ]


def test_empty_aggregate_is_success():
    assert AggregateResult().success
