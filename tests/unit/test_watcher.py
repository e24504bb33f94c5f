"""ConvergenceWatcher: only an observed match ends the watch successfully."""

import asyncio

import pytest

from scaledown.config import ScaleDownSettings
from scaledown.exceptions import ConvergenceTimeoutError, ResourceNotFoundError, TransportError
from scaledown.targets import ResourceKind
from scaledown.watcher import ConvergenceWatcher


@pytest.mark.asyncio
async def test_polls_until_observed_matches(session, settings, make_deployment):
    session.add(ResourceKind.DEPLOYMENT, "ns1", "d1", desired=0, observed=3)
    watcher = ConvergenceWatcher(session, settings)

    snapshot = await watcher.await_convergence(make_deployment())

    assert snapshot.observed_replicas == 0
    # reads saw 3, 2, 1, 0
    assert len(session.reads) == 4


@pytest.mark.asyncio
async def test_never_succeeds_on_mismatching_tick(session, settings, make_deployment):
    seen = []
    get = session.get

    def recording_get(kind, namespace, name):
        snapshot = get(kind, namespace, name)
        seen.append(snapshot.observed_replicas)
        return snapshot

    session.get = recording_get
    session.add(ResourceKind.DEPLOYMENT, "ns1", "d1", desired=0, observed=2)
    watcher = ConvergenceWatcher(session, settings)

    snapshot = await watcher.await_convergence(make_deployment())

    assert seen == [2, 1, 0]
    assert snapshot.observed_replicas == seen[-1] == 0


@pytest.mark.asyncio
async def test_first_read_waits_one_interval(session, make_deployment):
    settings = ScaleDownSettings(poll_interval=0.05)
    session.add(ResourceKind.DEPLOYMENT, "ns1", "d1", desired=0, observed=0)
    watcher = ConvergenceWatcher(session, settings)

    task = asyncio.create_task(watcher.await_convergence(make_deployment()))
    await asyncio.sleep(0.01)
    assert session.reads == []
    await task
    assert len(session.reads) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [ResourceNotFoundError("gone"), TransportError("timeout")])
async def test_fetch_error_fails_immediately(session, settings, make_deployment, error):
    session.add(ResourceKind.DEPLOYMENT, "ns1", "d1", desired=0, observed=2)
    session.get_errors[(ResourceKind.DEPLOYMENT, "ns1", "d1")] = error
    watcher = ConvergenceWatcher(session, settings)

    with pytest.raises(type(error)):
        await watcher.await_convergence(make_deployment())

    assert len(session.reads) == 1


@pytest.mark.asyncio
async def test_watch_timeout_raises_distinct_error(session, make_statefulset):
    settings = ScaleDownSettings(poll_interval=0.01, watch_timeout=0.05)
    session.add(ResourceKind.STATEFULSET, "ns3", "s1", desired=0, observed=2, step=None)
    watcher = ConvergenceWatcher(session, settings)

    with pytest.raises(ConvergenceTimeoutError) as exc_info:
        await watcher.await_convergence(make_statefulset())

    assert exc_info.value.observed == 2
    assert exc_info.value.target == 0
    assert len(session.reads) >= 2
