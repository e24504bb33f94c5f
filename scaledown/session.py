"""Control-plane session for Deployments and StatefulSets.

Wraps the synchronous `kubernetes` client behind the two calls the scaler
needs, `get` and `update_desired_replicas`, and translates API failures into
the package's error taxonomy. The client is safe to share between threads,
so one session serves every concurrent target.
"""

from typing import Any, Callable

import urllib3
from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from scaledown.exceptions import (
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    ResourceNotFoundError,
    TransportError,
)
from scaledown.scaler_logger import ScalerLogger
from scaledown.targets import ResourceKind, ResourceSnapshot


logger = ScalerLogger(__name__).logger


def translate_api_error(e: Exception, what: str) -> Exception:
    """Map a client exception onto ConflictError, ResourceNotFoundError, etc."""
    if isinstance(e, client.ApiException):
        if e.status == 404:
            return ResourceNotFoundError(f"{what} not found")
        if e.status in (401, 403):
            return ForbiddenError(f"access to {what} denied: {e.reason}")
        if e.status == 409:
            return ConflictError(f"{what} was modified concurrently")
        return TransportError(f"{what}: API returned {e.status} {e.reason}")
    return TransportError(f"{what}: {e}")


def snapshot_from_object(obj: Any) -> ResourceSnapshot:
    """Read desired/observed replicas and the resourceVersion from one object."""
    spec_replicas = getattr(obj.spec, "replicas", None)
    status = getattr(obj, "status", None)
    status_replicas = getattr(status, "replicas", None) if status is not None else None
    return ResourceSnapshot(
        # The API server defaults an unset spec.replicas to 1
        desired_replicas=1 if spec_replicas is None else spec_replicas,
        observed_replicas=status_replicas or 0,
        resource_version=obj.metadata.resource_version,
    )


class KubeSession:
    def __init__(self, apps: client.AppsV1Api, request_timeout: float | None = 30.0):
        self.apps = apps
        self.request_timeout = request_timeout
        self._readers: dict[ResourceKind, Callable[..., Any]] = {
            ResourceKind.DEPLOYMENT: apps.read_namespaced_deployment,
            ResourceKind.STATEFULSET: apps.read_namespaced_stateful_set,
        }
        self._patchers: dict[ResourceKind, Callable[..., Any]] = {
            ResourceKind.DEPLOYMENT: apps.patch_namespaced_deployment,
            ResourceKind.STATEFULSET: apps.patch_namespaced_stateful_set,
        }

    @classmethod
    def from_kubeconfig(
        cls,
        kubeconfig: str | None = None,
        context: str | None = None,
        in_cluster: bool = False,
        request_timeout: float | None = 30.0,
    ) -> "KubeSession":
        """Load credentials the way kubectl does, falling back to in-cluster config.

        An explicit kubeconfig path never falls back.
        """
        try:
            if in_cluster:
                config.load_incluster_config()
            else:
                try:
                    config.load_kube_config(config_file=kubeconfig, context=context)
                except ConfigException:
                    if kubeconfig:
                        raise
                    logger.info("No usable kubeconfig, trying in-cluster config")
                    config.load_incluster_config()
        except ConfigException as e:
            raise ConfigurationError(f"Failed to load cluster config: {e}") from e
        return cls(client.AppsV1Api(), request_timeout=request_timeout)

    def _kwargs(self) -> dict[str, Any]:
        if self.request_timeout is None:
            return {}
        return {"_request_timeout": self.request_timeout}

    def _lookup(self, table: dict, kind: ResourceKind) -> Callable[..., Any]:
        try:
            return table[kind]
        except KeyError:
            raise ConfigurationError(f"unsupported kind: {kind}") from None

    def get(self, kind: ResourceKind, namespace: str, name: str) -> ResourceSnapshot:
        read = self._lookup(self._readers, kind)
        try:
            obj = read(name=name, namespace=namespace, **self._kwargs())
        except (client.ApiException, urllib3.exceptions.HTTPError, OSError) as e:
            raise translate_api_error(e, f"{kind.value} {namespace}/{name}") from e
        return snapshot_from_object(obj)

    def update_desired_replicas(
        self,
        kind: ResourceKind,
        namespace: str,
        name: str,
        value: int,
        resource_version: str,
    ) -> None:
        """Set spec.replicas only if the object is still at `resource_version`.

        The resourceVersion in the patch body is a precondition: the API server
        answers 409 when it no longer matches.
        """
        patch = self._lookup(self._patchers, kind)
        body = {
            "metadata": {"resourceVersion": resource_version},
            "spec": {"replicas": value},
        }
        try:
            patch(name=name, namespace=namespace, body=body, **self._kwargs())
        except (client.ApiException, urllib3.exceptions.HTTPError, OSError) as e:
            raise translate_api_error(e, f"{kind.value} {namespace}/{name}") from e


__all__ = ["KubeSession", "snapshot_from_object", "translate_api_error"]
