"""Run settings and the YAML target list.

The target file lists workloads under `deployments` and `statefulsets`:

    deployments:
      - name: web
        namespace: shop
        replicas: 0
    statefulsets:
      - name: db
        namespace: shop

`replicas` may be omitted or null, meaning 0.
"""

from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, ValidationError

from scaledown.exceptions import ConfigurationError
from scaledown.scaler_logger import ScalerLogger
from scaledown.targets import ResourceKind, ResourceTarget


SECTIONS = {
    "deployments": ResourceKind.DEPLOYMENT,
    "statefulsets": ResourceKind.STATEFULSET,
}


logger = ScalerLogger(__name__).logger


def format_validation_error(e: ValidationError) -> str:
    """One `location: message` entry per failed field."""
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class ScaleDownSettings(BaseModel):
    """Tuning for one run, handed to the Orchestrator explicitly."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    poll_interval: float = Field(2.0, ge=0)
    max_attempts: int = Field(5, ge=1)
    backoff_base: float = Field(0.01, ge=0)
    backoff_factor: float = Field(2.0, ge=1)
    backoff_max: float = Field(1.0, ge=0)
    backoff_jitter: float = Field(0.1, ge=0)
    # Run-wide deadline in seconds; None waits until every target settles.
    timeout: Optional[float] = Field(None, gt=0)
    watch_timeout: Optional[float] = Field(None, gt=0)
    request_timeout: Optional[float] = Field(30.0, gt=0)
    verify_when_at_target: bool = False

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid settings: {format_validation_error(e)}") from e


class ResourceItem(BaseModel):
    """One entry under `deployments` or `statefulsets`."""

    model_config = ConfigDict(extra="ignore")

    name: StrictStr = Field(..., min_length=1)
    namespace: StrictStr = Field(..., min_length=1)
    replicas: Optional[StrictInt] = Field(None, ge=0)


class TargetFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    deployments: Optional[list[ResourceItem]] = None
    statefulsets: Optional[list[ResourceItem]] = None


def load_config(configfile: str) -> dict:
    try:
        with open(configfile) as file:
            config = yaml.safe_load(file)
    except OSError as e:
        raise ConfigurationError(f"failed to read config file {configfile}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"failed to parse config file {configfile}: {e}") from e
    if config is None:
        raise ConfigurationError(f"config file {configfile} was empty")
    if not isinstance(config, dict):
        raise ConfigurationError(f"config file {configfile} must contain a mapping")
    return config


def parse_targets(config: dict) -> list[ResourceTarget]:
    try:
        parsed = TargetFile.model_validate(config)
    except ValidationError as e:
        raise ConfigurationError(format_validation_error(e)) from e

    targets: list[ResourceTarget] = []
    seen: set[tuple] = set()
    for section, kind in SECTIONS.items():
        for item in getattr(parsed, section) or []:
            target = ResourceTarget(
                kind=kind,
                namespace=item.namespace,
                name=item.name,
                target_replicas=item.replicas or 0,
            )
            key = (target.kind, target.namespace, target.name)
            if key in seen:
                raise ConfigurationError(f"{target.address} is listed more than once")
            seen.add(key)
            targets.append(target)

    if not targets:
        raise ConfigurationError("no deployments or statefulsets to scale")
    return targets


def load_targets(configfile: str) -> list[ResourceTarget]:
    targets = parse_targets(load_config(configfile))
    logger.info(f"Loaded {len(targets)} targets from {configfile}")
    return targets


__all__ = [
    "ScaleDownSettings",
    "ResourceItem",
    "TargetFile",
    "load_config",
    "parse_targets",
    "load_targets",
]
