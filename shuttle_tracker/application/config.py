"""
Configuración por defecto (clustering, salud, refresco) y lectura de entorno.
Un solo lugar para evitar duplicar valores entre API, debug y motor.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Optional

from shuttle_tracker.domain.constraints import ClusterParams, HealthThresholds, RefreshPolicy

DEFAULT_CLUSTER_PARAMS = ClusterParams(
    radius_m=1000.0,
    min_cluster_size=2,
    recent_window=timedelta(minutes=5),
)

DEFAULT_HEALTH_THRESHOLDS = HealthThresholds(
    active_max_min=2.0,
    stale_max_min=10.0,
)

DEFAULT_REFRESH_POLICY = RefreshPolicy(
    clusters_interval_s=5.0,
    health_interval_s=15.0,
    trigger="interval",
)

DEFAULT_DATA_FILE = Path("data.json")
DEFAULT_PORT = 3000


@dataclass(frozen=True)
class ServiceSettings:
    data_file: Path = DEFAULT_DATA_FILE
    port: int = DEFAULT_PORT
    cluster_params: ClusterParams = field(default=DEFAULT_CLUSTER_PARAMS)
    health_thresholds: HealthThresholds = field(default=DEFAULT_HEALTH_THRESHOLDS)
    refresh_policy: RefreshPolicy = field(default=DEFAULT_REFRESH_POLICY)


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings(env: Optional[Mapping[str, str]] = None) -> ServiceSettings:
    """ServiceSettings from environment variables (SHUTTLE_*, PORT). Invalid values raise ValueError."""
    if env is None:
        env = os.environ
    cluster_params = ClusterParams(
        radius_m=_get_float(env, "SHUTTLE_CLUSTER_RADIUS_M", DEFAULT_CLUSTER_PARAMS.radius_m),
        min_cluster_size=_get_int(
            env, "SHUTTLE_MIN_CLUSTER_SIZE", DEFAULT_CLUSTER_PARAMS.min_cluster_size
        ),
        recent_window=timedelta(
            minutes=_get_float(
                env,
                "SHUTTLE_RECENT_MINUTES",
                DEFAULT_CLUSTER_PARAMS.recent_window.total_seconds() / 60.0,
            )
        ),
    )
    health_thresholds = HealthThresholds(
        active_max_min=_get_float(
            env, "SHUTTLE_ACTIVE_MAX_MINUTES", DEFAULT_HEALTH_THRESHOLDS.active_max_min
        ),
        stale_max_min=_get_float(
            env, "SHUTTLE_STALE_MAX_MINUTES", DEFAULT_HEALTH_THRESHOLDS.stale_max_min
        ),
    )
    refresh_policy = RefreshPolicy(
        clusters_interval_s=_get_float(
            env, "SHUTTLE_CLUSTER_REFRESH_S", DEFAULT_REFRESH_POLICY.clusters_interval_s
        ),
        health_interval_s=_get_float(
            env, "SHUTTLE_HEALTH_REFRESH_S", DEFAULT_REFRESH_POLICY.health_interval_s
        ),
        trigger=env.get("SHUTTLE_REFRESH_TRIGGER", DEFAULT_REFRESH_POLICY.trigger),
    )
    return ServiceSettings(
        data_file=Path(env.get("SHUTTLE_DATA_FILE", str(DEFAULT_DATA_FILE))),
        port=_get_int(env, "PORT", DEFAULT_PORT),
        cluster_params=cluster_params,
        health_thresholds=health_thresholds,
        refresh_policy=refresh_policy,
    )
