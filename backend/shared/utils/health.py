"""
Dependency health checks.

A check is a plain function that raises when the dependency is down and may
return a dict of details. ``health_check_with_timeout`` turns it into one
returning a HealthCheckResult, bounded by a timeout:

    @health_check_with_timeout(timeout=3.0, component="database")
    def check_database_health():
        ...
"""

from __future__ import annotations

import functools
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from shared.config.logging import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class HealthCheckResult:
    status: HealthStatus
    component: str
    latency_ms: float | None = None
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value, "component": self.component}
        if self.latency_ms is not None:
            data["latency_ms"] = round(self.latency_ms, 2)
        if self.error:
            data["error"] = self.error
        if self.details:
            data["details"] = self.details
        return data


def health_check_with_timeout(
    timeout: float = 5.0,
    component: str | None = None,
) -> Callable[[Callable[..., dict[str, Any] | None]], Callable[..., HealthCheckResult]]:
    def decorator(check: Callable[..., dict[str, Any] | None]) -> Callable[..., HealthCheckResult]:
        name = component or check.__name__.removeprefix("check_").removesuffix("_health")

        @functools.wraps(check)
        def run(*args: Any, **kwargs: Any) -> HealthCheckResult:
            started = time.perf_counter()

            def unhealthy(error: str) -> HealthCheckResult:
                logger.warning("Health check failed", component=name, error=error)
                return HealthCheckResult(
                    HealthStatus.UNHEALTHY, name, (time.perf_counter() - started) * 1000, error
                )

            # A hung driver call must not hang the probe
            pool = ThreadPoolExecutor(max_workers=1)
            try:
                details = pool.submit(check, *args, **kwargs).result(timeout=timeout)
            except FutureTimeout:
                return unhealthy(f"timeout after {timeout}s")
            except Exception as e:
                return unhealthy(str(e))
            finally:
                pool.shutdown(wait=False)

            return HealthCheckResult(
                HealthStatus.HEALTHY,
                name,
                (time.perf_counter() - started) * 1000,
                details=details if isinstance(details, dict) else {},
            )

        return run

    return decorator


def aggregate_health_checks(results: list[HealthCheckResult]) -> dict[str, Any]:
    """Healthy only when every component is; degraded otherwise."""
    overall = (
        HealthStatus.HEALTHY
        if all(r.status is HealthStatus.HEALTHY for r in results)
        else HealthStatus.DEGRADED
    )
    return {
        "status": overall.value,
        "components": {r.component: r.to_dict() for r in results},
    }
