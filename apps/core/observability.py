"""
Health checks for the newsroom service.

Named checks back the /health/, /livez/ and /readyz/ endpoints:
- database: the workflow store answers queries
- assignment_backlog: tasks are not sitting unassigned past a grace
  period (no eligible staff for a step shows up here first)

Application metrics live in apps.core.metrics.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from django.conf import settings
from django.db import DatabaseError, connection
from django.utils import timezone

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}


@dataclass
class HealthCheckResult:
    name: str
    status: HealthStatus
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
    duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "duration_ms": self.duration_ms,
        }


class HealthChecker:
    """
    Registry of named health checks.

    A check that raises is reported as unhealthy rather than failing the
    endpoint; the overall status is the worst individual status.
    """

    def __init__(self):
        self._checks: Dict[str, Callable[[], HealthCheckResult]] = {}

    def register(self, name: str, check_fn: Callable[[], HealthCheckResult]) -> None:
        self._checks[name] = check_fn

    def names(self) -> List[str]:
        return list(self._checks)

    def check(self, name: str) -> HealthCheckResult:
        check_fn = self._checks.get(name)
        if check_fn is None:
            return HealthCheckResult(name, HealthStatus.UNHEALTHY, f"Unknown check: {name}")

        start = time.perf_counter()
        try:
            result = check_fn()
        except Exception as e:
            logger.exception(f"Health check {name} raised")
            result = HealthCheckResult(name, HealthStatus.UNHEALTHY, str(e))
        result.duration_ms = round((time.perf_counter() - start) * 1000, 2)
        return result

    def check_all(self) -> Dict[str, Any]:
        results = {name: self.check(name) for name in self._checks}
        overall = max(
            (result.status for result in results.values()),
            key=lambda status: status.severity,
            default=HealthStatus.HEALTHY,
        )
        return {
            "status": overall.value,
            "checks": {name: result.to_dict() for name, result in results.items()},
            "timestamp": timezone.now().isoformat(),
        }


health_checker = HealthChecker()


# =============================================================================
# Newsroom Checks
# =============================================================================

def check_database() -> HealthCheckResult:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as e:
        return HealthCheckResult("database", HealthStatus.UNHEALTHY, f"Database error: {e}")
    return HealthCheckResult("database", HealthStatus.HEALTHY, "Database connection successful")


def check_assignment_backlog() -> HealthCheckResult:
    """Degraded while tasks wait unassigned longer than the grace period."""
    from apps.tasks.models import Task

    grace_hours = getattr(settings, 'NEWSROOM_UNASSIGNED_GRACE_HOURS', 24)
    cutoff = timezone.now() - timedelta(hours=grace_hours)
    waiting = Task.objects.filter(status='PENDING_ASSIGNMENT', created_at__lt=cutoff)
    count = waiting.count()

    if not count:
        return HealthCheckResult("assignment_backlog", HealthStatus.HEALTHY, "No stale unassigned tasks")

    task_types = sorted(set(waiting.values_list('task_type', flat=True)))
    return HealthCheckResult(
        "assignment_backlog",
        HealthStatus.DEGRADED,
        f"{count} task(s) unassigned for more than {grace_hours}h",
        details={'count': count, 'task_types': task_types},
    )


def register_default_checks():
    health_checker.register("database", check_database)
    health_checker.register("assignment_backlog", check_assignment_backlog)
