"""
Health check aggregation — readiness probe for the alert pipeline.

Checks:
    • Alert configuration loaded (credentials, senders, recipients)
    • Messaging client available
    • Orchestrator wired

No provider call is made: a probe must never send messages.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"  # partial functionality
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    name: str
    status: HealthStatus = HealthStatus.HEALTHY
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"name": self.name, "status": self.status.value}
        if self.message:
            d["message"] = self.message
        if self.details:
            d["details"] = self.details
        return d


@dataclass
class HealthReport:
    status: HealthStatus = HealthStatus.HEALTHY
    version: str = ""
    environment: str = ""
    timestamp: str = ""
    uptime_seconds: float = 0.0
    components: List[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "version": self.version,
            "environment": self.environment,
            "timestamp": self.timestamp or datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": round(self.uptime_seconds, 1),
            "components": [c.to_dict() for c in self.components],
        }


# Track application start time
_start_time = time.monotonic()


def check_alert_config(state: Any) -> ComponentHealth:
    comp = ComponentHealth(name="alert_config")
    config = getattr(state, "alert_config", None)
    if config is None:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = "Alert configuration not loaded"
        return comp
    comp.details = {"recipient_count": len(config.recipients)}
    return comp


def check_messaging(state: Any) -> ComponentHealth:
    comp = ComponentHealth(name="messaging")
    if getattr(state, "sender", None) is None:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = "Messaging client not initialised"
    return comp


def check_orchestrator(state: Any) -> ComponentHealth:
    comp = ComponentHealth(name="orchestrator")
    if getattr(state, "orchestrator", None) is None:
        comp.status = HealthStatus.UNHEALTHY
        comp.message = "Crisis orchestrator not initialised"
    return comp


async def run_health_check(state: Any) -> HealthReport:
    """Aggregate component checks from ``app.state``."""
    cfg = getattr(state, "settings", None)
    components = [
        check_alert_config(state),
        check_messaging(state),
        check_orchestrator(state),
    ]

    statuses = {c.status for c in components}
    if HealthStatus.UNHEALTHY in statuses:
        overall = HealthStatus.UNHEALTHY
    elif HealthStatus.DEGRADED in statuses:
        overall = HealthStatus.DEGRADED
    else:
        overall = HealthStatus.HEALTHY

    if overall != HealthStatus.HEALTHY:
        logger.warning("Health check %s: %s", overall.value,
                       [c.name for c in components if c.status != HealthStatus.HEALTHY])

    return HealthReport(
        status=overall,
        version=cfg.APP_VERSION if cfg else "",
        environment=cfg.ENVIRONMENT if cfg else "",
        uptime_seconds=time.monotonic() - _start_time,
        components=components,
    )
