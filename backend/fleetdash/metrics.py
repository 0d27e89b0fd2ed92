# fleetdash/metrics.py
# ------------------------------------------------------------
# Fleet-wide metrics and driver scoring.
#
# Metrics are recomputed from scratch after every state change.
# Rosters are tens of vehicles, so a full pass is cheap and there
# is no delta bookkeeping to drift out of sync.
# ------------------------------------------------------------

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from .alert_log import AlertLog
from .models import (
    EventType,
    FleetMetrics,
    VehicleState,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
)

# points deducted per recorded alert
PERFORMANCE_PENALTIES: Dict[EventType, int] = {
    EventType.SPEEDING: 5,
    EventType.HARD_BRAKING: 2,
    EventType.DEVICE_OFFLINE: 10,
}


def compute_metrics(states: Iterable[VehicleState], alert_log: AlertLog) -> FleetMetrics:
    states = list(states)
    total = len(states)

    return FleetMetrics(
        total_trips=total,
        active_trips=sum(1 for s in states if s.is_active),
        completed_trips=sum(1 for s in states if s.status == STATUS_COMPLETED),
        cancelled_trips=sum(1 for s in states if s.status == STATUS_CANCELLED),
        total_alerts=len(alert_log),
        average_completion=(sum(s.progress for s in states) / total) if total else 0.0,
        alerts_by_severity=alert_log.count_by_severity(),
    )


def _score_label(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Good"
    if score >= 60:
        return "Fair"
    return "Poor"


def driver_performance(states: Iterable[VehicleState]) -> List[Dict[str, Any]]:
    """
    Per-driver score: 100 minus a fixed penalty per recorded alert,
    clamped to [0, 100]. Best drivers first.
    """
    rows: List[Dict[str, Any]] = []
    for state in states:
        score = 100
        for alert in state.alerts:
            score -= PERFORMANCE_PENALTIES.get(alert.event_type, 0)
        score = max(0, min(100, score))

        rows.append({
            "tripId": state.id,
            "driverName": state.driver_name,
            "performanceScore": score,
            "label": _score_label(score),
            "alertCount": len(state.alerts),
            "speed": state.speed,
            "status": state.status,
        })

    rows.sort(key=lambda r: r["performanceScore"], reverse=True)
    return rows
