"""
Engine Metrics

Prometheus metrics for event processing and the latest OEE figures per
equipment, for Grafana dashboards.
"""

import logging

from prometheus_client import Counter, Gauge

from oee_engine.analytics.equipment_loss import EquipmentLoss
from oee_engine.exceptions import DivisionUndefined

logger = logging.getLogger(__name__)


events_processed = Counter(
    "oee_events_processed_total",
    "Total number of events applied to a loss ledger",
    ["event_class"],
)

events_rejected = Counter(
    "oee_events_rejected_total",
    "Total number of events rejected by the classifier",
    ["reason"],
)

equipment_percentage = Gauge(
    "oee_equipment_percentage",
    "Latest OEE metric percentage per equipment",
    ["equipment", "metric"],
)

equipment_loss_seconds = Gauge(
    "oee_equipment_loss_seconds",
    "Lost time per loss category",
    ["equipment", "category"],
)


def record_ledger(ledger: EquipmentLoss):
    """Publish a ledger's percentages (NaN when undefined) and loss buckets."""
    equipment = ledger.equipment or "unknown"

    for metric in ("oee", "availability", "performance", "quality"):
        try:
            value = getattr(ledger, f"calculate_{metric}_percentage")()
        except DivisionUndefined as e:
            logger.debug(f"{equipment}: {metric} undefined ({e})")
            value = float("nan")
        equipment_percentage.labels(equipment=equipment, metric=metric).set(value)

    for category, duration in ledger.loss_map.items():
        equipment_loss_seconds.labels(equipment=equipment, category=category.name).set(
            duration.total_seconds()
        )
