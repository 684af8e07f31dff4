"""
Monitoring Module

Prometheus metrics for event processing and OEE results.
"""

from .metrics import (
    events_processed,
    events_rejected,
    equipment_percentage,
    equipment_loss_seconds,
    record_ledger,
)

__all__ = [
    "events_processed",
    "events_rejected",
    "equipment_percentage",
    "equipment_loss_seconds",
    "record_ledger",
]
