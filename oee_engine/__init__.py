"""
OEE Loss Waterfall Engine

Computes Overall Equipment Effectiveness (OEE) for a piece of manufacturing
equipment over a time window by splitting calendar time into mutually
exclusive time-loss buckets and deriving the nested production times by
successive subtraction.

Components:
- models: TimeLoss taxonomy, OEE events, downtime reasons
- uom: unit and quantity conversion
- analytics: equipment loss ledger, event classifier, Pareto projection
- streams: per-equipment event processing and CSV loading
- monitoring: Prometheus metrics

Event acquisition and persistence are left to the caller.
"""

from oee_engine.exceptions import (
    OeeEngineError,
    UnclassifiedEvent,
    IncompatibleUnits,
    DivisionUndefined,
    InvalidCategory,
    MissingBaseline,
)
from oee_engine.models.time_loss import TimeLoss, WATERFALL
from oee_engine.models.oee_event import EventType, OeeEvent
from oee_engine.analytics.equipment_loss import EquipmentLoss
from oee_engine.analytics.pareto import ParetoItem, ParetoProjector

__version__ = "1.0.0"

__all__ = [
    "OeeEngineError",
    "UnclassifiedEvent",
    "IncompatibleUnits",
    "DivisionUndefined",
    "InvalidCategory",
    "MissingBaseline",
    "TimeLoss",
    "WATERFALL",
    "EventType",
    "OeeEvent",
    "EquipmentLoss",
    "ParetoItem",
    "ParetoProjector",
]
