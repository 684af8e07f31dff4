"""Domain models: loss taxonomy, events and downtime reasons"""

from oee_engine.models.time_loss import TimeLoss, WATERFALL
from oee_engine.models.oee_event import EventType, OeeEvent
from oee_engine.models.reasons import Reason, ReasonLookup, ReasonRegistry

__all__ = [
    'TimeLoss',
    'WATERFALL',
    'EventType',
    'OeeEvent',
    'Reason',
    'ReasonLookup',
    'ReasonRegistry',
]
