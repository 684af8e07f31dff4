"""
OEE Event Model

One collected equipment occurrence: a change of availability state, a
production count or a setup (material or job change). Events are supplied by
data collectors; the engine only reads them.
"""

from typing import Optional, Any
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from oee_engine.uom.units import Quantity, Unit
from oee_engine.utils.datetime_utils import ensure_offset_aware


class EventType(Enum):
    """Event type tags assigned by the data collector."""
    AVAILABILITY = "AVAIL"
    PROD_GOOD = "GOOD"
    PROD_REJECT = "REJECT"
    PROD_STARTUP = "STARTUP"
    MATL_CHANGE = "MATERIAL"
    JOB_CHANGE = "JOB"
    CUSTOM = "CUSTOM"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, text: str) -> "EventType":
        """Accept either the member name or its tag value."""
        key = text.strip().upper()
        if key in cls.__members__:
            return cls.__members__[key]
        return cls(key)


PRODUCTION_TYPES = frozenset({EventType.PROD_GOOD, EventType.PROD_REJECT, EventType.PROD_STARTUP})
SETUP_TYPES = frozenset({EventType.MATL_CHANGE, EventType.JOB_CHANGE})


@dataclass
class OeeEvent:
    """
    Classified equipment event.

    Timestamps must be offset-aware. `reason` is the downtime reason name for
    availability events; `amount` and `uom` carry the produced quantity for
    production events.
    """
    equipment: str
    event_type: EventType
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[timedelta] = None
    reason: Optional[str] = None
    amount: Optional[float] = None
    uom: Optional[Unit] = None
    material: Optional[str] = None
    job: Optional[str] = None
    shift: Optional[str] = None
    lost_time: Optional[timedelta] = None
    item_id: Optional[str] = None  # source identifier
    input_value: Any = None
    output_value: Any = None

    def __post_init__(self):
        ensure_offset_aware(self.start_time, "start_time")
        ensure_offset_aware(self.end_time, "end_time")

    def is_availability(self) -> bool:
        return self.event_type == EventType.AVAILABILITY

    def is_production(self) -> bool:
        return self.event_type in PRODUCTION_TYPES

    def is_setup(self) -> bool:
        return self.event_type in SETUP_TYPES

    @property
    def quantity(self) -> Optional[Quantity]:
        if self.amount is None or self.uom is None:
            return None
        return Quantity(self.amount, self.uom)

    def effective_duration(self) -> Optional[timedelta]:
        """Explicit duration, else end minus start, else None."""
        if self.duration is not None:
            return self.duration
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return None

    def __str__(self) -> str:
        return f"Start: {self.start_time}, End: {self.end_time}, Type: {self.event_type.name}"
