"""
OEE Event Classifier

Maps each collected equipment event onto its ledger:
- availability events add their duration to the loss category of their reason
- setup events (material or job change) add their duration to SETUP
- production events accumulate good, reject and startup counts, which are
  converted to lost time at the ideal speed when the window is closed

Events are expected in start-time order for their equipment. An earlier
event is still applied, with a warning; the classifier does not buffer or
reorder.
"""

from typing import Dict, Optional
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
import logging

from oee_engine.exceptions import UnclassifiedEvent
from oee_engine.models.oee_event import EventType, OeeEvent
from oee_engine.models.reasons import ReasonLookup
from oee_engine.models.time_loss import TimeLoss
from oee_engine.analytics.equipment_loss import EquipmentLoss
from oee_engine.uom.units import Quantity, Unit, UNIT

# Buckets rebuilt from production counts when the window closes
COUNT_DERIVED_LOSSES = (TimeLoss.NO_LOSS, TimeLoss.REJECT_REWORK, TimeLoss.STARTUP_YIELD)


class EventClass(Enum):
    """Semantic class of an event."""
    AVAILABILITY = "availability"
    PRODUCTION = "production"
    SETUP = "setup"


@dataclass
class ProductionCounts:
    """Produced quantities for a window, all in the same unit."""
    unit: Unit = UNIT
    good: Optional[Quantity] = None
    reject: Optional[Quantity] = None
    startup: Optional[Quantity] = None

    def __post_init__(self):
        self.good = self._initial(self.good)
        self.reject = self._initial(self.reject)
        self.startup = self._initial(self.startup)

    def _initial(self, quantity: Optional[Quantity]) -> Quantity:
        if quantity is None:
            return Quantity(0, self.unit)
        return quantity.convert(self.unit)

    def add(self, event_type: EventType, quantity: Quantity):
        converted = quantity.convert(self.unit)
        if event_type == EventType.PROD_GOOD:
            self.good = self.good.add(converted)
        elif event_type == EventType.PROD_REJECT:
            self.reject = self.reject.add(converted)
        elif event_type == EventType.PROD_STARTUP:
            self.startup = self.startup.add(converted)
        else:
            raise ValueError(f"{event_type.name} is not a production event type")

    @property
    def total(self) -> Quantity:
        return self.good.add(self.reject).add(self.startup)


class OeeEventClassifier:
    """
    Applies classified events to one equipment loss ledger.

    Not thread-safe: exactly one event stream may feed a classifier.
    """

    def __init__(
        self,
        ledger: EquipmentLoss,
        reason_lookup: ReasonLookup,
        production_unit: Unit = UNIT
    ):
        """
        Args:
            ledger: Ledger for the equipment and window being processed
            reason_lookup: Resolves downtime reasons to loss categories
            production_unit: Unit production counts are accumulated in
        """
        self.ledger = ledger
        self.reason_lookup = reason_lookup
        self.counts = ProductionCounts(unit=production_unit)
        self.logger = logging.getLogger(__name__)

        # time reported directly by availability events for count-derived buckets
        self.reported_time: Dict[TimeLoss, timedelta] = {
            category: timedelta(0) for category in COUNT_DERIVED_LOSSES
        }

        self.last_start_time: Optional[datetime] = None
        self.events_applied = 0

    def classify(self, event: OeeEvent) -> EventClass:
        """
        Determine the semantic class of an event without applying it.

        Raises:
            UnclassifiedEvent: If the event type has no ledger meaning
        """
        if event.is_availability():
            return EventClass.AVAILABILITY
        if event.is_setup():
            return EventClass.SETUP
        if event.is_production():
            return EventClass.PRODUCTION

        raise UnclassifiedEvent(f"Event type {event.event_type.name} is not classified", event)

    def resolve_loss(self, event: OeeEvent) -> TimeLoss:
        """
        Loss category of an availability event's reason.

        Raises:
            UnclassifiedEvent: If the event has no reason or it does not resolve
        """
        if not event.reason:
            raise UnclassifiedEvent(f"Availability event has no reason: {event}", event)

        category = self.reason_lookup.resolve(event.reason)
        if category is None:
            raise UnclassifiedEvent(f"Reason '{event.reason}' has no loss category", event)
        return category

    def apply(self, event: OeeEvent) -> EventClass:
        """
        Classify an event and record it.

        Nothing is recorded if the event is rejected.

        Raises:
            UnclassifiedEvent: If the event cannot be classified or lacks data
            IncompatibleUnits: If a produced quantity is not in a count-compatible unit
        """
        event_class = self.classify(event)
        self._check_order(event)

        if event_class == EventClass.AVAILABILITY:
            category = self.resolve_loss(event)
            duration = self._require_duration(event)
            self.ledger.add_loss(category, duration)
            if category in self.reported_time:
                self.reported_time[category] += duration

        elif event_class == EventClass.SETUP:
            self.ledger.add_loss(TimeLoss.SETUP, self._require_duration(event))

        else:
            quantity = event.quantity
            if quantity is None:
                raise UnclassifiedEvent(f"Production event has no quantity: {event}", event)
            self.counts.add(event.event_type, quantity)

        if event.start_time is not None:
            self.last_start_time = event.start_time
        self.events_applied += 1

        return event_class

    def apply_production_losses(self, ideal_speed: Quantity):
        """
        Convert accumulated production counts to time at the ideal speed.

        Rebuilds NO_LOSS, REJECT_REWORK and STARTUP_YIELD as the time reported
        by availability events plus the time derived from the counts, so
        calling it again after more events is safe, then reconciles
        REDUCED_SPEED from the result.

        Raises:
            IncompatibleUnits: If ideal_speed is not a rate of the production unit
            DivisionUndefined: If ideal_speed is zero
        """
        good = self.ledger.convert_unit_count_to_time_loss(self.counts.good, ideal_speed)
        reject = self.ledger.convert_unit_count_to_time_loss(self.counts.reject, ideal_speed)
        startup = self.ledger.convert_unit_count_to_time_loss(self.counts.startup, ideal_speed)

        derived = {
            TimeLoss.NO_LOSS: good,
            TimeLoss.REJECT_REWORK: reject,
            TimeLoss.STARTUP_YIELD: startup,
        }
        for category, duration in derived.items():
            self.ledger.set_loss(category, self.reported_time[category] + duration)
        self.ledger.set_reduced_speed_loss()

        self.logger.info(
            f"{self.ledger.equipment or 'equipment'}: production losses applied "
            f"(good={good}, reject={reject}, startup={startup}, "
            f"reduced speed={self.ledger.get_loss(TimeLoss.REDUCED_SPEED)})"
        )

    def _require_duration(self, event: OeeEvent) -> timedelta:
        duration = event.effective_duration()
        if duration is None:
            raise UnclassifiedEvent(f"Event has no duration: {event}", event)
        if duration < timedelta(0):
            raise UnclassifiedEvent(f"Event has negative duration {duration}: {event}", event)
        return duration

    def _check_order(self, event: OeeEvent):
        if (
            event.start_time is not None
            and self.last_start_time is not None
            and event.start_time < self.last_start_time
        ):
            self.logger.warning(
                f"Out of order event for {event.equipment}: {event.start_time.isoformat()} "
                f"before {self.last_start_time.isoformat()}"
            )
