"""
Per-Equipment Event Processor

Feeds events from any number of producers into per-equipment loss ledgers.
Each equipment gets its own bounded queue and a single consumer task that
owns the equipment's ledger and classifier, so a ledger only ever has one
writer and producers are slowed down when a consumer falls behind.

Rejected events are dropped with a warning, or stop the equipment's consumer
when `fail_on_unclassified` is configured.
"""

from typing import Dict, Iterable, List, Optional
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import asyncio
import logging

from oee_engine.config import EngineConfig
from oee_engine.exceptions import DivisionUndefined, IncompatibleUnits, UnclassifiedEvent
from oee_engine.analytics.equipment_loss import EquipmentLoss
from oee_engine.analytics.event_classifier import OeeEventClassifier
from oee_engine.models.oee_event import OeeEvent
from oee_engine.models.reasons import ReasonLookup
from oee_engine.monitoring.metrics import events_processed, events_rejected, record_ledger
from oee_engine.uom.units import UnitConverter

_STOP = object()


@dataclass
class EquipmentStream:
    """Queue, consumer and ledger of one equipment."""
    equipment: str
    ledger: EquipmentLoss
    classifier: OeeEventClassifier
    queue: asyncio.Queue
    task: Optional[asyncio.Task] = None
    rejected: List[OeeEvent] = field(default_factory=list)
    error: Optional[Exception] = None


class EquipmentEventProcessor:
    """
    Routes events to per-equipment ledgers for one time window.

    Must be used from within a running event loop.
    """

    def __init__(
        self,
        config: EngineConfig,
        window_start: datetime,
        window_duration: timedelta,
        reason_lookup: Optional[ReasonLookup] = None,
        converter: Optional[UnitConverter] = None
    ):
        """
        Args:
            config: Engine configuration
            window_start: Start of the reporting window
            window_duration: Length of the reporting window
            reason_lookup: Reason to loss category lookup (default: from config)
            converter: Unit converter (default: built-in units)
        """
        self.config = config
        self.window_start = window_start
        self.window_duration = window_duration
        self.reason_lookup = reason_lookup or config.reason_registry()
        self.converter = converter or UnitConverter()
        self.production_unit = self.converter.get_unit(config.production_unit)

        self.streams: Dict[str, EquipmentStream] = {}
        self.logger = logging.getLogger(__name__)

    def _get_stream(self, equipment: str) -> EquipmentStream:
        stream = self.streams.get(equipment)
        if stream is None:
            ledger = EquipmentLoss(self.window_start, self.window_duration, equipment=equipment)
            stream = EquipmentStream(
                equipment=equipment,
                ledger=ledger,
                classifier=OeeEventClassifier(ledger, self.reason_lookup, self.production_unit),
                queue=asyncio.Queue(maxsize=self.config.queue_size)
            )
            stream.task = asyncio.create_task(self._consume(stream))
            self.streams[equipment] = stream
            self.logger.info(f"Started event stream for equipment {equipment}")
        return stream

    async def submit(self, event: OeeEvent):
        """
        Queue an event for its equipment, waiting while the queue is full.

        Raises:
            UnclassifiedEvent: If the equipment's consumer stopped on a rejected event
        """
        stream = self._get_stream(event.equipment)
        if stream.error is not None:
            raise stream.error
        await stream.queue.put(event)

    async def submit_all(self, events: Iterable[OeeEvent]):
        for event in events:
            await self.submit(event)

    async def _consume(self, stream: EquipmentStream):
        while True:
            event = await stream.queue.get()
            try:
                if event is _STOP:
                    return
                if stream.error is None:
                    self._process(stream, event)
            finally:
                stream.queue.task_done()

    def _process(self, stream: EquipmentStream, event: OeeEvent):
        try:
            event_class = stream.classifier.apply(event)
            events_processed.labels(event_class=event_class.value).inc()

        except UnclassifiedEvent as e:
            events_rejected.labels(reason="unclassified").inc()
            stream.rejected.append(event)
            if self.config.fail_on_unclassified:
                self.logger.error(f"{stream.equipment}: stopping on unclassified event: {e}")
                stream.error = e
            else:
                self.logger.warning(f"{stream.equipment}: dropping unclassified event: {e}")

        except IncompatibleUnits as e:
            events_rejected.labels(reason="incompatible_units").inc()
            stream.rejected.append(event)
            self.logger.error(f"{stream.equipment}: dropping event with incompatible units: {e}")

    async def close(self) -> Dict[str, EquipmentLoss]:
        """
        Drain all queues, close the window and return the ledgers.

        Production counts are converted to lost time when an ideal speed is
        configured for the equipment.

        Raises:
            UnclassifiedEvent: First error of a consumer stopped by the policy
        """
        for stream in self.streams.values():
            await stream.queue.put(_STOP)

        await asyncio.gather(*(stream.task for stream in self.streams.values()))

        for stream in self.streams.values():
            if stream.error is not None:
                raise stream.error

        ledgers = {}
        for equipment, stream in self.streams.items():
            self._apply_production_losses(stream)

            record_ledger(stream.ledger)
            self.logger.info(
                f"{equipment}: {stream.classifier.events_applied} events applied, "
                f"{len(stream.rejected)} rejected"
            )
            ledgers[equipment] = stream.ledger

        return ledgers

    def _apply_production_losses(self, stream: EquipmentStream):
        """Convert counts to time; a bad ideal speed leaves the ledger as recorded."""
        try:
            ideal_speed = self.config.ideal_speed_for(stream.equipment, self.converter)
            if ideal_speed is None:
                self.logger.warning(
                    f"{stream.equipment}: no ideal speed configured, production losses not applied"
                )
                return
            stream.classifier.apply_production_losses(ideal_speed)

        except (IncompatibleUnits, DivisionUndefined) as e:
            events_rejected.labels(reason="production_losses").inc()
            self.logger.error(f"{stream.equipment}: production losses not applied: {e}")


def process_events(
    events: Iterable[OeeEvent],
    config: EngineConfig,
    window_start: datetime,
    window_duration: timedelta,
    reason_lookup: Optional[ReasonLookup] = None,
    converter: Optional[UnitConverter] = None
) -> Dict[str, EquipmentLoss]:
    """Run a complete window of events through a processor and return the ledgers."""

    async def _run():
        processor = EquipmentEventProcessor(
            config, window_start, window_duration,
            reason_lookup=reason_lookup, converter=converter
        )
        await processor.submit_all(events)
        return await processor.close()

    return asyncio.run(_run())
