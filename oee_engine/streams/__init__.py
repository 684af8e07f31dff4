"""Event streams: per-equipment processing and loading"""

from oee_engine.streams.event_processor import EquipmentEventProcessor, EquipmentStream, process_events
from oee_engine.streams.event_loader import load_events_csv, load_events_frame

__all__ = [
    'EquipmentEventProcessor',
    'EquipmentStream',
    'process_events',
    'load_events_csv',
    'load_events_frame',
]
