"""
CSV event loader.

Reads exported equipment events into OeeEvent objects. Expected columns:

    equipment, event_type, start_time          (required)
    end_time, duration_seconds, reason,
    amount, uom, material, job, shift          (optional)

Timestamps must be ISO-8601 with a UTC offset.
"""

from typing import List, Optional, Union
from datetime import timedelta
from pathlib import Path
import logging

import pandas as pd

from oee_engine.models.oee_event import EventType, OeeEvent
from oee_engine.uom.units import UnitConverter
from oee_engine.utils.datetime_utils import offset_datetime_from_string

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("equipment", "event_type", "start_time")


def _cell(row: pd.Series, column: str) -> Optional[str]:
    if column not in row.index:
        return None
    value = row[column]
    if pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def row_to_event(row: pd.Series, converter: UnitConverter) -> OeeEvent:
    """
    Build an event from one CSV row.

    Raises:
        ValueError: If a timestamp, event type or number is malformed
        IncompatibleUnits: If the unit symbol is unknown
    """
    equipment = _cell(row, "equipment")
    event_type = _cell(row, "event_type")
    start_time = _cell(row, "start_time")
    if not equipment or not event_type or not start_time:
        raise ValueError("equipment, event_type and start_time are required")

    end_time = _cell(row, "end_time")
    duration = _cell(row, "duration_seconds")
    amount = _cell(row, "amount")
    uom = _cell(row, "uom")

    return OeeEvent(
        equipment=equipment,
        event_type=EventType.parse(event_type),
        start_time=offset_datetime_from_string(start_time),
        end_time=offset_datetime_from_string(end_time) if end_time else None,
        duration=timedelta(seconds=float(duration)) if duration else None,
        reason=_cell(row, "reason"),
        amount=float(amount) if amount else None,
        uom=converter.get_unit(uom) if uom else None,
        material=_cell(row, "material"),
        job=_cell(row, "job"),
        shift=_cell(row, "shift"),
    )


def load_events_frame(frame: pd.DataFrame, converter: Optional[UnitConverter] = None) -> List[OeeEvent]:
    """
    Convert a DataFrame of events, ordered by equipment then start time.

    Raises:
        ValueError: If required columns are missing or a row is malformed
    """
    missing = [column for column in REQUIRED_COLUMNS if column not in frame.columns]
    if missing:
        raise ValueError(f"Event data is missing columns: {', '.join(missing)}")

    converter = converter or UnitConverter()
    events = []
    for index, row in frame.iterrows():
        try:
            events.append(row_to_event(row, converter))
        except (ValueError, TypeError) as e:
            raise ValueError(f"Row {index}: {e}") from e

    events.sort(key=lambda event: (event.equipment, event.start_time))
    return events


def load_events_csv(path: Union[str, Path], converter: Optional[UnitConverter] = None) -> List[OeeEvent]:
    """Read events from a CSV file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Event file not found: {path}")

    frame = pd.read_csv(path, dtype=str)
    events = load_events_frame(frame, converter)
    logger.info(f"Loaded {len(events)} events for {len({e.equipment for e in events})} equipment from {path}")
    return events
