"""Shared helpers"""

from oee_engine.utils.datetime_utils import (
    ensure_offset_aware,
    offset_datetime_from_string,
    offset_datetime_to_string,
)

__all__ = [
    'ensure_offset_aware',
    'offset_datetime_from_string',
    'offset_datetime_to_string',
]
