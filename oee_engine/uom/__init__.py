"""Units of measure and quantity conversion"""

from oee_engine.uom.units import (
    Unit,
    Quantity,
    UnitConverter,
    ONE,
    SECOND,
    MINUTE,
    HOUR,
    DAY,
    UNIT,
    KILOGRAM,
    LITER,
)

__all__ = [
    'Unit',
    'Quantity',
    'UnitConverter',
    'ONE',
    'SECOND',
    'MINUTE',
    'HOUR',
    'DAY',
    'UNIT',
    'KILOGRAM',
    'LITER',
]
