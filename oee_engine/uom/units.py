"""
Unit and Quantity Conversion

Converts amounts between time units and between physical units, including
rate units such as parts per minute, so that unit counts can be turned into
lost time.

All conversion factors are exact rationals. Unknown or dimensionally
incompatible units fail loudly with IncompatibleUnits.

Supported base dimensions:
- time: s, min, h, day
- count: unit, piece, each, dozen
- mass: kg, g, lb, tonne
- volume: l, ml, m3, gal
"""

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Dict, Tuple, Union

from oee_engine.exceptions import IncompatibleUnits, DivisionUndefined

Number = Union[int, float, Decimal, Fraction]

Dimensions = Tuple[Tuple[str, int], ...]


def _to_fraction(value: Number) -> Fraction:
    """Exact rational for a numeric amount (floats go through their repr)."""
    if isinstance(value, bool):
        raise TypeError("Quantity amount must be numeric, not bool")
    if isinstance(value, Fraction):
        return value
    if isinstance(value, (int, Decimal)):
        return Fraction(value)
    if isinstance(value, float):
        return Fraction(str(value))
    raise TypeError(f"Quantity amount must be numeric, got {type(value).__name__}")


def _combine(left: Dimensions, right: Dimensions, sign: int) -> Dimensions:
    exponents: Dict[str, int] = dict(left)
    for dimension, exponent in right:
        exponents[dimension] = exponents.get(dimension, 0) + sign * exponent
    return tuple(sorted((d, e) for d, e in exponents.items() if e != 0))


@dataclass(frozen=True)
class Unit:
    """
    Unit of measure.

    `factor` converts an amount in this unit to the base unit of its
    dimensions (seconds, units, kilograms, liters).
    """
    symbol: str
    dimensions: Dimensions
    factor: Fraction = Fraction(1)
    name: str = ""

    @property
    def is_dimensionless(self) -> bool:
        return not self.dimensions

    def is_compatible(self, other: "Unit") -> bool:
        """True if amounts in `other` can be converted to this unit."""
        return self.dimensions == other.dimensions

    def per(self, other: "Unit") -> "Unit":
        """Rate unit, e.g. UNIT.per(MINUTE) for parts per minute."""
        return Unit(
            symbol=f"{self.symbol}/{other.symbol}",
            dimensions=_combine(self.dimensions, other.dimensions, -1),
            factor=self.factor / other.factor,
        )

    def times(self, other: "Unit") -> "Unit":
        return Unit(
            symbol=f"{self.symbol}*{other.symbol}",
            dimensions=_combine(self.dimensions, other.dimensions, 1),
            factor=self.factor * other.factor,
        )

    def __str__(self) -> str:
        return self.symbol


def _unit(symbol: str, dimension: str, factor: Union[int, str, Fraction], name: str) -> Unit:
    return Unit(symbol=symbol, dimensions=((dimension, 1),), factor=Fraction(factor), name=name)


ONE = Unit(symbol="1", dimensions=(), name="one")

SECOND = _unit("s", "time", 1, "second")
MINUTE = _unit("min", "time", 60, "minute")
HOUR = _unit("h", "time", 3600, "hour")
DAY = _unit("day", "time", 86400, "day")
MILLISECOND = _unit("ms", "time", Fraction(1, 1000), "millisecond")

UNIT = _unit("unit", "count", 1, "unit")
DOZEN = _unit("dozen", "count", 12, "dozen")

KILOGRAM = _unit("kg", "mass", 1, "kilogram")
GRAM = _unit("g", "mass", Fraction(1, 1000), "gram")
POUND = _unit("lb", "mass", "0.45359237", "pound")
TONNE = _unit("tonne", "mass", 1000, "tonne")

LITER = _unit("l", "volume", 1, "liter")
MILLILITER = _unit("ml", "volume", Fraction(1, 1000), "milliliter")
CUBIC_METER = _unit("m3", "volume", 1000, "cubic meter")
GALLON = _unit("gal", "volume", "3.785411784", "US gallon")


class Quantity:
    """An amount in a unit of measure."""

    def __init__(self, amount: Number, unit: Unit):
        self._amount = _to_fraction(amount)
        self.unit = unit

    @property
    def amount(self) -> float:
        return float(self._amount)

    @property
    def exact_amount(self) -> Fraction:
        return self._amount

    def convert(self, target: Unit) -> "Quantity":
        """
        Express this quantity in another unit.

        Raises:
            IncompatibleUnits: If the dimensions differ
        """
        if not self.unit.is_compatible(target):
            raise IncompatibleUnits(
                f"Cannot convert {self.unit} {dict(self.unit.dimensions)} "
                f"to {target} {dict(target.dimensions)}"
            )
        if self.unit == target:
            return Quantity(self._amount, target)
        return Quantity(self._amount * self.unit.factor / target.factor, target)

    def add(self, other: "Quantity") -> "Quantity":
        return Quantity(self._amount + other.convert(self.unit).exact_amount, self.unit)

    def subtract(self, other: "Quantity") -> "Quantity":
        return Quantity(self._amount - other.convert(self.unit).exact_amount, self.unit)

    def multiply(self, other: Union["Quantity", Number]) -> "Quantity":
        if isinstance(other, Quantity):
            return Quantity(self._amount * other.exact_amount, self.unit.times(other.unit))
        return Quantity(self._amount * _to_fraction(other), self.unit)

    def divide(self, other: Union["Quantity", Number]) -> "Quantity":
        """
        Raises:
            DivisionUndefined: If the divisor is zero
        """
        if isinstance(other, Quantity):
            if other.exact_amount == 0:
                raise DivisionUndefined(f"Cannot divide {self} by zero {other.unit}")
            return Quantity(self._amount / other.exact_amount, self.unit.per(other.unit))

        divisor = _to_fraction(other)
        if divisor == 0:
            raise DivisionUndefined(f"Cannot divide {self} by zero")
        return Quantity(self._amount / divisor, self.unit)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        if not self.unit.is_compatible(other.unit):
            return False
        return self._amount * self.unit.factor == other.exact_amount * other.unit.factor

    def __hash__(self):
        return hash((self._amount * self.unit.factor, self.unit.dimensions))

    def __repr__(self) -> str:
        return f"Quantity({self.amount}, {self.unit.symbol!r})"

    def __str__(self) -> str:
        return f"{self.amount} {self.unit.symbol}"


class UnitConverter:
    """
    Resolves unit symbols and converts amounts between them.

    Symbols are case-insensitive. Rate units are written with a slash,
    e.g. "unit/min" or "kg/h".
    """

    TIME_UNITS: Dict[str, Unit] = {
        's': SECOND, 'sec': SECOND, 'second': SECOND, 'seconds': SECOND,
        'min': MINUTE, 'minute': MINUTE, 'minutes': MINUTE,
        'h': HOUR, 'hr': HOUR, 'hour': HOUR, 'hours': HOUR,
        'day': DAY, 'days': DAY, 'd': DAY,
        'ms': MILLISECOND, 'millisecond': MILLISECOND,
    }

    COUNT_UNITS: Dict[str, Unit] = {
        'unit': UNIT, 'units': UNIT,
        'piece': UNIT, 'pieces': UNIT, 'pcs': UNIT, 'pc': UNIT,
        'each': UNIT, 'ea': UNIT, 'count': UNIT,
        'dozen': DOZEN,
    }

    MASS_UNITS: Dict[str, Unit] = {
        'kg': KILOGRAM, 'kilogram': KILOGRAM, 'kilograms': KILOGRAM,
        'g': GRAM, 'gram': GRAM, 'grams': GRAM,
        'lb': POUND, 'lbs': POUND, 'pound': POUND, 'pounds': POUND,
        'tonne': TONNE, 'tonnes': TONNE, 't': TONNE,
    }

    VOLUME_UNITS: Dict[str, Unit] = {
        'l': LITER, 'liter': LITER, 'liters': LITER, 'litre': LITER,
        'ml': MILLILITER,
        'm3': CUBIC_METER, 'cubic_meter': CUBIC_METER,
        'gal': GALLON, 'gallon': GALLON, 'gallons': GALLON,
    }

    def __init__(self):
        self.units: Dict[str, Unit] = {}
        for table in (self.TIME_UNITS, self.COUNT_UNITS, self.MASS_UNITS, self.VOLUME_UNITS):
            self.units.update(table)

    def register_unit(self, unit: Unit, *aliases: str):
        """Add a custom unit (e.g. "case" = 24 units) under its symbol and aliases."""
        for alias in (unit.symbol,) + aliases:
            self.units[alias.lower().strip()] = unit

    def get_unit(self, symbol: Union[str, Unit]) -> Unit:
        """
        Resolve a unit symbol.

        Raises:
            IncompatibleUnits: If the symbol is unknown
        """
        if isinstance(symbol, Unit):
            return symbol

        key = symbol.lower().strip()
        if key in self.units:
            return self.units[key]

        if '/' in key:
            numerator, denominator = key.split('/', 1)
            return self.get_unit(numerator).per(self.get_unit(denominator))

        raise IncompatibleUnits(f"Unknown unit: {symbol}")

    def quantity(self, amount: Number, symbol: Union[str, Unit]) -> Quantity:
        return Quantity(amount, self.get_unit(symbol))

    def convert(self, value: Number, from_unit: Union[str, Unit], to_unit: Union[str, Unit]) -> float:
        """
        Convert value from one unit to another.

        Raises:
            IncompatibleUnits: If units are unknown or of different dimensions
        """
        source = self.get_unit(from_unit)
        target = self.get_unit(to_unit)
        return Quantity(value, source).convert(target).amount
