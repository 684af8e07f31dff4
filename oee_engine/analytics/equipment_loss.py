"""
Equipment Loss Ledger

Accumulates lost time per TimeLoss category for one piece of equipment over
one continuous time window, and derives the OEE waterfall from it:

    OEE          = Value Adding Time / Available Time
    Availability = Reported Production Time / Available Time
    Performance  = Efficient Net Production Time / Reported Production Time
    Quality      = Value Adding Time / Efficient Net Production Time

All durations are kept at a resolution of seconds. Derived times are
recomputed on every call so they always reflect the latest losses.

A ledger has a single writer. Callers feeding one ledger from several
threads must serialize access themselves.
"""

from typing import Dict, List, Optional, Union, Any
from datetime import datetime, timedelta
from fractions import Fraction
import logging

from oee_engine.exceptions import (
    DivisionUndefined,
    IncompatibleUnits,
    InvalidCategory,
    MissingBaseline,
)
from oee_engine.models.time_loss import TimeLoss, WATERFALL
from oee_engine.analytics.pareto import ParetoItem
from oee_engine.uom.units import Quantity, Unit, UnitConverter, SECOND


logger = logging.getLogger(__name__)

_converter = UnitConverter()


def _exact_seconds(duration: timedelta) -> Fraction:
    return Fraction(duration.days * 86400 + duration.seconds) + Fraction(duration.microseconds, 1_000_000)


def _whole_seconds(amount: Fraction) -> timedelta:
    """Duration with the fractional seconds truncated toward zero."""
    return timedelta(seconds=int(amount))


class EquipmentLoss:
    """Loss ledger for one equipment and one time window."""

    def __init__(
        self,
        start_date_time: datetime,
        duration: timedelta,
        equipment: Optional[str] = None
    ):
        """
        Initialize a zeroed ledger.

        Args:
            start_date_time: Start of the window
            duration: Length of the window (total calendar time)
            equipment: Optional equipment identifier used in reports
        """
        self.start_date_time = start_date_time
        self.total_duration: Optional[timedelta] = duration
        self.equipment = equipment
        self.loss_map: Dict[TimeLoss, timedelta] = {category: timedelta(0) for category in TimeLoss}

    # ------------------------------------------------------------------
    # Window
    # ------------------------------------------------------------------

    def get_total_time(self) -> timedelta:
        if self.total_duration is None:
            raise MissingBaseline("No total time has been set for this ledger.")
        return self.total_duration

    def set_total_time(self, total_time: Optional[timedelta]):
        self.total_duration = total_time

    @property
    def end_date_time(self) -> datetime:
        return self.start_date_time + self.get_total_time()

    # ------------------------------------------------------------------
    # Buckets
    # ------------------------------------------------------------------

    def _check_category(self, category: Union[TimeLoss, str]) -> TimeLoss:
        if isinstance(category, TimeLoss):
            return category
        if isinstance(category, str):
            try:
                return TimeLoss.from_name(category)
            except KeyError:
                pass
        raise InvalidCategory(f"Unknown loss category: {category!r}")

    def get_loss(self, category: Union[TimeLoss, str]) -> timedelta:
        return self.loss_map[self._check_category(category)]

    def set_loss(self, category: Union[TimeLoss, str], duration: timedelta):
        """Overwrite a bucket, used for categories computed as an aggregate."""
        self.loss_map[self._check_category(category)] = duration

    def add_loss(self, category: Union[TimeLoss, str], duration: timedelta):
        """
        Add lost time to a bucket.

        Raises:
            InvalidCategory: If category is not a TimeLoss
            ValueError: If duration is negative
        """
        key = self._check_category(category)
        if duration < timedelta(0):
            raise ValueError(f"Cannot add negative duration {duration} to {key.name}")

        self.loss_map[key] = self.loss_map[key] + duration
        logger.debug(f"{self.equipment or 'equipment'}: {key.name} += {duration} -> {self.loss_map[key]}")

    # ------------------------------------------------------------------
    # Waterfall
    # ------------------------------------------------------------------

    def get_required_operations_time(self) -> timedelta:
        return self.get_total_time() - self.get_loss(TimeLoss.NOT_SCHEDULED)

    def get_available_time(self) -> timedelta:
        return self.get_required_operations_time() - self.get_loss(TimeLoss.UNSCHEDULED)

    def get_scheduled_production_time(self) -> timedelta:
        return self.get_available_time() - self.get_loss(TimeLoss.PLANNED_DOWNTIME)

    def get_production_time(self) -> timedelta:
        return self.get_scheduled_production_time() - self.get_loss(TimeLoss.SETUP)

    def get_reported_production_time(self) -> timedelta:
        return self.get_production_time() - self.get_loss(TimeLoss.UNPLANNED_DOWNTIME)

    def get_net_production_time(self) -> timedelta:
        return self.get_reported_production_time() - self.get_loss(TimeLoss.MINOR_STOPPAGES)

    def get_efficient_net_production_time(self) -> timedelta:
        return self.get_net_production_time() - self.get_loss(TimeLoss.REDUCED_SPEED)

    def get_effective_net_production_time(self) -> timedelta:
        return self.get_efficient_net_production_time() - self.get_loss(TimeLoss.REJECT_REWORK)

    def get_value_adding_time(self) -> timedelta:
        return self.get_effective_net_production_time() - self.get_loss(TimeLoss.STARTUP_YIELD)

    def get_waterfall(self) -> Dict[str, timedelta]:
        """All derived times keyed by name, from total time down to value adding time."""
        times = {'total_time': self.get_total_time()}
        for name, _category in WATERFALL:
            times[name] = getattr(self, f"get_{name}")()
        return times

    # ------------------------------------------------------------------
    # Percentages
    # ------------------------------------------------------------------

    @staticmethod
    def _percentage(numerator, denominator, label: str) -> float:
        try:
            denominator_time = denominator()
            numerator_time = numerator()
        except MissingBaseline as e:
            raise DivisionUndefined(f"No {label} has been recorded.") from e

        if denominator_time == timedelta(0):
            raise DivisionUndefined(f"{label.capitalize()} is zero.")

        return numerator_time.total_seconds() / denominator_time.total_seconds() * 100.0

    def calculate_oee_percentage(self) -> float:
        return self._percentage(self.get_value_adding_time, self.get_available_time, "available time")

    def calculate_availability_percentage(self) -> float:
        return self._percentage(self.get_reported_production_time, self.get_available_time, "available time")

    def calculate_performance_percentage(self) -> float:
        return self._percentage(
            self.get_efficient_net_production_time,
            self.get_reported_production_time,
            "reported production time"
        )

    def calculate_quality_percentage(self) -> float:
        return self._percentage(
            self.get_value_adding_time,
            self.get_efficient_net_production_time,
            "efficient net production time"
        )

    # ------------------------------------------------------------------
    # Reduced speed and unit count losses
    # ------------------------------------------------------------------

    def calculate_reduced_speed_loss(self, actual_speed: Quantity, ideal_speed: Quantity) -> timedelta:
        """
        Estimate reduced speed loss from the speed ratio.

        loss = (ideal - actual) / ideal * net production time

        Fractional seconds are truncated. The ledger is not modified.

        Raises:
            IncompatibleUnits: If the two speeds are not the same kind of rate
            DivisionUndefined: If the ideal speed is zero
        """
        npt = _exact_seconds(self.get_net_production_time())

        ratio = ideal_speed.subtract(actual_speed).divide(ideal_speed)
        if not ratio.unit.is_dimensionless:
            raise IncompatibleUnits(
                f"Speed ratio {actual_speed.unit} / {ideal_speed.unit} is not dimensionless"
            )

        return _whole_seconds(ratio.exact_amount * ratio.unit.factor * npt)

    def set_reduced_speed_loss(self):
        """
        Reconcile REDUCED_SPEED from the recorded quality losses.

        REDUCED_SPEED = net production time - (REJECT_REWORK + STARTUP_YIELD) - NO_LOSS

        Afterwards the ten buckets add up to the total time.
        """
        npt = self.get_net_production_time()
        quality = self.get_loss(TimeLoss.REJECT_REWORK) + self.get_loss(TimeLoss.STARTUP_YIELD)
        reduced_speed = npt - quality - self.get_loss(TimeLoss.NO_LOSS)

        if reduced_speed < timedelta(0):
            logger.warning(
                f"{self.equipment or 'equipment'}: recorded production exceeds net production time, "
                f"reduced speed loss is {reduced_speed}"
            )
        self.set_loss(TimeLoss.REDUCED_SPEED, reduced_speed)

    def convert_unit_count_to_time_loss(self, quantity_loss: Quantity, ideal_speed: Quantity) -> timedelta:
        """
        Convert a count of lost units into lost time at the ideal speed.

        Raises:
            IncompatibleUnits: If loss / speed is not a time
            DivisionUndefined: If the ideal speed is zero
        """
        time_loss = quantity_loss.divide(ideal_speed).convert(SECOND)
        return _whole_seconds(time_loss.exact_amount)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def convert_seconds(self, seconds: float, time_unit: Union[Unit, str]) -> float:
        unit = _converter.get_unit(time_unit)
        if unit == SECOND:
            return float(seconds)
        return Quantity(seconds, SECOND).convert(unit).amount

    def get_loss_items(self, time_unit: Union[Unit, str] = SECOND) -> List[ParetoItem]:
        """
        One Pareto item per loss category, in taxonomy order.

        Items are not ranked; use ParetoProjector for a sorted view.
        """
        items = []
        for category, duration in self.loss_map.items():
            if category.is_loss():
                loss = self.convert_seconds(duration.total_seconds(), time_unit)
                items.append(ParetoItem(category=category.name, value=loss))
        return items

    def summary(self) -> Dict[str, Any]:
        """Waterfall times in seconds and the four percentages (None when undefined)."""
        result: Dict[str, Any] = {
            'equipment': self.equipment,
            'start': self.start_date_time.isoformat(),
        }
        for name, duration in self.get_waterfall().items():
            result[name] = duration.total_seconds()

        for metric in ('oee', 'availability', 'performance', 'quality'):
            try:
                result[metric] = getattr(self, f"calculate_{metric}_percentage")()
            except DivisionUndefined:
                result[metric] = None
        return result

    def __str__(self) -> str:
        lines = [f"From: {self.start_date_time.isoformat()}, Duration: {self.total_duration}"]
        for category, duration in self.loss_map.items():
            lines.append(f"{category.name} = {duration}")
        return '\n'.join(lines)
