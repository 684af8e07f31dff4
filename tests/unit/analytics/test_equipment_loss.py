"""
Unit tests for the equipment loss ledger.
"""

import itertools
import random
from datetime import datetime, timedelta

import pytest

from oee_engine.analytics.equipment_loss import EquipmentLoss
from oee_engine.exceptions import (
    DivisionUndefined,
    IncompatibleUnits,
    InvalidCategory,
    MissingBaseline,
)
from oee_engine.models.time_loss import TimeLoss, WATERFALL
from oee_engine.uom.units import Quantity, UnitConverter, UNIT, KILOGRAM, MINUTE, HOUR, SECOND


START = datetime(2024, 3, 1, 6, 0, 0)
EIGHT_HOURS = timedelta(hours=8)


@pytest.fixture
def shift_ledger():
    """8 hour shift with downtime, quality losses and the remainder as good time."""
    ledger = EquipmentLoss(START, EIGHT_HOURS, equipment="FILLER_01")
    ledger.add_loss(TimeLoss.PLANNED_DOWNTIME, timedelta(seconds=1800))
    ledger.add_loss(TimeLoss.SETUP, timedelta(seconds=600))
    ledger.add_loss(TimeLoss.UNPLANNED_DOWNTIME, timedelta(seconds=3600))
    ledger.add_loss(TimeLoss.MINOR_STOPPAGES, timedelta(seconds=300))
    ledger.add_loss(TimeLoss.REJECT_REWORK, timedelta(seconds=120))
    ledger.add_loss(TimeLoss.STARTUP_YIELD, timedelta(seconds=60))
    ledger.add_loss(TimeLoss.NO_LOSS, timedelta(seconds=28800 - 6480))
    return ledger


@pytest.fixture
def rates():
    converter = UnitConverter()
    return {
        'unit/min': converter.get_unit('unit/min'),
        'unit/h': converter.get_unit('unit/h'),
        'kg/min': converter.get_unit('kg/min'),
    }


class TestLedgerInitialization:
    """Fresh ledgers."""

    def test_all_buckets_zero(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        assert set(ledger.loss_map) == set(TimeLoss)
        for category in TimeLoss:
            assert ledger.get_loss(category) == timedelta(0)

    def test_waterfall_equals_total(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        for name, duration in ledger.get_waterfall().items():
            assert duration == EIGHT_HOURS, name

    def test_end_date_time(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        assert ledger.end_date_time == datetime(2024, 3, 1, 14, 0, 0)

    def test_missing_total_time(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)
        ledger.set_total_time(None)

        with pytest.raises(MissingBaseline):
            ledger.get_available_time()

        with pytest.raises(DivisionUndefined):
            ledger.calculate_oee_percentage()


class TestLossAccumulation:
    """add_loss / set_loss behaviour."""

    def test_add_loss_accumulates(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)
        ledger.add_loss(TimeLoss.MINOR_STOPPAGES, timedelta(seconds=30))
        ledger.add_loss(TimeLoss.MINOR_STOPPAGES, timedelta(seconds=45))

        assert ledger.get_loss(TimeLoss.MINOR_STOPPAGES) == timedelta(seconds=75)

    def test_add_order_does_not_matter(self):
        durations = [timedelta(seconds=s) for s in (5, 17, 240, 3)]
        results = set()

        for order in itertools.permutations(durations):
            ledger = EquipmentLoss(START, EIGHT_HOURS)
            for duration in order:
                ledger.add_loss(TimeLoss.UNPLANNED_DOWNTIME, duration)
            results.add(ledger.get_loss(TimeLoss.UNPLANNED_DOWNTIME))

        assert results == {timedelta(seconds=265)}

    def test_category_by_name(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)
        ledger.add_loss("setup", timedelta(seconds=10))
        ledger.add_loss("Planned Downtime", timedelta(seconds=20))

        assert ledger.get_loss(TimeLoss.SETUP) == timedelta(seconds=10)
        assert ledger.get_loss(TimeLoss.PLANNED_DOWNTIME) == timedelta(seconds=20)

    def test_invalid_category(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        with pytest.raises(InvalidCategory):
            ledger.add_loss("COFFEE_BREAK", timedelta(seconds=10))

        with pytest.raises(InvalidCategory):
            ledger.add_loss(3, timedelta(seconds=10))

    def test_negative_duration_rejected(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        with pytest.raises(ValueError):
            ledger.add_loss(TimeLoss.SETUP, timedelta(seconds=-1))

        assert ledger.get_loss(TimeLoss.SETUP) == timedelta(0)

    def test_set_loss_overwrites(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)
        ledger.add_loss(TimeLoss.REDUCED_SPEED, timedelta(seconds=100))
        ledger.set_loss(TimeLoss.REDUCED_SPEED, timedelta(seconds=40))

        assert ledger.get_loss(TimeLoss.REDUCED_SPEED) == timedelta(seconds=40)


class TestWaterfall:
    """Cascade of derived times."""

    def test_shift_scenario(self, shift_ledger):
        assert shift_ledger.get_required_operations_time() == timedelta(seconds=28800)
        assert shift_ledger.get_available_time() == timedelta(seconds=28800)
        assert shift_ledger.get_scheduled_production_time() == timedelta(seconds=27000)
        assert shift_ledger.get_production_time() == timedelta(seconds=26400)
        assert shift_ledger.get_reported_production_time() == timedelta(seconds=22800)
        assert shift_ledger.get_net_production_time() == timedelta(seconds=22500)

    def test_derived_times_are_not_cached(self, shift_ledger):
        assert shift_ledger.get_net_production_time() == timedelta(seconds=22500)

        shift_ledger.add_loss(TimeLoss.MINOR_STOPPAGES, timedelta(seconds=500))

        assert shift_ledger.get_net_production_time() == timedelta(seconds=22000)

    def test_monotonic(self):
        rng = random.Random(85)

        for _ in range(50):
            ledger = EquipmentLoss(START, EIGHT_HOURS)
            for category in TimeLoss:
                ledger.add_loss(category, timedelta(seconds=rng.randint(0, 2000)))

            times = list(ledger.get_waterfall().values())
            assert times == sorted(times, reverse=True)

    def test_waterfall_order(self, shift_ledger):
        names = list(shift_ledger.get_waterfall())

        assert names[0] == 'total_time'
        assert names[1:] == [name for name, _ in WATERFALL]


class TestPercentages:
    """OEE, availability, performance and quality."""

    def test_availability(self, shift_ledger):
        assert shift_ledger.calculate_availability_percentage() == pytest.approx(22800 / 28800 * 100)
        assert shift_ledger.calculate_availability_percentage() == pytest.approx(79.1666667)

    def test_after_reconciliation(self, shift_ledger):
        shift_ledger.set_reduced_speed_loss()

        assert shift_ledger.calculate_performance_percentage() == pytest.approx(22500 / 22800 * 100)
        assert shift_ledger.calculate_quality_percentage() == pytest.approx(22320 / 22500 * 100)
        assert shift_ledger.calculate_oee_percentage() == pytest.approx(77.5)

    def test_oee_is_product_of_factors(self, shift_ledger):
        shift_ledger.set_reduced_speed_loss()

        product = (
            shift_ledger.calculate_availability_percentage()
            * shift_ledger.calculate_performance_percentage()
            * shift_ledger.calculate_quality_percentage()
            / 100.0 ** 2
        )
        assert shift_ledger.calculate_oee_percentage() == pytest.approx(product)

    def test_zero_available_time(self):
        ledger = EquipmentLoss(START, timedelta(0))

        with pytest.raises(DivisionUndefined):
            ledger.calculate_availability_percentage()
        with pytest.raises(DivisionUndefined):
            ledger.calculate_oee_percentage()

    def test_zero_reported_production_time(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)
        ledger.add_loss(TimeLoss.UNPLANNED_DOWNTIME, EIGHT_HOURS)

        assert ledger.calculate_availability_percentage() == 0.0
        with pytest.raises(DivisionUndefined):
            ledger.calculate_performance_percentage()
        with pytest.raises(DivisionUndefined):
            ledger.calculate_quality_percentage()

    def test_failed_percentage_leaves_ledger_untouched(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)
        ledger.add_loss(TimeLoss.NOT_SCHEDULED, EIGHT_HOURS)
        before = dict(ledger.loss_map)

        with pytest.raises(DivisionUndefined):
            ledger.calculate_oee_percentage()

        assert ledger.loss_map == before


class TestReducedSpeed:
    """Both reduced speed estimators."""

    def test_reconcile_from_quality_loss(self, shift_ledger):
        shift_ledger.set_reduced_speed_loss()

        expected = 22500 - (120 + 60) - shift_ledger.get_loss(TimeLoss.NO_LOSS).total_seconds()
        assert shift_ledger.get_loss(TimeLoss.REDUCED_SPEED) == timedelta(seconds=expected)

    def test_reconciled_buckets_sum_to_total(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)
        ledger.add_loss(TimeLoss.UNSCHEDULED, timedelta(seconds=900))
        ledger.add_loss(TimeLoss.UNPLANNED_DOWNTIME, timedelta(seconds=2400))
        ledger.add_loss(TimeLoss.REJECT_REWORK, timedelta(seconds=300))
        ledger.add_loss(TimeLoss.NO_LOSS, timedelta(seconds=20000))

        ledger.set_reduced_speed_loss()

        total = sum(ledger.loss_map.values(), timedelta(0))
        assert total == EIGHT_HOURS
        assert ledger.get_loss(TimeLoss.REDUCED_SPEED) == timedelta(seconds=28800 - 900 - 2400 - 300 - 20000)

    def test_estimate_by_speed_ratio(self, rates):
        ledger = EquipmentLoss(START, timedelta(hours=1))

        loss = ledger.calculate_reduced_speed_loss(
            Quantity(45, rates['unit/min']),
            Quantity(60, rates['unit/min'])
        )

        assert loss == timedelta(seconds=900)

    def test_estimate_converts_rates(self, rates):
        ledger = EquipmentLoss(START, timedelta(hours=1))

        loss = ledger.calculate_reduced_speed_loss(
            Quantity(2700, rates['unit/h']),
            Quantity(60, rates['unit/min'])
        )

        assert loss == timedelta(seconds=900)

    def test_estimate_truncates(self, rates):
        ledger = EquipmentLoss(START, timedelta(seconds=1000))

        loss = ledger.calculate_reduced_speed_loss(
            Quantity(50, rates['unit/min']),
            Quantity(60, rates['unit/min'])
        )

        assert loss == timedelta(seconds=166)

    def test_estimate_does_not_modify_ledger(self, rates):
        ledger = EquipmentLoss(START, timedelta(hours=1))
        ledger.calculate_reduced_speed_loss(Quantity(45, rates['unit/min']), Quantity(60, rates['unit/min']))

        assert ledger.get_loss(TimeLoss.REDUCED_SPEED) == timedelta(0)

    def test_estimate_incompatible_rates(self, rates):
        ledger = EquipmentLoss(START, timedelta(hours=1))

        with pytest.raises(IncompatibleUnits):
            ledger.calculate_reduced_speed_loss(
                Quantity(45, rates['kg/min']),
                Quantity(60, rates['unit/min'])
            )

    def test_estimate_zero_ideal_speed(self, rates):
        ledger = EquipmentLoss(START, timedelta(hours=1))

        with pytest.raises(DivisionUndefined):
            ledger.calculate_reduced_speed_loss(
                Quantity(0, rates['unit/min']),
                Quantity(0, rates['unit/min'])
            )


class TestUnitCountConversion:
    """Converting lost units to lost time."""

    def test_reject_count_to_time(self, rates):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        loss = ledger.convert_unit_count_to_time_loss(Quantity(120, UNIT), Quantity(60, rates['unit/min']))

        assert loss == timedelta(seconds=120)

    def test_truncates_to_whole_seconds(self, rates):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        loss = ledger.convert_unit_count_to_time_loss(Quantity(10, UNIT), Quantity(7, rates['unit/min']))

        assert loss == timedelta(seconds=85)

    @pytest.mark.parametrize("count,speed", [(10, 7), (125, 60), (1, 3), (999, 13)])
    def test_round_trip_within_one_unit(self, rates, count, speed):
        ledger = EquipmentLoss(START, EIGHT_HOURS)
        ideal = Quantity(speed, rates['unit/min'])

        loss = ledger.convert_unit_count_to_time_loss(Quantity(count, UNIT), ideal)
        recovered = Quantity(loss.total_seconds(), SECOND).convert(MINUTE).exact_amount * speed

        assert count - 1 < recovered <= count

    def test_incompatible_units(self, rates):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        with pytest.raises(IncompatibleUnits):
            ledger.convert_unit_count_to_time_loss(Quantity(10, KILOGRAM), Quantity(60, rates['unit/min']))


class TestLossItems:
    """Pareto items straight from the ledger."""

    def test_loss_items_exclude_no_loss(self, shift_ledger):
        items = shift_ledger.get_loss_items(MINUTE)

        assert len(items) == 9
        assert 'NO_LOSS' not in [item.category for item in items]

    def test_loss_items_in_taxonomy_order(self, shift_ledger):
        items = shift_ledger.get_loss_items(MINUTE)

        expected = [category.name for category in TimeLoss if category.is_loss()]
        assert [item.category for item in items] == expected

    def test_loss_items_converted(self, shift_ledger):
        values = {item.category: item.value for item in shift_ledger.get_loss_items(MINUTE)}

        assert values['PLANNED_DOWNTIME'] == pytest.approx(30.0)
        assert values['UNPLANNED_DOWNTIME'] == pytest.approx(60.0)

        hours = {item.category: item.value for item in shift_ledger.get_loss_items('h')}
        assert hours['UNPLANNED_DOWNTIME'] == pytest.approx(1.0)

    def test_loss_items_seconds(self, shift_ledger):
        values = {item.category: item.value for item in shift_ledger.get_loss_items()}

        assert values['SETUP'] == 600.0

    def test_loss_items_non_time_unit(self, shift_ledger):
        with pytest.raises(IncompatibleUnits):
            shift_ledger.get_loss_items(KILOGRAM)

    def test_convert_seconds(self):
        ledger = EquipmentLoss(START, EIGHT_HOURS)

        assert ledger.convert_seconds(5400, HOUR) == pytest.approx(1.5)
        assert ledger.convert_seconds(90, 's') == 90.0


class TestSummary:
    """Report dictionary."""

    def test_summary(self, shift_ledger):
        shift_ledger.set_reduced_speed_loss()
        summary = shift_ledger.summary()

        assert summary['equipment'] == "FILLER_01"
        assert summary['available_time'] == 28800.0
        assert summary['net_production_time'] == 22500.0
        assert summary['oee'] == pytest.approx(77.5)

    def test_summary_undefined_percentages(self):
        ledger = EquipmentLoss(START, timedelta(0))

        summary = ledger.summary()

        assert summary['oee'] is None
        assert summary['availability'] is None

    def test_str(self, shift_ledger):
        text = str(shift_ledger)

        assert text.startswith("From: 2024-03-01T06:00:00")
        assert "SETUP = 0:10:00" in text


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
