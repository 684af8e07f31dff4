"""
Pareto Projection

Turns a ledger's loss buckets into a ranked list of losses in a chosen time
unit, with each category's share and the running cumulative share, ready for
charting or tabular reports.
"""

from typing import List, Union, TYPE_CHECKING
from dataclasses import dataclass
import logging

import numpy as np
import pandas as pd

from oee_engine.uom.units import Unit, MINUTE

if TYPE_CHECKING:
    from oee_engine.analytics.equipment_loss import EquipmentLoss

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParetoItem:
    """A loss category and its magnitude."""
    category: str
    value: float


@dataclass(frozen=True)
class RankedParetoItem:
    """Pareto item with its rank, share of total loss and cumulative share."""
    rank: int
    category: str
    value: float
    percentage: float
    cumulative_percentage: float


class ParetoProjector:
    """Rank ledger losses for reporting"""

    def __init__(self, time_unit: Union[Unit, str] = MINUTE, include_zero: bool = False):
        """
        Args:
            time_unit: Unit to express losses in
            include_zero: Keep categories with no recorded loss
        """
        self.time_unit = time_unit
        self.include_zero = include_zero

    def project(self, ledger: "EquipmentLoss") -> List[RankedParetoItem]:
        return self.rank(ledger.get_loss_items(self.time_unit))

    def rank(self, items: List[ParetoItem]) -> List[RankedParetoItem]:
        """
        Sort items by descending value (ties keep their input order).

        Negative items are dropped with a warning. Percentages are of the
        total of the kept items; they are all zero when that total is zero.
        """
        for item in items:
            if item.value < 0:
                logger.warning(f"Excluding negative loss {item.category} = {item.value} from Pareto ranking")

        kept = [item for item in items if item.value > 0 or (self.include_zero and item.value == 0)]
        if not kept:
            return []

        ordered = sorted(kept, key=lambda item: item.value, reverse=True)
        values = np.array([item.value for item in ordered], dtype=float)
        total = values.sum()

        if total > 0:
            shares = values / total * 100.0
            cumulative = np.cumsum(shares)
        else:
            shares = np.zeros(len(values))
            cumulative = np.zeros(len(values))

        return [
            RankedParetoItem(
                rank=i + 1,
                category=item.category,
                value=item.value,
                percentage=float(shares[i]),
                cumulative_percentage=float(cumulative[i])
            )
            for i, item in enumerate(ordered)
        ]

    def to_dataframe(self, ledger: "EquipmentLoss") -> pd.DataFrame:
        """Ranked losses as a DataFrame indexed by rank."""
        ranked = self.project(ledger)
        columns = ['rank', 'category', 'value', 'percentage', 'cumulative_percentage']
        frame = pd.DataFrame([item.__dict__ for item in ranked], columns=columns)
        return frame.set_index('rank')
