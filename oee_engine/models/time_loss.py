"""
TimeLoss Taxonomy

Every second of calendar time for a piece of equipment belongs to exactly one
of these categories. The categories are subtracted from total time in a fixed
order (the OEE waterfall) to derive the nested production times:

    Total time
    - NOT_SCHEDULED       = Required operations time
    - UNSCHEDULED         = Available time
    - PLANNED_DOWNTIME    = Scheduled production time
    - SETUP               = Production time
    - UNPLANNED_DOWNTIME  = Reported production time
    - MINOR_STOPPAGES     = Net production time
    - REDUCED_SPEED       = Efficient net production time
    - REJECT_REWORK       = Effective net production time
    - STARTUP_YIELD       = Value adding time

NO_LOSS is fully productive time making good product.
"""

from enum import Enum
from typing import Tuple


class TimeLoss(Enum):
    """Loss categories. The value is a display label."""
    NOT_SCHEDULED = "Not Scheduled"
    UNSCHEDULED = "Unscheduled"
    PLANNED_DOWNTIME = "Planned Downtime"
    SETUP = "Setup"
    UNPLANNED_DOWNTIME = "Unplanned Downtime"
    MINOR_STOPPAGES = "Minor Stoppages"
    REDUCED_SPEED = "Reduced Speed"
    REJECT_REWORK = "Reject Rework"
    STARTUP_YIELD = "Startup Yield"
    NO_LOSS = "No Loss"

    def is_loss(self) -> bool:
        """True for every category except NO_LOSS."""
        return self is not TimeLoss.NO_LOSS

    @classmethod
    def from_name(cls, name: str) -> "TimeLoss":
        """
        Look up a category by member name or display label.

        Raises:
            KeyError: If nothing matches
        """
        key = name.strip()
        normalized = key.upper().replace(" ", "_").replace("-", "_")
        if normalized in cls.__members__:
            return cls.__members__[normalized]

        for member in cls:
            if member.value.lower() == key.lower():
                return member

        raise KeyError(name)

    def __str__(self) -> str:
        return self.name


# (derived quantity, category subtracted to reach it), top of the waterfall first
WATERFALL: Tuple[Tuple[str, TimeLoss], ...] = (
    ("required_operations_time", TimeLoss.NOT_SCHEDULED),
    ("available_time", TimeLoss.UNSCHEDULED),
    ("scheduled_production_time", TimeLoss.PLANNED_DOWNTIME),
    ("production_time", TimeLoss.SETUP),
    ("reported_production_time", TimeLoss.UNPLANNED_DOWNTIME),
    ("net_production_time", TimeLoss.MINOR_STOPPAGES),
    ("efficient_net_production_time", TimeLoss.REDUCED_SPEED),
    ("effective_net_production_time", TimeLoss.REJECT_REWORK),
    ("value_adding_time", TimeLoss.STARTUP_YIELD),
)
