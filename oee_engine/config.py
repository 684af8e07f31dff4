"""
Engine configuration.

Loaded from YAML, for example:

    production_unit: unit
    ideal_speed: 60
    ideal_speed_unit: unit/min
    ideal_speeds:
      FILLER_01: 90
    report_time_unit: min
    queue_size: 1000
    fail_on_unclassified: false
    reasons:
      Breakdown: UNPLANNED_DOWNTIME
      Jam: MINOR_STOPPAGES
      Lunch: PLANNED_DOWNTIME
"""

from typing import Dict, Optional, Union
from dataclasses import dataclass, field, fields
from pathlib import Path
import logging

import yaml

from oee_engine.models.reasons import ReasonRegistry
from oee_engine.uom.units import Quantity, UnitConverter

logger = logging.getLogger(__name__)


@dataclass
class EngineConfig:
    """Configuration for event processing and reporting"""
    production_unit: str = "unit"
    ideal_speed: Optional[float] = None
    ideal_speed_unit: str = "unit/min"
    ideal_speeds: Dict[str, float] = field(default_factory=dict)  # per equipment
    report_time_unit: str = "min"
    queue_size: int = 1000
    fail_on_unclassified: bool = False
    reasons: Dict[str, str] = field(default_factory=dict)  # reason -> TimeLoss name
    log_level: str = "INFO"

    def reason_registry(self) -> ReasonRegistry:
        return ReasonRegistry.from_mapping(self.reasons)

    def ideal_speed_for(self, equipment: str, converter: UnitConverter) -> Optional[Quantity]:
        """Ideal speed of one equipment, falling back to the default ideal speed."""
        speed = self.ideal_speeds.get(equipment, self.ideal_speed)
        if speed is None:
            return None
        return converter.quantity(speed, self.ideal_speed_unit)


def load_config(config_file: Union[str, Path]) -> EngineConfig:
    """
    Load engine configuration from YAML.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    config_path = Path(config_file)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        raw = yaml.safe_load(f) or {}

    known = {f.name for f in fields(EngineConfig)}
    for key in raw:
        if key not in known:
            logger.warning(f"Ignoring unknown configuration key: {key}")

    config = EngineConfig(**{k: v for k, v in raw.items() if k in known})
    logger.info(f"Loaded configuration from {config_path} ({len(config.reasons)} reasons)")
    return config
