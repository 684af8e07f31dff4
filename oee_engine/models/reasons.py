"""
Downtime reasons and their loss categories.

Deciding which TimeLoss a reason belongs to is master data, not engine logic.
The classifier only depends on the ReasonLookup protocol; ReasonRegistry is a
dictionary-backed implementation fed from configuration.
"""

from typing import Dict, Optional, Iterable, Protocol
from dataclasses import dataclass
import logging

from oee_engine.models.time_loss import TimeLoss

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reason:
    """Downtime reason definition."""
    name: str
    loss_category: TimeLoss
    description: str = ""


class ReasonLookup(Protocol):
    """Resolves a reason name to exactly one loss category."""

    def resolve(self, reason: str) -> Optional[TimeLoss]:
        ...


class ReasonRegistry:
    """In-memory reason lookup keyed by reason name."""

    def __init__(self, reasons: Iterable[Reason] = ()):
        self.reasons: Dict[str, Reason] = {}
        for reason in reasons:
            self.register(reason)

    @classmethod
    def from_mapping(cls, mapping: Dict[str, str]) -> "ReasonRegistry":
        """
        Build a registry from {reason name: loss category name}.

        Raises:
            KeyError: If a loss category name is not a TimeLoss
        """
        registry = cls()
        for name, category in mapping.items():
            registry.register(Reason(name=name, loss_category=TimeLoss.from_name(category)))
        return registry

    def register(self, reason: Reason):
        if reason.name in self.reasons:
            logger.warning(f"Replacing loss category for reason '{reason.name}'")
        self.reasons[reason.name] = reason

    def resolve(self, reason: str) -> Optional[TimeLoss]:
        entry = self.reasons.get(reason)
        return entry.loss_category if entry else None

    def __len__(self) -> int:
        return len(self.reasons)

    def __contains__(self, reason: str) -> bool:
        return reason in self.reasons
