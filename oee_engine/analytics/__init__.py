"""OEE Analytics Module"""

from oee_engine.analytics.pareto import ParetoItem, RankedParetoItem, ParetoProjector
from oee_engine.analytics.equipment_loss import EquipmentLoss
from oee_engine.analytics.event_classifier import EventClass, OeeEventClassifier, ProductionCounts

__all__ = [
    'EquipmentLoss',
    'EventClass',
    'OeeEventClassifier',
    'ProductionCounts',
    'ParetoItem',
    'RankedParetoItem',
    'ParetoProjector',
]
