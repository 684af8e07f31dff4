"""
OEE engine errors.

All errors are raised at the point of the offending call and are never
retried inside the engine. A failed call leaves the ledger unchanged.
"""


class OeeEngineError(Exception):
    """Base class for all engine errors."""
    pass


class UnclassifiedEvent(OeeEngineError):
    """
    An event could not be mapped to a ledger mutation.

    Raised for unknown event types, availability events whose reason has no
    loss category, and events missing the duration or quantity they need.
    Whether this is fatal is up to the caller.
    """

    def __init__(self, message: str, event=None):
        super().__init__(message)
        self.event = event


class IncompatibleUnits(OeeEngineError):
    """Units are unknown or not dimensionally convertible."""
    pass


class DivisionUndefined(OeeEngineError):
    """A ratio was requested whose denominator is missing or zero."""
    pass


class InvalidCategory(OeeEngineError):
    """A loss category key is not a member of the TimeLoss taxonomy."""
    pass


class MissingBaseline(OeeEngineError):
    """A waterfall quantity was requested before the total time was set."""
    pass
