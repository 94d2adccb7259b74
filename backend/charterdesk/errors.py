"""Error taxonomy for the booking-offer pipeline.

Every failure carries its ErrorKind from the point where it is raised, so the
orchestrator and the HTTP layer never have to guess a category from message text.
"""

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    PRICE_CONSISTENCY = "price_consistency"
    DOCUMENT_GENERATION = "document_generation"
    PERSISTENCE = "persistence"
    NOTIFICATION = "notification"


FATAL_KINDS = frozenset({ErrorKind.VALIDATION, ErrorKind.PRICE_CONSISTENCY})


class BookingError(Exception):
    """Base class for every pipeline failure."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def is_fatal(self) -> bool:
        return self.kind in FATAL_KINDS


class BookingValidationError(BookingError):
    kind = ErrorKind.VALIDATION


class InvalidRangeError(BookingValidationError):
    """The charter covers fewer than one night."""


class MissingRateError(BookingValidationError):
    """A night falls in a season the yacht has no daily rate for."""


class UnknownYachtError(BookingValidationError):
    """No active rate card exists for the requested yacht."""


class CurrencyMismatchError(BookingValidationError):
    """The request asks for a currency the yacht is not priced in."""


class PriceConsistencyError(BookingError):
    kind = ErrorKind.PRICE_CONSISTENCY


class DocumentGenerationError(BookingError):
    kind = ErrorKind.DOCUMENT_GENERATION


class PersistenceError(BookingError):
    kind = ErrorKind.PERSISTENCE


class NotificationError(BookingError):
    kind = ErrorKind.NOTIFICATION


class InvalidStatusTransitionError(Exception):
    """An inquiry status change that the lifecycle does not allow."""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move inquiry from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested
