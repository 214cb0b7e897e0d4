class BookingError(Exception):
    """Base class for booking domain errors."""


class AvailabilityFetchError(BookingError):
    """Raised by the persistence layer when appointments cannot be fetched or parsed."""


class ProfileRequiredError(BookingError):
    pass


class ConsentRequiredError(BookingError):
    pass


class DateNotEligibleError(BookingError):
    pass


class SlotNotAvailableError(BookingError):
    pass


class DuplicateAppointmentError(BookingError):
    pass


class InvalidTransitionError(BookingError):
    def __init__(self, current: str, requested: str) -> None:
        super().__init__(f"cannot move appointment from {current} to {requested}")
        self.current = current
        self.requested = requested
