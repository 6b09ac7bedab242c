from enum import Enum


class ErrorKind(str, Enum):
    NOT_AUTHORIZED = "NotAuthorized"
    INVALID_PROPERTY = "InvalidProperty"
    INVALID_DATES = "InvalidDates"
    INVALID_COST = "InvalidCost"
    INVALID_STATUS = "InvalidStatus"
    BOOKING_NOT_FOUND = "BookingNotFound"
    PROPERTY_NOT_AVAILABLE = "PropertyNotAvailable"
    HOST_NOT_VERIFIED = "HostNotVerified"
    ESCROW_FAILURE = "EscrowFailure"
    INVALID_DEPOSIT = "InvalidDeposit"
    INVALID_REVIEW_RATING = "InvalidReviewRating"
    INVALID_REVIEW_COMMENT = "InvalidReviewComment"
    EXTERNAL_SERVICE_FAILURE = "ExternalServiceFailure"
    MAX_BOOKINGS_REACHED = "MaxBookingsReached"


ERROR_CODES = {
    ErrorKind.NOT_AUTHORIZED: 200,
    ErrorKind.INVALID_PROPERTY: 201,
    ErrorKind.INVALID_DATES: 202,
    ErrorKind.INVALID_COST: 203,
    ErrorKind.INVALID_STATUS: 204,
    ErrorKind.BOOKING_NOT_FOUND: 206,
    ErrorKind.PROPERTY_NOT_AVAILABLE: 207,
    ErrorKind.HOST_NOT_VERIFIED: 208,
    ErrorKind.ESCROW_FAILURE: 209,
    ErrorKind.INVALID_DEPOSIT: 215,
    ErrorKind.INVALID_REVIEW_RATING: 219,
    ErrorKind.INVALID_REVIEW_COMMENT: 220,
    ErrorKind.EXTERNAL_SERVICE_FAILURE: 221,
    ErrorKind.MAX_BOOKINGS_REACHED: 222,
}


class BookingError(Exception):
    kind: ErrorKind = ErrorKind.INVALID_STATUS

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind.value)
        self.message = message or self.kind.value

    @property
    def code(self) -> int:
        return ERROR_CODES[self.kind]


class NotAuthorized(BookingError):
    kind = ErrorKind.NOT_AUTHORIZED


class InvalidProperty(BookingError):
    kind = ErrorKind.INVALID_PROPERTY


class InvalidDates(BookingError):
    kind = ErrorKind.INVALID_DATES


class InvalidCost(BookingError):
    kind = ErrorKind.INVALID_COST


class InvalidStatus(BookingError):
    kind = ErrorKind.INVALID_STATUS


class BookingNotFound(BookingError):
    kind = ErrorKind.BOOKING_NOT_FOUND

    def __init__(self, booking_id):
        self.booking_id = booking_id
        super().__init__(f"booking '{booking_id}' not found")


class PropertyNotAvailable(BookingError):
    kind = ErrorKind.PROPERTY_NOT_AVAILABLE


class HostNotVerified(BookingError):
    kind = ErrorKind.HOST_NOT_VERIFIED


class EscrowFailure(BookingError):
    kind = ErrorKind.ESCROW_FAILURE


class InvalidDeposit(BookingError):
    kind = ErrorKind.INVALID_DEPOSIT


class InvalidReviewRating(BookingError):
    kind = ErrorKind.INVALID_REVIEW_RATING


class InvalidReviewComment(BookingError):
    kind = ErrorKind.INVALID_REVIEW_COMMENT


class ExternalServiceFailure(BookingError):
    kind = ErrorKind.EXTERNAL_SERVICE_FAILURE


class MaxBookingsReached(BookingError):
    kind = ErrorKind.MAX_BOOKINGS_REACHED


class ExternalServiceError(Exception):
    """Raised by collaborator adapters when the backing service call itself fails."""

    def __init__(self, service: str, detail: str = ""):
        self.service = service
        self.detail = detail
        super().__init__(str(self))

    def __str__(self):
        if self.detail:
            return f"{self.service} unavailable: {self.detail}"
        return f"{self.service} unavailable"


class BookingConflict(Exception):
    """Raised by a booking store when a conditional write loses to another writer."""
