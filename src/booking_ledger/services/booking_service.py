import logging
from typing import Callable, List, Optional, TypeVar

from booking_ledger.models.bookings import (
    Booking,
    BookingStatus,
    BookingUpdate,
    can_transition,
)
from booking_ledger.repository.booking_repo import BookingRepository
from booking_ledger.schemas.settings import LedgerSettings
from booking_ledger.services.collaborators import (
    EscrowService,
    IdentityRegistry,
    PropertyDirectory,
    ReviewStore,
)
from booking_ledger.utils.constants import (
    LATE_CANCELLATION_DIVISOR,
    MAX_REVIEW_RATING,
    MIN_REVIEW_RATING,
)
from booking_ledger.utils.custom_exceptions import (
    BookingConflict,
    BookingNotFound,
    EscrowFailure,
    ExternalServiceError,
    ExternalServiceFailure,
    HostNotVerified,
    InvalidCost,
    InvalidDates,
    InvalidDeposit,
    InvalidProperty,
    InvalidReviewComment,
    InvalidReviewRating,
    InvalidStatus,
    MaxBookingsReached,
    NotAuthorized,
    PropertyNotAvailable,
)

logger = logging.getLogger(__name__)

R = TypeVar("R")


class BookingService:
    def __init__(
        self,
        booking_repo: BookingRepository,
        property_directory: PropertyDirectory,
        identity_registry: IdentityRegistry,
        escrow_service: EscrowService,
        review_store: ReviewStore,
        settings: Optional[LedgerSettings] = None,
    ):
        self.booking_repo = booking_repo
        self.property_directory = property_directory
        self.identity_registry = identity_registry
        self.escrow_service = escrow_service
        self.review_store = review_store
        self.settings = settings or LedgerSettings()

    def create_booking(
        self,
        caller: str,
        now: int,
        property_id: int,
        start_date: int,
        end_date: int,
        total_cost: int,
        deposit: int,
    ) -> int:
        if start_date <= now or end_date <= start_date:
            raise InvalidDates(
                f"stay [{start_date}, {end_date}) must start after {now} and end after it starts"
            )
        if total_cost <= 0:
            raise InvalidCost(f"total cost must be positive, got {total_cost}")
        if deposit < 0 or deposit > total_cost:
            raise InvalidDeposit(f"deposit {deposit} outside [0, {total_cost}]")

        host = self._call("property directory", self.property_directory.resolve, property_id)
        if host is None:
            raise InvalidProperty(f"property {property_id} has no owner")

        identity = self._call("identity registry", self.identity_registry.get_status, host)
        if identity is None or not identity.verified:
            raise HostNotVerified(f"host {host} is not verified")

        # read before the availability check; the store only accepts this id
        # if no other booking was written in between
        booking_id = self.booking_repo.next_booking_id
        self._require_available(property_id, start_date, end_date)

        if self.booking_repo.count() >= self.settings.max_bookings:
            raise MaxBookingsReached(f"ledger holds {self.settings.max_bookings} bookings")

        escrow_id = self._call(
            "escrow", self.escrow_service.create, caller, host, total_cost, deposit
        )
        if escrow_id is None:
            raise EscrowFailure(f"escrow for property {property_id} could not be created")

        booking = Booking(
            booking_id=booking_id,
            property_id=property_id,
            host=host,
            guest=caller,
            start_date=start_date,
            end_date=end_date,
            total_cost=total_cost,
            deposit=deposit,
            escrow_id=escrow_id,
            cancellation_fee=self.settings.cancellation_fee_for(total_cost),
            timestamp=now,
        )
        try:
            self.booking_repo.add_booking(booking)
        except BookingConflict:
            logger.warning(f"Booking {booking_id} lost to a concurrent write, voiding escrow {escrow_id}")
            self._void_escrow(escrow_id)
            self._require_available(property_id, start_date, end_date)
            raise ExternalServiceFailure(
                f"booking {booking_id} was taken by a concurrent write, retry"
            )
        except ExternalServiceError:
            logger.exception(f"Booking {booking_id} could not be stored, voiding escrow {escrow_id}")
            self._void_escrow(escrow_id)
            raise ExternalServiceFailure(f"booking store did not accept booking {booking_id}")
        logger.info(
            f"Booking {booking_id} created by {caller} for property {property_id} at {now}"
        )
        return booking_id

    def confirm_booking(self, caller: str, now: int, booking_id: int) -> Booking:
        booking = self._get_for_update(booking_id)
        if caller != booking.host:
            raise NotAuthorized(f"{caller} is not the host of booking {booking_id}")
        self._require_transition(booking, BookingStatus.CONFIRMED)

        if not self._call("escrow", self.escrow_service.confirm, booking.escrow_id):
            raise ExternalServiceFailure(f"escrow {booking.escrow_id} could not be confirmed")

        return self._commit(booking, BookingStatus.CONFIRMED, now, caller)

    def cancel_booking(self, caller: str, now: int, booking_id: int) -> Booking:
        booking = self._get_for_update(booking_id)
        if caller not in (booking.guest, booking.host):
            raise NotAuthorized(f"{caller} is not a party to booking {booking_id}")
        self._require_transition(booking, BookingStatus.CANCELLED)

        fee = self.cancellation_fee_at(booking, now)
        if not self._call("escrow", self.escrow_service.cancel, booking.escrow_id, fee):
            raise ExternalServiceFailure(f"escrow {booking.escrow_id} could not be cancelled")

        return self._commit(booking, BookingStatus.CANCELLED, now, caller)

    def complete_booking(self, caller: str, now: int, booking_id: int) -> Booking:
        booking = self._get_for_update(booking_id)
        if caller != booking.guest:
            raise NotAuthorized(f"{caller} is not the guest of booking {booking_id}")
        self._require_transition(booking, BookingStatus.COMPLETED)
        if now < booking.end_date:
            raise InvalidDates(f"stay of booking {booking_id} ends at {booking.end_date}")

        fee = self.settings.platform_fee_for(booking.total_cost)
        if not self._call("escrow", self.escrow_service.release, booking.escrow_id, fee):
            raise ExternalServiceFailure(f"escrow {booking.escrow_id} could not be released")

        return self._commit(booking, BookingStatus.COMPLETED, now, caller)

    def add_review(
        self, caller: str, booking_id: int, rating: int, comment: str
    ) -> Booking:
        booking = self._get_for_update(booking_id)
        if caller != booking.guest:
            raise NotAuthorized(f"{caller} is not the guest of booking {booking_id}")
        if booking.status != BookingStatus.COMPLETED:
            raise InvalidStatus(f"booking {booking_id} is {booking.status.value}")
        if booking.has_review:
            raise InvalidStatus(f"booking {booking_id} already has a review")
        self._validate_review(rating, comment)

        # committed before the store call; a failed store call leaves it in place
        try:
            reviewed = self.booking_repo.set_review(booking_id, rating, comment)
        except BookingConflict:
            raise InvalidStatus(f"booking {booking_id} already has a review")
        if not self._call("review store", self.review_store.record, booking_id, rating, comment):
            logger.error(
                f"Review for booking {booking_id} kept locally but rejected by the review store"
            )
            raise ExternalServiceFailure(f"review store did not record booking {booking_id}")

        logger.info(f"Review {rating}/5 added to booking {booking_id} by {caller}")
        return reviewed

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    def get_booking_count(self) -> int:
        return self.booking_repo.next_booking_id

    def get_booking_update(self, booking_id: int) -> BookingUpdate:
        update = self.booking_repo.get_update(booking_id)
        if update is None:
            raise BookingNotFound(booking_id)
        return update

    def get_property_bookings(self, property_id: int) -> List[int]:
        return self.booking_repo.get_property_booking_ids(property_id)

    def is_property_available(self, property_id: int, start: int, end: int) -> bool:
        return not any(
            booking.is_active and booking.overlaps(start, end)
            for booking in self.booking_repo.get_property_bookings(property_id)
        )

    def _require_available(self, property_id: int, start: int, end: int):
        if not self.is_property_available(property_id, start, end):
            raise PropertyNotAvailable(
                f"property {property_id} is booked within [{start}, {end})"
            )

    def _void_escrow(self, escrow_id: int):
        if not self._call("escrow", self.escrow_service.cancel, escrow_id, 0):
            logger.error(f"Escrow {escrow_id} holds funds for a booking that was never stored")

    def cancellation_fee_at(self, booking: Booking, now: int) -> int:
        if now < booking.start_date:
            return booking.cancellation_fee
        return booking.total_cost // LATE_CANCELLATION_DIVISOR

    def _get_for_update(self, booking_id: int) -> Booking:
        booking = self.booking_repo.get_booking_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(booking_id)
        return booking

    @staticmethod
    def _require_transition(booking: Booking, target: BookingStatus):
        if not can_transition(booking.status, target):
            raise InvalidStatus(
                f"booking {booking.booking_id} cannot move from {booking.status.value} to {target.value}"
            )

    def _validate_review(self, rating: int, comment: str):
        if (
            isinstance(rating, bool)
            or not isinstance(rating, int)
            or not MIN_REVIEW_RATING <= rating <= MAX_REVIEW_RATING
        ):
            raise InvalidReviewRating(
                f"rating must be an integer in [{MIN_REVIEW_RATING}, {MAX_REVIEW_RATING}]"
            )
        if not isinstance(comment, str) or len(comment) > self.settings.max_review_comment_length:
            raise InvalidReviewComment(
                f"comment must be at most {self.settings.max_review_comment_length} characters"
            )

    def _commit(
        self, booking: Booking, status: BookingStatus, now: int, caller: str
    ) -> Booking:
        try:
            updated = self.booking_repo.update_booking_status(
                booking_id=booking.booking_id,
                status=status,
                timestamp=now,
                updater=caller,
                expected_status=booking.status,
            )
        except BookingConflict:
            logger.error(
                f"Booking {booking.booking_id} changed while moving to {status.value}, "
                f"escrow {booking.escrow_id} needs reconciling"
            )
            raise InvalidStatus(f"booking {booking.booking_id} changed concurrently")
        logger.info(f"Booking {booking.booking_id} {status.value} by {caller} at {now}")
        return updated

    @staticmethod
    def _call(service: str, operation: Callable[..., R], *args) -> Optional[R]:
        try:
            return operation(*args)
        except ExternalServiceError:
            logger.exception(f"Call to {service} failed")
            return None
