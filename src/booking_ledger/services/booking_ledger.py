"""Public surface of the booking ledger.

Every operation returns an ``OperationResult``: ``ok`` with the operation's
value, or a failure carrying one ``ErrorKind``. Operations are admitted one at
a time, and each runs to completion (external calls included) before the next
one starts. Ledgers in other processes that share a DynamoDB booking store are
kept apart by the store's conditional writes instead.
"""

import logging
import threading
from typing import Callable, List, TypeVar

from booking_ledger.models.bookings import Booking, BookingUpdate
from booking_ledger.services.booking_service import BookingService
from booking_ledger.utils.custom_exceptions import (
    BookingError,
    ExternalServiceError,
    ExternalServiceFailure,
)
from booking_ledger.utils.custom_response import OperationResult

logger = logging.getLogger(__name__)

R = TypeVar("R")


class BookingLedger:
    def __init__(self, booking_service: BookingService):
        self.booking_service = booking_service
        self._lock = threading.RLock()

    def create_booking(
        self,
        caller: str,
        now: int,
        property_id: int,
        start_date: int,
        end_date: int,
        total_cost: int,
        deposit: int,
    ) -> OperationResult[int]:
        return self._run(
            "create_booking",
            lambda: self.booking_service.create_booking(
                caller, now, property_id, start_date, end_date, total_cost, deposit
            ),
        )

    def confirm_booking(self, caller: str, now: int, booking_id: int) -> OperationResult[bool]:
        return self._run(
            "confirm_booking",
            lambda: self.booking_service.confirm_booking(caller, now, booking_id) is not None,
        )

    def cancel_booking(self, caller: str, now: int, booking_id: int) -> OperationResult[bool]:
        return self._run(
            "cancel_booking",
            lambda: self.booking_service.cancel_booking(caller, now, booking_id) is not None,
        )

    def complete_booking(self, caller: str, now: int, booking_id: int) -> OperationResult[bool]:
        return self._run(
            "complete_booking",
            lambda: self.booking_service.complete_booking(caller, now, booking_id) is not None,
        )

    def add_review(
        self, caller: str, booking_id: int, rating: int, comment: str
    ) -> OperationResult[bool]:
        return self._run(
            "add_review",
            lambda: self.booking_service.add_review(caller, booking_id, rating, comment)
            is not None,
        )

    def get_booking(self, booking_id: int) -> OperationResult[Booking]:
        return self._run("get_booking", lambda: self.booking_service.get_booking(booking_id))

    def get_booking_count(self) -> OperationResult[int]:
        return self._run("get_booking_count", self.booking_service.get_booking_count)

    def get_booking_update(self, booking_id: int) -> OperationResult[BookingUpdate]:
        return self._run(
            "get_booking_update", lambda: self.booking_service.get_booking_update(booking_id)
        )

    def get_property_bookings(self, property_id: int) -> OperationResult[List[int]]:
        return self._run(
            "get_property_bookings",
            lambda: self.booking_service.get_property_bookings(property_id),
        )

    def is_property_available(
        self, property_id: int, start: int, end: int
    ) -> OperationResult[bool]:
        return self._run(
            "is_property_available",
            lambda: self.booking_service.is_property_available(property_id, start, end),
        )

    def _run(self, operation: str, call: Callable[[], R]) -> OperationResult[R]:
        with self._lock:
            try:
                return OperationResult.success(call())
            except BookingError as err:
                logger.warning(f"{operation} rejected with {err.kind.value}: {err.message}")
                return OperationResult.failure(err)
            except ExternalServiceError as err:
                # the booking store itself could not be reached
                logger.exception(f"{operation} failed: {err}")
                return OperationResult.failure(ExternalServiceFailure(str(err)))
